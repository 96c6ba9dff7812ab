"""
Checkpoint Sampling
===================

Random split of the point indices into an insertion set (fed to the
estimator) and a held-out checkpoint set (used only for validation).
The split happens before any insertion so checkpoints never influence
the fitted field.
"""

import math
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np
from loguru import logger

from ..errors import InvalidConfiguration


@dataclass(frozen=True)
class IndexPartition:
    """Shuffled permutation of [0, N) split at N - n_checkpoints."""
    permutation: np.ndarray
    n_checkpoints: int
    seed: int

    @property
    def n_points(self) -> int:
        return len(self.permutation)

    @property
    def n_insert(self) -> int:
        return self.n_points - self.n_checkpoints

    @property
    def insert_indices(self) -> np.ndarray:
        return self.permutation[:self.n_insert]

    @property
    def checkpoint_indices(self) -> np.ndarray:
        return self.permutation[self.n_insert:]


def round_half_away(value: float) -> int:
    """Round to nearest integer, halves away from zero (not banker's rounding)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def time_seed() -> int:
    """Seed derived from the current wall-clock time."""
    return int(time.time())


def split_checkpoints(n_points: int, ratio: float, seed: Optional[int] = None) -> IndexPartition:
    """
    Shuffle point indices and split off ``round(ratio * n_points)`` checkpoints.

    Parameters:
        n_points (int): Number of points N
        ratio (float): Fraction of points held out, in [0, 1]
        seed (Optional[int]): Generator seed; wall-clock time when None

    Returns:
        IndexPartition: The shuffled permutation and split position
    """
    if not 0.0 <= ratio <= 1.0:
        raise InvalidConfiguration(f"Checkpoint ratio must be in [0, 1], got {ratio}")
    if n_points < 0:
        raise InvalidConfiguration(f"Number of points must be non-negative, got {n_points}")

    if seed is None:
        seed = time_seed()

    rng = np.random.default_rng(seed)
    permutation = np.arange(n_points, dtype=np.intp)
    rng.shuffle(permutation)
    permutation.setflags(write=False)

    n_checkpoints = min(round_half_away(ratio * n_points), n_points)

    logger.debug(f"Shuffled {n_points} indices with seed {seed}")
    return IndexPartition(permutation=permutation, n_checkpoints=n_checkpoints, seed=seed)
