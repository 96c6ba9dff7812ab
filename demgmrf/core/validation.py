"""
Checkpoint Validation
=====================

Cross-validation of a solved field against held-out checkpoint points.
Every checkpoint is predicted twice (nearest cell and bilinear) and the
residual ``ground_truth_z - predicted_z`` is kept for each policy.
"""

from dataclasses import dataclass, field
from typing import Dict

import numpy as np
from loguru import logger

from .field_estimator import FieldEstimator, Interpolation
from .statistics import ResidualStats, compute_residual_stats


@dataclass
class CheckpointResiduals:
    """Parallel residual collections, one entry per checkpoint."""
    nearest: np.ndarray
    bilinear: np.ndarray
    predicted_std_nearest: np.ndarray = field(default=None)
    predicted_std_bilinear: np.ndarray = field(default=None)

    def __len__(self) -> int:
        return len(self.nearest)

    def stats(self) -> Dict[str, ResidualStats]:
        return {
            'nearest': compute_residual_stats(self.nearest),
            'bilinear': compute_residual_stats(self.bilinear),
        }

    def mean_predicted_std(self) -> Dict[str, float]:
        """
        Average std dev predicted at the checkpoints, per policy.

        0 when there are no checkpoints or no std was recorded.
        """
        summary = {}
        for policy, values in (('nearest', self.predicted_std_nearest),
                               ('bilinear', self.predicted_std_bilinear)):
            has_values = values is not None and len(values) > 0
            summary[policy] = float(np.mean(values)) if has_values else 0.0
        return summary


class CheckpointValidator:
    """Predicts held-out points with a solved estimator and collects residuals."""

    def __init__(self, estimator: FieldEstimator):
        self.estimator = estimator

    def evaluate(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> CheckpointResiduals:
        """
        Compute residuals of every checkpoint under both interpolation policies.

        Any OutOfBounds raised by the estimator propagates: a checkpoint
        outside the grid means the bounding box and margin are inconsistent.

        Parameters:
            x, y, z (np.ndarray): Checkpoint coordinates and ground-truth heights

        Returns:
            CheckpointResiduals: Nearest and bilinear residuals
        """
        n = len(x)
        residuals_nn = np.empty(n)
        residuals_bi = np.empty(n)
        std_nn = np.empty(n)
        std_bi = np.empty(n)

        for k in range(n):
            z_nn, s_nn = self.estimator.predict(x[k], y[k], Interpolation.NEAREST)
            z_bi, s_bi = self.estimator.predict(x[k], y[k], Interpolation.BILINEAR)
            residuals_nn[k] = z[k] - z_nn
            residuals_bi[k] = z[k] - z_bi
            std_nn[k] = s_nn
            std_bi[k] = s_bi

        logger.debug(f"Evaluated {n} checkpoints")
        return CheckpointResiduals(
            nearest=residuals_nn,
            bilinear=residuals_bi,
            predicted_std_nearest=std_nn,
            predicted_std_bilinear=std_bi,
        )
