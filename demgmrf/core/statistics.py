"""Summary statistics of checkpoint residuals."""

from dataclasses import astuple, dataclass
from typing import Dict

import numpy as np

STATS_COLUMNS = ('MAX_ABS_ERR', 'MIN_ABS_ERR', 'AVERAGE_ERR', 'STD_DEV', 'RMSE', 'MEDIAN')


@dataclass(frozen=True)
class ResidualStats:
    """Immutable container of the six residual statistics."""
    max: float = 0.0
    min: float = 0.0
    mean: float = 0.0
    std: float = 0.0
    rmse: float = 0.0
    median: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array(astuple(self), dtype=np.float64)

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(STATS_COLUMNS, astuple(self)))


def compute_residual_stats(residuals) -> ResidualStats:
    """
    Compute max, min, mean, sample std, RMSE and median of residuals.

    The median is the element at position ``N // 2`` of the sorted values,
    i.e. the upper median for even N (not the average of the two middle
    values). The std uses the N - 1 denominator and is 0 for a single
    residual. An empty collection gives all-zero statistics.

    Parameters:
        residuals (array-like): Residual values

    Returns:
        ResidualStats: The six statistics
    """
    r = np.asarray(residuals, dtype=np.float64).ravel()
    n = len(r)
    if n == 0:
        return ResidualStats()

    std = float(np.std(r, ddof=1)) if n > 1 else 0.0
    median = float(np.partition(r, n // 2)[n // 2])

    return ResidualStats(
        max=float(np.max(r)),
        min=float(np.min(r)),
        mean=float(np.mean(r)),
        std=std,
        rmse=float(np.sqrt(np.sum(r * r) / n)),
        median=median,
    )
