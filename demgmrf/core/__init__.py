"""Core estimation algorithms: bbox, sampling, field estimators and validation."""

from .bounding_box import BoundingBox, compute_bounding_box
from .sampling import IndexPartition, split_checkpoints
from .field_estimator import FieldEstimator, Interpolation
from .gmrf import GMRFHeightGrid
from .statistics import ResidualStats, compute_residual_stats
from .validation import CheckpointResiduals, CheckpointValidator

__all__ = [
    "BoundingBox", "compute_bounding_box",
    "IndexPartition", "split_checkpoints",
    "FieldEstimator", "Interpolation", "GMRFHeightGrid",
    "ResidualStats", "compute_residual_stats",
    "CheckpointResiduals", "CheckpointValidator",
]
