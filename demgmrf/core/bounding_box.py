"""
Bounding Box Calculation
========================

Single-pass spatial extent of a point dataset, expanded by a border margin
so the estimator grid has working room beyond the data.
"""

import sys
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from loguru import logger

DEFAULT_BORDER = 10.0
DEFAULT_Z_NODATA_THRESHOLD = 1e6

_FLOAT_MAX = sys.float_info.max


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive extent of a point set (after margin expansion)."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float
    has_z_extent: bool = True

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def depth(self) -> float:
        return self.max_z - self.min_z

    @property
    def center(self) -> Tuple[float, float, float]:
        return (0.5 * (self.min_x + self.max_x),
                0.5 * (self.min_y + self.max_y),
                0.5 * (self.min_z + self.max_z))

    @property
    def xy_extent(self) -> Tuple[float, float, float, float]:
        """Extent as (xmin, xmax, ymin, ymax)."""
        return (self.min_x, self.max_x, self.min_y, self.max_y)

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def compute_bounding_box(x: np.ndarray, y: np.ndarray, z: np.ndarray,
                         border: float = DEFAULT_BORDER,
                         z_nodata_threshold: float = DEFAULT_Z_NODATA_THRESHOLD) -> BoundingBox:
    """
    Compute the bounding box of a point set.

    x and y are accumulated for every point. z only for points with
    ``|z| < z_nodata_threshold`` (raster "no data" values are typically
    huge). If no z passes the filter, the z bounds keep their initial
    sentinel extremes and ``has_z_extent`` is False.

    Parameters:
        x, y, z (np.ndarray): Point coordinates
        border (float): Margin added on every side of every axis
        z_nodata_threshold (float): Magnitude at which z counts as "no data"

    Returns:
        BoundingBox: Expanded extent
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)

    min_x, max_x = _FLOAT_MAX, -_FLOAT_MAX
    min_y, max_y = _FLOAT_MAX, -_FLOAT_MAX
    min_z, max_z = _FLOAT_MAX, -_FLOAT_MAX

    # NaN never wins a min/max comparison
    valid_x = x[~np.isnan(x)]
    valid_y = y[~np.isnan(y)]
    if len(valid_x):
        min_x, max_x = float(np.min(valid_x)), float(np.max(valid_x))
    if len(valid_y):
        min_y, max_y = float(np.min(valid_y)), float(np.max(valid_y))

    valid_z = z[np.abs(z) < z_nodata_threshold]
    has_z_extent = len(valid_z) > 0
    if has_z_extent:
        min_z, max_z = float(np.min(valid_z)), float(np.max(valid_z))
    else:
        logger.warning("No valid z values below the no-data threshold; z extent is undefined")

    n_nodata = len(z) - len(valid_z)
    if n_nodata and has_z_extent:
        logger.info(f"Ignored {n_nodata} no-data z values (|z| >= {z_nodata_threshold:g}) in z extent")

    return BoundingBox(
        min_x=min_x - border, max_x=max_x + border,
        min_y=min_y - border, max_y=max_y + border,
        min_z=min_z - border, max_z=max_z + border,
        has_z_extent=has_z_extent,
    )
