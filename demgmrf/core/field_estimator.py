"""
Base classes for random-field height estimators
"""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np


class Interpolation(str, Enum):
    """Policy for turning a continuous query coordinate into a grid estimate"""
    NEAREST = "nearest"
    BILINEAR = "bilinear"


class FieldEstimator(ABC):
    """
    Abstract interface of a 2-D height grid estimator.

    The pipeline only talks to this interface, so any estimator (or a fake
    one in tests) can be injected.
    """

    @abstractmethod
    def configure(self, prior_strength: float, obs_strength: float,
                  skip_variance: bool = False) -> None:
        """Set prior/observation precisions and whether variance is computed"""
        pass

    @abstractmethod
    def resize(self, min_x: float, max_x: float, min_y: float, max_y: float,
               resolution: float, default_cell: Tuple[float, float] = (0.0, 0.0)) -> None:
        """(Re)allocate the grid, every cell set to ``default_cell`` (mean, std)"""
        pass

    @abstractmethod
    def insert_observation(self, z: float, x: float, y: float,
                           update_now: bool = False, time_invariant: bool = True,
                           stddev: Optional[float] = None) -> None:
        """Record a height observation at (x, y)"""
        pass

    @abstractmethod
    def solve(self) -> None:
        """Recompute the posterior of every cell from all observations"""
        pass

    @abstractmethod
    def predict(self, x: float, y: float,
                interpolation: Interpolation = Interpolation.NEAREST) -> Tuple[float, float]:
        """Return (predicted z, predicted std) at (x, y)"""
        pass

    @abstractmethod
    def size(self) -> Tuple[int, int]:
        """Return (rows, cols) of the current grid"""
        pass

    @property
    @abstractmethod
    def mean(self) -> np.ndarray:
        """Posterior mean grid, shape (rows, cols)"""
        pass

    @property
    @abstractmethod
    def std(self) -> np.ndarray:
        """Posterior std grid, shape (rows, cols)"""
        pass

    @property
    @abstractmethod
    def extent(self) -> Tuple[float, float, float, float]:
        """Grid extent as (xmin, xmax, ymin, ymax)"""
        pass

    @property
    def resolution(self) -> float:
        rows, cols = self.size()
        return (self.extent[1] - self.extent[0]) / cols

    @abstractmethod
    def export_representation(self, prefix: Union[str, Path]) -> dict:
        """Write the map representation files, return {name: path}"""
        pass

    @abstractmethod
    def export_render_script(self, path: Union[str, Path]) -> Path:
        """Write an external 3-D render script"""
        pass

    def cell_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return x coordinates of column centres and y of row centres"""
        rows, cols = self.size()
        x_min, x_max, y_min, y_max = self.extent
        res_x = (x_max - x_min) / cols
        res_y = (y_max - y_min) / rows
        xs = x_min + (np.arange(cols) + 0.5) * res_x
        ys = y_min + (np.arange(rows) + 0.5) * res_y
        return xs, ys
