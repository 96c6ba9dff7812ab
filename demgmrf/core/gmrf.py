"""
GMRF Height Grid Estimator
==========================

Gaussian Markov Random Field estimator of terrain height on a regular grid.

Each cell holds an unknown height. Adjacent cells (4-connectivity) are tied
by a smoothness prior ``lambda_prior * (m_i - m_j)^2`` and every observation
adds ``lambda_k * (m_c - z_k)^2`` on the cell that contains it. The posterior
mean solves the sparse system ``H m = g`` with

    H = lambda_prior * L + diag(sum of lambda_k per cell)
    g = sum of lambda_k * z_k per cell

where L is the Laplacian of the grid graph. The posterior variance of every
cell is the diagonal of ``H^-1``, obtained by solving against batches of
identity columns with the same sparse LU factorization.
"""

import math
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import splu
from loguru import logger

from .field_estimator import FieldEstimator, Interpolation
from ..errors import InputError, InvalidConfiguration, OutOfBounds
from ..io.grid_io import GridIO
from ..visualization.render_script import write_matlab_surface_script
from ..visualization.surface_viewer import save_grid_png

# span / resolution within this of an integer counts as that integer
CELL_COUNT_TOLERANCE = 1e-9


def _path_laplacian(n: int) -> sparse.csr_matrix:
    """Laplacian of a path graph with n nodes."""
    if n == 1:
        return sparse.csr_matrix((1, 1))
    main = np.full(n, 2.0)
    main[0] = main[-1] = 1.0
    off = -np.ones(n - 1)
    return sparse.diags([off, main, off], [-1, 0, 1], format='csr')


def grid_laplacian(rows: int, cols: int) -> sparse.csr_matrix:
    """
    Laplacian of a rows x cols 4-connected grid graph.

    Cells are numbered row-major: ``index = row * cols + col``.
    """
    return sparse.kronsum(_path_laplacian(cols), _path_laplacian(rows), format='csr')


class GMRFHeightGrid(FieldEstimator):
    """
    Height grid map estimated as a Gaussian Markov Random Field.

    Rows follow y and columns follow x; row 0 / column 0 is the cell at
    (min_x, min_y).
    """

    def __init__(self, lambda_prior: float = 1.0, lambda_obs: float = 25.0,
                 skip_variance: bool = False, obs_loss: float = 0.0,
                 variance_batch_size: int = 256):
        self._lambda_prior = lambda_prior
        self._lambda_obs = lambda_obs
        self._skip_variance = skip_variance
        self._obs_loss = obs_loss
        self._variance_batch_size = variance_batch_size

        self._x_min, self._x_max = 0.0, 1.0
        self._y_min, self._y_max = 0.0, 1.0
        self._resolution = 1.0
        self._rows, self._cols = 1, 1
        self._default_cell = (0.0, 0.0)
        self._mean = np.zeros((1, 1))
        self._std = np.zeros((1, 1))
        self._clear_observations()

    @classmethod
    def from_config(cls, config) -> 'GMRFHeightGrid':
        """Create an estimator with the weights of a DEMConfig."""
        return cls(
            lambda_prior=config.lambda_prior,
            lambda_obs=config.lambda_obs,
            skip_variance=config.skip_variance,
            obs_loss=config.obs_loss,
            variance_batch_size=config.variance_batch_size,
        )

    def _clear_observations(self):
        self._obs_cells = []
        self._obs_values = []
        self._obs_lambdas = []
        self._obs_invariant = []

    # ------------------------------------------------------------------
    # Configuration and geometry
    # ------------------------------------------------------------------

    def configure(self, prior_strength: float, obs_strength: float,
                  skip_variance: bool = False) -> None:
        if not prior_strength > 0 or not obs_strength > 0:
            raise InvalidConfiguration(
                f"Prior and observation strengths must be positive "
                f"(got {prior_strength}, {obs_strength})")
        self._lambda_prior = prior_strength
        self._lambda_obs = obs_strength
        self._skip_variance = skip_variance

    def resize(self, min_x: float, max_x: float, min_y: float, max_y: float,
               resolution: float, default_cell: Tuple[float, float] = (0.0, 0.0)) -> None:
        """
        Allocate a grid covering [min_x, max_x] x [min_y, max_y].

        The cell counts round up, so the upper bounds grow to
        ``min + count * resolution`` and never fall below the requested
        maximum. All previous observations are discarded.

        Parameters:
            min_x, max_x, min_y, max_y (float): Extent to cover
            resolution (float): Cell side length
            default_cell (Tuple[float, float]): Initial (mean, std) of every cell
        """
        if not (resolution > 0 and math.isfinite(resolution)):
            raise InvalidConfiguration(f"Resolution must be a positive number, got {resolution}")
        for lo, hi, axis in ((min_x, max_x, 'x'), (min_y, max_y, 'y')):
            if not (math.isfinite(lo) and math.isfinite(hi) and hi > lo):
                raise InvalidConfiguration(f"Invalid {axis} extent [{lo}, {hi}]")

        self._resolution = float(resolution)
        self._cols = self._cells_to_cover(max_x - min_x, self._resolution)
        self._rows = self._cells_to_cover(max_y - min_y, self._resolution)
        self._x_min = float(min_x)
        self._y_min = float(min_y)
        self._x_max = max(self._x_min + self._cols * self._resolution, float(max_x))
        self._y_max = max(self._y_min + self._rows * self._resolution, float(max_y))

        self._default_cell = (float(default_cell[0]), float(default_cell[1]))
        self._mean = np.full((self._rows, self._cols), self._default_cell[0])
        self._std = np.full((self._rows, self._cols), self._default_cell[1])
        self._clear_observations()

        logger.debug(f"GMRF grid resized to {self._rows}x{self._cols} cells "
                     f"(resolution {self._resolution:g})")

    @staticmethod
    def _cells_to_cover(span: float, resolution: float) -> int:
        """Smallest cell count with ``count * resolution >= span`` (up to float noise)."""
        return max(1, int(math.ceil(span / resolution - CELL_COUNT_TOLERANCE)))

    def size(self) -> Tuple[int, int]:
        return self._rows, self._cols

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        return (self._x_min, self._x_max, self._y_min, self._y_max)

    @property
    def resolution(self) -> float:
        return self._resolution

    @property
    def mean(self) -> np.ndarray:
        return self._mean

    @property
    def std(self) -> np.ndarray:
        return self._std

    @property
    def n_observations(self) -> int:
        return len(self._obs_cells)

    def cell_of(self, x: float, y: float) -> Tuple[int, int]:
        """
        Return the (row, col) of the cell containing (x, y).

        The extent is inclusive: a point on the upper edge belongs to the
        last row/column.
        """
        if not (self._x_min <= x <= self._x_max and self._y_min <= y <= self._y_max):
            raise OutOfBounds(x, y, self.extent)
        col = min(int(math.floor((x - self._x_min) / self._resolution)), self._cols - 1)
        row = min(int(math.floor((y - self._y_min) / self._resolution)), self._rows - 1)
        return row, col

    # ------------------------------------------------------------------
    # Observations and estimation
    # ------------------------------------------------------------------

    def insert_observation(self, z: float, x: float, y: float,
                           update_now: bool = False, time_invariant: bool = True,
                           stddev: Optional[float] = None) -> None:
        """
        Record a height observation at (x, y).

        Parameters:
            z (float): Observed height
            x, y (float): Observation coordinates
            update_now (bool): Solve the field right after inserting
            time_invariant (bool): False makes the reading fade by ``obs_loss``
                on every solve
            stddev (Optional[float]): Observation std dev; the configured
                default precision is used when None
        """
        row, col = self.cell_of(x, y)

        if stddev is None:
            lam = self._lambda_obs
        else:
            if not stddev > 0:
                raise InputError(f"Observation std dev must be positive, got {stddev} at ({x}, {y})")
            lam = 1.0 / (stddev * stddev)

        self._obs_cells.append(row * self._cols + col)
        self._obs_values.append(float(z))
        self._obs_lambdas.append(lam)
        self._obs_invariant.append(bool(time_invariant))

        if update_now:
            self.solve()

    def _decay_time_variant(self):
        """Drop precision of time-variant readings, forgetting exhausted ones."""
        if self._obs_loss <= 0 or all(self._obs_invariant):
            return
        kept = []
        for k, invariant in enumerate(self._obs_invariant):
            if not invariant:
                self._obs_lambdas[k] -= self._obs_loss
                if self._obs_lambdas[k] <= 0:
                    continue
            kept.append(k)
        if len(kept) < len(self._obs_cells):
            logger.debug(f"Forgot {len(self._obs_cells) - len(kept)} exhausted time-variant readings")
        self._obs_cells = [self._obs_cells[k] for k in kept]
        self._obs_values = [self._obs_values[k] for k in kept]
        self._obs_lambdas = [self._obs_lambdas[k] for k in kept]
        self._obs_invariant = [self._obs_invariant[k] for k in kept]

    def precision_system(self) -> Tuple[sparse.csc_matrix, np.ndarray]:
        """
        Build the sparse precision matrix H and information vector g.

        Returns:
            Tuple[sparse.csc_matrix, np.ndarray]: H (n x n) and g (n,)
        """
        n_cells = self._rows * self._cols
        cells = np.asarray(self._obs_cells, dtype=np.intp)
        lambdas = np.asarray(self._obs_lambdas, dtype=np.float64)
        values = np.asarray(self._obs_values, dtype=np.float64)

        obs_precision = np.bincount(cells, weights=lambdas, minlength=n_cells)
        information = np.bincount(cells, weights=lambdas * values, minlength=n_cells)

        H = self._lambda_prior * grid_laplacian(self._rows, self._cols) + sparse.diags(obs_precision)
        return H.tocsc(), information

    def solve(self) -> None:
        """
        Recompute posterior mean (and variance unless skipped) of all cells.

        With no observations the grid keeps its default cell values.
        """
        self._decay_time_variant()

        if not self._obs_cells:
            logger.warning("GMRF solve called without observations; keeping default cell values")
            return

        n_cells = self._rows * self._cols
        H, g = self.precision_system()
        logger.info(f"GMRF: {n_cells} cells, {len(self._obs_cells)} observations, "
                    f"H nnz={H.nnz}")

        factor = splu(H, permc_spec='MMD_AT_PLUS_A', diag_pivot_thresh=0.0,
                      options={'SymmetricMode': True})
        self._mean = factor.solve(g).reshape(self._rows, self._cols)

        if self._skip_variance:
            logger.debug("GMRF: variance estimation skipped")
            return

        variance = self._inverse_diagonal(factor, n_cells)
        self._std = np.sqrt(np.clip(variance, 0.0, None)).reshape(self._rows, self._cols)

    def _inverse_diagonal(self, factor, n_cells: int) -> np.ndarray:
        """Diagonal of H^-1 from batched solves against identity columns."""
        variance = np.empty(n_cells)
        batch = self._variance_batch_size
        for start in range(0, n_cells, batch):
            stop = min(start + batch, n_cells)
            idx = np.arange(start, stop)
            rhs = np.zeros((n_cells, stop - start))
            rhs[idx, idx - start] = 1.0
            columns = factor.solve(rhs)
            variance[start:stop] = columns[idx, idx - start]
        return variance

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def _has_bilinear_support(self, x: float, y: float) -> bool:
        half = 0.5 * self._resolution
        return (self._cols > 1 and self._rows > 1
                and self._x_min + half <= x <= self._x_max - half
                and self._y_min + half <= y <= self._y_max - half)

    def predict(self, x: float, y: float,
                interpolation: Interpolation = Interpolation.NEAREST) -> Tuple[float, float]:
        """
        Predict height and its std dev at (x, y).

        Bilinear interpolation blends the four cell centres around (x, y).
        Within half a cell of the border, where four neighbours do not exist,
        it falls back to the containing cell.

        Parameters:
            x, y (float): Query coordinates
            interpolation (Interpolation): NEAREST or BILINEAR

        Returns:
            Tuple[float, float]: (predicted z, predicted std)
        """
        interpolation = Interpolation(interpolation)
        row, col = self.cell_of(x, y)

        if interpolation is Interpolation.NEAREST or not self._has_bilinear_support(x, y):
            return float(self._mean[row, col]), float(self._std[row, col])

        res = self._resolution
        col0 = min(int(math.floor((x - self._x_min) / res - 0.5)), self._cols - 1)
        row0 = min(int(math.floor((y - self._y_min) / res - 0.5)), self._rows - 1)
        col1 = min(col0 + 1, self._cols - 1)
        row1 = min(row0 + 1, self._rows - 1)

        tx = min(max((x - (self._x_min + (col0 + 0.5) * res)) / res, 0.0), 1.0)
        ty = min(max((y - (self._y_min + (row0 + 0.5) * res)) / res, 0.0), 1.0)

        weights = ((1 - tx) * (1 - ty), tx * (1 - ty), (1 - tx) * ty, tx * ty)
        cells = ((row0, col0), (row0, col1), (row1, col0), (row1, col1))

        z = sum(w * self._mean[c] for w, c in zip(weights, cells))
        s = sum(w * self._std[c] for w, c in zip(weights, cells))
        return float(z), float(s)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_representation(self, prefix: Union[str, Path]) -> Dict[str, str]:
        """
        Save the estimated map as plain-text matrices, ESRI ASCII grid and PNG.

        Matrix files keep grid order (first line = lowest y); the ASCII grid
        is north-up as the format requires.

        Parameters:
            prefix (Union[str, Path]): Filename prefix, e.g. ``out_grmf``

        Returns:
            Dict[str, str]: Mapping of artifact names to file paths
        """
        prefix = str(prefix)
        grid_io = GridIO()
        saved = {}

        mean_txt = Path(prefix + '_mean.txt')
        std_txt = Path(prefix + '_std.txt')
        grid_io.write_grid(self._mean, mean_txt)
        grid_io.write_grid(self._std, std_txt)
        saved['mean_txt'] = str(mean_txt)
        saved['std_txt'] = str(std_txt)

        mean_asc = Path(prefix + '_mean.asc')
        grid_io.write_grid(np.flipud(self._mean), mean_asc, extent=self.extent)
        saved['mean_asc'] = str(mean_asc)

        mean_png = Path(prefix + '_mean.png')
        save_grid_png(self._mean, self.extent, mean_png, title='DEM posterior mean', label='Height')
        saved['mean_png'] = str(mean_png)

        return saved

    def export_render_script(self, path: Union[str, Path]) -> Path:
        xs, ys = self.cell_centers()
        return write_matlab_surface_script(path, xs, ys, self._mean, self._std)
