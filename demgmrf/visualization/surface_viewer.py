"""
DEM Surface Plots
=================

Map images of estimated grids and the optional interactive 3-D viewer shown
at the end of a run. The viewer only reads the finished grids; it never
affects the files written by the pipeline.
"""

from pathlib import Path
from typing import Tuple, Union

import numpy as np
import matplotlib.pyplot as plt
from loguru import logger


def _robust_limits(grid: np.ndarray) -> Tuple[float, float]:
    valid = grid[np.isfinite(grid)]
    if len(valid) == 0:
        return 0.0, 1.0
    vmin, vmax = np.percentile(valid, 2), np.percentile(valid, 98)
    if vmin == vmax:
        vmin, vmax = vmin - 0.5, vmax + 0.5
    return float(vmin), float(vmax)


def save_grid_png(grid: np.ndarray, extent: Tuple[float, float, float, float],
                  output_file: Union[str, Path], title: str = 'DEM',
                  label: str = 'Value', cmap: str = 'terrain') -> Path:
    """
    Save a PNG image of a grid (row 0 at the bottom).

    Parameters:
        grid (np.ndarray): Grid data, shape (rows, cols)
        extent (Tuple): Grid extent (x_min, x_max, y_min, y_max)
        output_file (Union[str, Path]): Output PNG file path
        title (str): Plot title
        label (str): Colorbar label
        cmap (str): Matplotlib colormap name

    Returns:
        Path: The written image
    """
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    vmin, vmax = _robust_limits(grid)

    fig = plt.figure(figsize=(10, 8))
    try:
        im = plt.imshow(grid, extent=extent, origin='lower',
                        cmap=cmap, vmin=vmin, vmax=vmax, aspect='equal')
        cbar = plt.colorbar(im, shrink=0.8)
        cbar.set_label(label, fontsize=12)

        plt.xlabel('X', fontsize=12)
        plt.ylabel('Y', fontsize=12)
        plt.title(title, fontsize=14, fontweight='bold')
        plt.grid(True, alpha=0.3)
        plt.tight_layout()

        plt.savefig(output_file, dpi=150, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
    finally:
        plt.close(fig)

    logger.debug(f"Created PNG visualization: {output_file}")
    return output_file


class SurfaceViewer:
    """
    Interactive 3-D view of the posterior mean and std dev surfaces.

    A terminal consumer of the finished estimator: it receives the grids and
    renders them, and is skipped entirely with ``--no-gui``.
    """

    def __init__(self, max_cells_per_axis: int = 200):
        self.max_cells_per_axis = max_cells_per_axis

    def _stride(self, n: int) -> int:
        return max(1, int(np.ceil(n / self.max_cells_per_axis)))

    def build_figure(self, xs: np.ndarray, ys: np.ndarray,
                     mean: np.ndarray, std: np.ndarray):
        """Create the figure with mean and std surfaces side by side."""
        X, Y = np.meshgrid(xs, ys)
        rstride = self._stride(mean.shape[0])
        cstride = self._stride(mean.shape[1])

        fig = plt.figure(figsize=(14, 6))
        ax_mean = fig.add_subplot(1, 2, 1, projection='3d')
        ax_mean.plot_surface(X, Y, mean, cmap='terrain', rstride=rstride,
                             cstride=cstride, linewidth=0, antialiased=False)
        ax_mean.set_title('Posterior mean')
        ax_mean.set_xlabel('X')
        ax_mean.set_ylabel('Y')
        ax_mean.set_zlabel('Z')

        ax_std = fig.add_subplot(1, 2, 2, projection='3d')
        ax_std.plot_surface(X, Y, std, cmap='viridis', rstride=rstride,
                            cstride=cstride, linewidth=0, antialiased=False)
        ax_std.set_title('Posterior std dev')
        ax_std.set_xlabel('X')
        ax_std.set_ylabel('Y')
        ax_std.set_zlabel('std')

        fig.tight_layout()
        return fig

    def show(self, estimator) -> None:
        """Render the estimator grids and block until the window is closed."""
        xs, ys = estimator.cell_centers()
        try:
            self.build_figure(xs, ys, estimator.mean, estimator.std)
            logger.info("Showing 3D view; close the window to finish")
            plt.show()
        except Exception as e:
            # Viewer is optional: a missing display must not fail a finished run
            logger.warning(f"3D viewer not available: {e}")
        finally:
            plt.close('all')
