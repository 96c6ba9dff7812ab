"""
MATLAB/Octave render script export for estimated DEM surfaces
"""

import datetime
from pathlib import Path
from typing import Union

import numpy as np
from loguru import logger


def _format_vector(values: np.ndarray) -> str:
    return ' '.join(f'{v:.6f}' for v in values)


def _format_matrix(values: np.ndarray) -> str:
    return ';\n'.join(_format_vector(row) for row in values)


def write_matlab_surface_script(path: Union[str, Path], xs: np.ndarray, ys: np.ndarray,
                                mean: np.ndarray, std: np.ndarray) -> Path:
    """
    Write a .m script that draws the mean and std grids with ``surf``.

    Parameters:
        path (Union[str, Path]): Output script path
        xs (np.ndarray): x of column centres (length cols)
        ys (np.ndarray): y of row centres (length rows)
        mean, std (np.ndarray): Grids of shape (rows, cols)

    Returns:
        Path: The written script
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        '% DEM estimated by dem-gmrf: posterior mean and std dev surfaces',
        f'% Generated {datetime.datetime.now().isoformat(timespec="seconds")}',
        f'% Grid: {mean.shape[0]} rows x {mean.shape[1]} cols',
        '',
        f'x = [{_format_vector(xs)}];',
        f'y = [{_format_vector(ys)}];',
        '',
        f'Z_mean = [{_format_matrix(mean)}];',
        '',
        f'Z_std = [{_format_matrix(std)}];',
        '',
        '[X, Y] = meshgrid(x, y);',
        '',
        'figure;',
        "surf(X, Y, Z_mean, 'EdgeColor', 'none');",
        "title('DEM posterior mean'); xlabel('X'); ylabel('Y'); zlabel('Z');",
        'axis equal; colorbar; view(3);',
        '',
        'figure;',
        "surf(X, Y, Z_std, 'EdgeColor', 'none');",
        "title('DEM posterior std dev'); xlabel('X'); ylabel('Y'); zlabel('std');",
        'colorbar; view(3);',
        '',
    ]

    with open(path, 'w') as f:
        f.write('\n'.join(lines))

    logger.debug(f"Wrote render script: {path}")
    return path
