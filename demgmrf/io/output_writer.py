"""
Output Writer
=============

Plain-text artifacts of a run, all named ``<prefix><suffix>``:

- ``_pts_map.txt`` / ``_pts_chk.txt``: inserted and checkpoint points
- ``_chkpt_residuals_{NN,Bi}.txt``: one residual per line
- ``_chkpt_residuals_{NN,Bi}_stats.txt``: header + the six statistics, one per line
"""

from pathlib import Path
from typing import Dict, Union

import numpy as np
from loguru import logger

from ..core.statistics import STATS_COLUMNS, ResidualStats

SUFFIX_POINTS_MAP = '_pts_map.txt'
SUFFIX_POINTS_CHECKPOINTS = '_pts_chk.txt'
SUFFIX_RESIDUALS = {
    'nearest': '_chkpt_residuals_NN.txt',
    'bilinear': '_chkpt_residuals_Bi.txt',
}
SUFFIX_STATS = {
    'nearest': '_chkpt_residuals_NN_stats.txt',
    'bilinear': '_chkpt_residuals_Bi_stats.txt',
}
SUFFIX_MAP = '_grmf'
SUFFIX_RENDER_SCRIPT = '_grmf_draw.m'

STATS_HEADER = ' '.join(STATS_COLUMNS)


class OutputWriter:
    """Writes run artifacts next to a caller-supplied filename prefix."""

    def __init__(self, prefix: Union[str, Path]):
        self.prefix = str(prefix)
        parent = Path(self.prefix).parent
        parent.mkdir(parents=True, exist_ok=True)

    def path_for(self, suffix: str) -> Path:
        return Path(self.prefix + suffix)

    def write_points(self, xyz: np.ndarray, suffix: str) -> Path:
        """
        Write points as ``x, y, z`` lines (``%f`` precision).

        Parameters:
            xyz (np.ndarray): (M, 3) array of points, may be empty
            suffix (str): Filename suffix

        Returns:
            Path: The written file
        """
        path = self.path_for(suffix)
        xyz = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
        with open(path, 'w') as f:
            for x, y, z in xyz:
                f.write(f"{x:f}, {y:f}, {z:f}\n")
        logger.debug(f"Wrote {len(xyz)} points to {path}")
        return path

    def write_residuals(self, residuals: np.ndarray, policy: str) -> Path:
        """Write one residual per line for ``policy`` ('nearest' or 'bilinear')."""
        path = self.path_for(SUFFIX_RESIDUALS[policy])
        np.savetxt(path, np.asarray(residuals, dtype=np.float64).reshape(-1, 1), fmt='%e')
        logger.debug(f"Wrote {len(residuals)} {policy} residuals to {path}")
        return path

    def write_stats(self, stats: ResidualStats, policy: str) -> Path:
        """Write the header line and the six statistics of ``policy`` as a column."""
        path = self.path_for(SUFFIX_STATS[policy])
        np.savetxt(path, stats.as_array().reshape(-1, 1), fmt='%e',
                   header=STATS_HEADER, comments='% ')
        logger.debug(f"Wrote {policy} residual statistics to {path}")
        return path

    def write_checkpoint_results(self, residuals, stats: Dict[str, ResidualStats]) -> Dict[str, str]:
        """Write residual and statistics files of both interpolation policies."""
        saved = {}
        for policy in ('nearest', 'bilinear'):
            saved[f'residuals_{policy}'] = str(self.write_residuals(getattr(residuals, policy), policy))
            saved[f'stats_{policy}'] = str(self.write_stats(stats[policy], policy))
        return saved
