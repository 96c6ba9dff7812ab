"""
Point Dataset Reader
====================

Reads plain-text XYZ point tables (``x y z`` or ``x y z stddev`` per row,
whitespace- or comma-delimited) into a column-oriented point table.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd
from loguru import logger

from ..errors import InputError


@dataclass(frozen=True)
class PointTable:
    """
    Immutable column-oriented table of point observations.

    ``stddev`` is None when the source file had exactly three columns, in
    which case every point uses the configured default observation std dev.
    """
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    stddev: Optional[np.ndarray] = None
    n_columns: int = 3

    def __post_init__(self):
        for column in (self.x, self.y, self.z, self.stddev):
            if column is not None:
                column.setflags(write=False)

    @property
    def n_points(self) -> int:
        return len(self.x)

    def __len__(self) -> int:
        return self.n_points

    @property
    def has_stddev(self) -> bool:
        return self.stddev is not None

    def point_stddev(self, index: int, default: float) -> float:
        """Std dev of one point: its own column-4 value or ``default``."""
        if self.stddev is None:
            return default
        return float(self.stddev[index])

    def xyz(self, indices=None) -> np.ndarray:
        """Return an (M, 3) array of the selected points (all when None)."""
        data = np.column_stack((self.x, self.y, self.z))
        if indices is None:
            return data
        return data[np.asarray(indices, dtype=np.intp)]

    @classmethod
    def from_array(cls, data: np.ndarray) -> 'PointTable':
        """
        Build a table from an N x C array (C >= 3).

        Parameters:
            data (np.ndarray): Raw numeric table

        Returns:
            PointTable: Table with column 4 used as stddev when present
        """
        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2 or data.shape[1] < 3:
            raise InputError(f"Point table needs at least 3 columns, got shape {data.shape}")

        stddev = data[:, 3].copy() if data.shape[1] >= 4 else None
        return cls(
            x=data[:, 0].copy(),
            y=data[:, 1].copy(),
            z=data[:, 2].copy(),
            stddev=stddev,
            n_columns=data.shape[1],
        )


class PointReader:
    """
    Reader for plain-text point datasets.

    Comment lines starting with ``%`` or ``#`` and blank lines are skipped.
    Values are not checked further: NaN and Inf pass through unchanged.
    """

    SEPARATOR = r'[,\s]+'
    COMMENT_CHARS = ('%', '#')

    def read_table(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """
        Parse the point file into a numeric dataframe without header.

        Parameters:
            file_path (Union[str, Path]): Path to the point file

        Returns:
            pd.DataFrame: N x C numeric table
        """
        file_path = Path(file_path)

        if not file_path.is_file():
            raise InputError(f"Input file not found: {file_path}")

        try:
            with open(file_path, 'r') as f:
                lines = [line.strip() for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"Could not read input file {file_path}: {e}") from e

        rows = [line for line in lines if line and not line.startswith(self.COMMENT_CHARS)]
        if not rows:
            raise InputError(f"Input file contains no points: {file_path}")

        try:
            df = pd.read_csv(
                io.StringIO('\n'.join(rows)),
                sep=self.SEPARATOR,
                header=None,
                engine='python',
                dtype=np.float64,
            )
        except (ValueError, pd.errors.ParserError) as e:
            raise InputError(f"Could not parse point file {file_path}: {e}") from e

        return df

    def read_points(self, file_path: Union[str, Path]) -> PointTable:
        """
        Read a point file and validate its column count.

        Parameters:
            file_path (Union[str, Path]): Path to the point file

        Returns:
            PointTable: Loaded points
        """
        df = self.read_table(file_path)
        n_rows, n_cols = df.shape

        if n_cols < 3:
            raise InputError(
                f"Point file must have at least 3 columns (x y z), got {n_cols}: {file_path}")

        logger.info(f"Read {n_rows} points with {n_cols} columns from {Path(file_path).name}")
        if n_cols > 4:
            logger.warning(f"Ignoring {n_cols - 4} extra column(s) beyond x y z stddev")

        return PointTable.from_array(df.to_numpy(dtype=np.float64))
