"""
Grid I/O Operations
===================

Plain-text matrices, ESRI ASCII grids and numpy arrays for DEM rasters.
"""

import numpy as np
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from loguru import logger

from ..errors import InputError

NODATA_VALUE = -9999
ASCII_HEADER_KEYS = ('ncols', 'nrows', 'xllcorner', 'yllcorner', 'cellsize', 'nodata_value')

Extent = Tuple[float, float, float, float]


class GridIO:
    """
    Reader/writer of DEM grids, selected by file extension.

    ``.txt`` holds the bare matrix (first line = grid row 0), ``.asc`` an
    ESRI ASCII grid whose first data line is the northern edge, and
    ``.npy`` a numpy array.
    """

    def __init__(self):
        self._readers = {
            '.txt': self._read_matrix,
            '.asc': self._read_ascii,
            '.npy': self._read_numpy,
        }
        self._writers = {
            '.txt': self._write_matrix,
            '.asc': self._write_ascii,
            '.npy': self._write_numpy,
        }

    @property
    def supported_formats(self):
        return sorted(self._readers)

    def read_grid(self, file_path: Union[str, Path]) -> Tuple[np.ndarray, Dict]:
        """
        Load a grid and its metadata.

        Parameters:
            file_path (Union[str, Path]): Grid file

        Returns:
            Tuple[np.ndarray, Dict]: Grid values and format metadata
                (``extent`` is included for ASCII grids)
        """
        path = Path(file_path)
        if not path.is_file():
            raise InputError(f"Grid file not found: {path}")

        reader = self._readers.get(path.suffix.lower())
        if reader is None:
            raise InputError(f"Unsupported grid format: {path.suffix}")

        data, metadata = reader(path)
        logger.debug(f"Read {metadata['format']} grid {path.name}, shape {data.shape}")
        return data, metadata

    def write_grid(self, data: np.ndarray, file_path: Union[str, Path],
                   extent: Optional[Extent] = None) -> None:
        """
        Save a grid, creating the parent directory when needed.

        Parameters:
            data (np.ndarray): 2-D grid values
            file_path (Union[str, Path]): Target file, format from its extension
            extent (Optional[Extent]): (xmin, xmax, ymin, ymax), used by ``.asc``
        """
        path = Path(file_path)
        writer = self._writers.get(path.suffix.lower())
        if writer is None:
            raise ValueError(f"Unsupported output format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        writer(np.atleast_2d(data), path, extent)
        logger.debug(f"Wrote grid {path}")

    # ------------------------------------------------------------------

    @staticmethod
    def _read_matrix(path: Path) -> Tuple[np.ndarray, Dict]:
        data = np.loadtxt(path, ndmin=2)
        return data, {'shape': data.shape, 'format': 'matrix'}

    @staticmethod
    def _write_matrix(data: np.ndarray, path: Path, extent: Optional[Extent]) -> None:
        np.savetxt(path, data, fmt='%e')

    @staticmethod
    def _read_numpy(path: Path) -> Tuple[np.ndarray, Dict]:
        data = np.load(path)
        return data, {'shape': data.shape, 'format': 'numpy'}

    @staticmethod
    def _write_numpy(data: np.ndarray, path: Path, extent: Optional[Extent]) -> None:
        np.save(path, data)

    @staticmethod
    def _read_ascii(path: Path) -> Tuple[np.ndarray, Dict]:
        header = {}
        with open(path, 'r') as f:
            for line in f:
                key, _, value = line.strip().partition(' ')
                if key.lower() not in ASCII_HEADER_KEYS:
                    break
                header[key.lower()] = float(value)

        data = np.loadtxt(path, skiprows=len(header), ndmin=2)
        if 'nodata_value' in header:
            data[data == header['nodata_value']] = np.nan

        for key in ('ncols', 'nrows'):
            if key in header:
                header[key] = int(header[key])

        metadata = {'header': header, 'format': 'ascii', 'shape': data.shape}
        if {'xllcorner', 'yllcorner', 'cellsize'} <= header.keys():
            x0, y0, size = header['xllcorner'], header['yllcorner'], header['cellsize']
            rows, cols = data.shape
            metadata['extent'] = (x0, x0 + cols * size, y0, y0 + rows * size)
        return data, metadata

    @staticmethod
    def _write_ascii(data: np.ndarray, path: Path, extent: Optional[Extent]) -> None:
        rows, cols = data.shape
        if extent is None:
            x0, y0, size = 0.0, 0.0, 1.0
        else:
            x0, y0 = extent[0], extent[2]
            # ESRI grids have square cells
            size = min((extent[1] - extent[0]) / cols, (extent[3] - extent[2]) / rows)

        header = (('ncols', cols), ('nrows', rows), ('xllcorner', x0),
                  ('yllcorner', y0), ('cellsize', size), ('NODATA_value', NODATA_VALUE))

        values = np.where(np.isnan(data), NODATA_VALUE, data)
        with open(path, 'w') as f:
            for key, value in header:
                f.write(f"{key} {value}\n")
            np.savetxt(f, values, fmt='%.6f')
