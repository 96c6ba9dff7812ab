"""Data I/O modules for point tables, grids and run artifacts."""

from .point_reader import PointReader, PointTable
from .grid_io import GridIO
from .output_writer import OutputWriter

__all__ = ["PointReader", "PointTable", "GridIO", "OutputWriter"]
