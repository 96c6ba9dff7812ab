"""Visualization modules for map images, render scripts and 3D views."""

from .surface_viewer import SurfaceViewer, save_grid_png
from .render_script import write_matlab_surface_script

__all__ = ["SurfaceViewer", "save_grid_png", "write_matlab_surface_script"]
