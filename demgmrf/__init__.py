"""
dem-gmrf - DEM estimation with Gaussian Markov Random Fields

Builds a digital elevation model from scattered XYZ points and evaluates
it against randomly held-out checkpoints.
"""

__version__ = "0.1.0"

from .config.settings import DEMConfig
from .pipeline.dem_pipeline import DEMPipeline
from .core.gmrf import GMRFHeightGrid

__all__ = ["DEMConfig", "DEMPipeline", "GMRFHeightGrid"]
