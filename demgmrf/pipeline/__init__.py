"""Pipeline orchestration for DEM estimation runs."""

from .dem_pipeline import DEMPipeline

__all__ = ["DEMPipeline"]
