"""Configuration modules for dem-gmrf."""

from .settings import DEMConfig

__all__ = ["DEMConfig"]
