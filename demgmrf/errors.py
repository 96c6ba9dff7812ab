"""
Error types raised by the DEM estimation pipeline
"""


class DEMGMRFError(Exception):
    """Base class for all pipeline errors"""
    pass


class InputError(DEMGMRFError):
    """Missing, unreadable or malformed input point file"""
    pass


class InvalidConfiguration(DEMGMRFError):
    """Out-of-range option value (checkpoint ratio, resolution, std devs...)"""
    pass


class OutOfBounds(DEMGMRFError):
    """A coordinate falls outside the extent of the estimator grid"""

    def __init__(self, x: float, y: float, extent=None):
        self.x = x
        self.y = y
        self.extent = extent
        message = f"Point ({x:.3f}, {y:.3f}) is outside the grid"
        if extent is not None:
            message += (f" x=[{extent[0]:.3f}, {extent[1]:.3f}]"
                        f" y=[{extent[2]:.3f}, {extent[3]:.3f}]")
        super().__init__(message)
