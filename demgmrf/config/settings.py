"""
Pipeline Configuration
======================

Explicit configuration value object for a single dem-gmrf run. Replaces
command-line singletons: every component receives the values it needs
from a DEMConfig instance.
"""

import json
import dataclasses
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger

from ..errors import InvalidConfiguration


@dataclass(frozen=True)
class DEMConfig:
    """Complete configuration of a DEM estimation run."""
    input_path: Optional[str] = None
    resolution: float = 1.0              # cell side length, same unit as x/y
    output_prefix: str = "demgmrf_out"
    checkpoint_ratio: float = 0.01       # 0.0 = no checkpoints, 1.0 = all points
    std_prior: float = 1.0               # smoothness/tolerance of the terrain
    std_obs: float = 0.20                # default std dev of one XYZ observation
    skip_variance: bool = False
    no_gui: bool = False
    seed: Optional[int] = None           # None = seed from wall-clock time
    border: float = 10.0                 # margin added around the data bbox
    z_nodata_threshold: float = 1e6      # |z| at or above this is "no data"
    variance_batch_size: int = 256       # identity columns per variance solve
    obs_loss: float = 0.0                # precision lost per solve by time-variant readings

    @classmethod
    def create_default(cls) -> 'DEMConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'DEMConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidConfiguration(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**values)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'DEMConfig':
        """
        Load configuration from a JSON file.

        Parameters:
            config_path (Union[str, Path]): Path of the JSON settings file

        Returns:
            DEMConfig: Configuration with file values over the defaults
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise InvalidConfiguration(f"Config file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_dict = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidConfiguration(f"Failed to load config from {config_path}: {e}") from e

        if not isinstance(config_dict, dict):
            raise InvalidConfiguration(f"Config file must contain a JSON object: {config_path}")

        logger.debug(f"Loaded configuration from {config_path}")
        return cls.from_dict(config_dict)

    def save_to_file(self, config_path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            json.dump(asdict(self), f, indent=2)

        logger.info(f"Configuration saved to: {config_path}")

    def replace(self, **overrides) -> 'DEMConfig':
        """Return a copy with the given (non-None) values overridden."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    @property
    def lambda_prior(self) -> float:
        return 1.0 / self.std_prior ** 2

    @property
    def lambda_obs(self) -> float:
        return 1.0 / self.std_obs ** 2

    def validate(self) -> None:
        """
        Check every option before any heavy computation starts.

        Raises:
            InvalidConfiguration: On the first out-of-range value
        """
        if not self.input_path:
            raise InvalidConfiguration("An input point file is required")
        if not 0.0 <= self.checkpoint_ratio <= 1.0:
            raise InvalidConfiguration(
                f"Checkpoint ratio must be in [0, 1], got {self.checkpoint_ratio}")
        if not self.resolution > 0:
            raise InvalidConfiguration(f"Resolution must be positive, got {self.resolution}")
        if not self.std_prior > 0:
            raise InvalidConfiguration(f"Prior std dev must be positive, got {self.std_prior}")
        if not self.std_obs > 0:
            raise InvalidConfiguration(f"Observation std dev must be positive, got {self.std_obs}")
        if self.border < 0:
            raise InvalidConfiguration(f"Border must be non-negative, got {self.border}")
        if not self.z_nodata_threshold > 0:
            raise InvalidConfiguration(
                f"No-data threshold must be positive, got {self.z_nodata_threshold}")
        if self.variance_batch_size < 1:
            raise InvalidConfiguration(
                f"Variance batch size must be at least 1, got {self.variance_batch_size}")
        if self.obs_loss < 0:
            raise InvalidConfiguration(f"Observation loss must be non-negative, got {self.obs_loss}")
        if not self.output_prefix:
            raise InvalidConfiguration("Output prefix must not be empty")
