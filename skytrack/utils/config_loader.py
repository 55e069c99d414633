"""
Configuration management for the SkyTrack service.
Loads YAML configs with validation and environment variable support.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

CONFIG_DIR_ENV = "SKYTRACK_CONFIG_DIR"


class EngineConfig(BaseModel):
    """
    Configuration for the track reconciliation engine.

    Fixed at engine construction. All distance thresholds are expressed in
    the units of ``distance_metric``: coordinate degrees for ``degrees``,
    meters for ``haversine``.
    """

    # Identity resolution
    proximity_threshold: float = Field(0.05, gt=0, description="Max distance for matching an existing track")
    id_mode: str = Field("pool", pattern="^(pool|unbounded)$", description="Track id allocation policy")
    pool_size: int = Field(8, ge=1, description="Number of reusable ids in pool mode")
    distance_metric: str = Field("degrees", pattern="^(degrees|haversine)$", description="Distance metric")

    # Smoothing and trail policy
    smoothing_alpha: float = Field(0.35, gt=0, lt=1, description="Exponential blend factor toward the raw position")
    big_jump_threshold: float = Field(0.02, gt=0, description="Distance that resets the trail instead of appending")
    max_trail_points: int = Field(500, ge=2, description="Trail length bound (oldest points dropped first)")
    duplicate_epsilon: float = Field(1e-5, ge=0, description="Movement below which a point counts as a duplicate")
    trail_seed_offset: float = Field(1e-6, gt=0, description="Offset of the second seed point on new trails (degrees)")

    class Config:
        """Pydantic config."""
        frozen = True


class APIConfig(BaseModel):
    """Configuration for API server."""

    host: str = Field("0.0.0.0", description="API host")
    port: int = Field(9013, ge=1024, le=65535, description="API port")
    reload: bool = Field(False, description="Auto-reload on code changes")

    # Push channel
    broadcast_interval_s: float = Field(0.5, gt=0, le=60, description="Seconds between snapshot broadcasts")

    # Security
    enable_cors: bool = Field(True, description="Enable CORS")
    cors_origins: List[str] = Field(
        ["http://localhost:5173", "http://localhost:9013"],
        description="Allowed CORS origins",
    )

    class Config:
        """Pydantic config."""
        validate_assignment = True


class Config:
    """Main configuration manager."""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory containing configuration files. Defaults to
                ``$SKYTRACK_CONFIG_DIR`` or ``config``.
        """
        if config_dir is None:
            config_dir = Path(os.environ.get(CONFIG_DIR_ENV, "config"))
        self.config_dir = Path(config_dir)
        self.tracking: Optional[EngineConfig] = None
        self.api: Optional[APIConfig] = None

    def load_all(self):
        """Load all configuration files."""
        self.tracking = self.load_config("tracking.yaml", EngineConfig)
        self.api = self.load_config("api.yaml", APIConfig)

    def load_config(self, filename: str, config_class: type[BaseModel]) -> BaseModel:
        """
        Load and validate a configuration file.

        Args:
            filename: Config file name
            config_class: Pydantic model class for validation

        Returns:
            Validated configuration object

        Example:
            >>> config = Config()
            >>> engine_config = config.load_config("tracking.yaml", EngineConfig)
            >>> print(f"Pool of {engine_config.pool_size} ids")
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            return config_class()

        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            return config_class()

        return config_class(**config_dict)

    def save_config(self, config: BaseModel, filename: str):
        """
        Save configuration to YAML file.

        Args:
            config: Configuration object to save
            filename: Output filename
        """
        filepath = self.config_dir / filename
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

    def create_default_configs(self):
        """Create default configuration files if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        configs = [
            ("tracking.yaml", EngineConfig()),
            ("api.yaml", APIConfig()),
        ]

        for filename, config in configs:
            filepath = self.config_dir / filename
            if not filepath.exists():
                self.save_config(config, filename)


if __name__ == "__main__":
    config_manager = Config()
    config_manager.create_default_configs()
    config_manager.load_all()

    print(f"Tracking: {config_manager.tracking.id_mode} ids, "
          f"proximity {config_manager.tracking.proximity_threshold} ({config_manager.tracking.distance_metric})")
    print(f"API: {config_manager.api.host}:{config_manager.api.port}")
