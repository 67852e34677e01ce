"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings pulled from PY_TERRAIN_* environment variables.

    Only defaults live here. Every generation entry point takes its
    parameters explicitly, and explicit arguments always win.
    """

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Terrain Defaults
    default_grid_size: int = Field(default=256, description="Default heightmap width and height")
    default_num_hills: int = Field(default=2, description="Default number of hills")
    default_max_hill_radius: float = Field(default=64.0, description="Default maximum hill radius in cells")
    default_roughness: float = Field(default=0.5, description="Default noise roughness factor")

    # Plant Defaults
    default_num_cells: int = Field(default=40, description="Default number of partition cells")
    default_plant_size: float = Field(default=0.5, description="Default plant size in world units")
    default_cell_spacing: float = Field(default=1.0, description="World distance between grid cells")
    default_height_scale: float = Field(default=40.0, description="World height of a heightmap value of 1")

    # Scheduling
    placement_batch_size: int = Field(default=1000, description="Cells processed between yields")

    model_config = SettingsConfigDict(
        env_prefix="PY_TERRAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
