"""Configuration management for longshot."""

from pathlib import Path

from platformdirs import user_data_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LongshotConfig(BaseSettings):
    """Configuration settings for longshot."""

    # Dataset locations
    data_dir: Path = Field(
        default_factory=lambda: Path(user_data_dir("longshot")),
        description="Directory holding the historical season-statistics datasets",
        alias="LONGSHOT_DATA_DIR",
    )

    qb_dataset: str = Field(
        default="qb_season_stats.json",
        description="Quarterback season dataset file name (json, parquet or csv)",
        alias="LONGSHOT_QB_DATASET",
    )

    skill_dataset: str = Field(
        default="skill_position_season_stats.json",
        description="Skill-position season dataset file name (json, parquet or csv)",
        alias="LONGSHOT_SKILL_DATASET",
    )

    # Calibration
    calibration_path: Path | None = Field(
        default=None,
        description="Optional YAML or JSON calibration overrides",
        alias="LONGSHOT_CALIBRATION",
    )

    # Progress and logging
    log_level: str = Field(
        default="WARNING",
        description="Log level used by the command line interface",
        alias="LONGSHOT_LOG_LEVEL",
    )

    verbose: bool = Field(
        default=False,
        description="Include diagnostic trace fields in CLI output",
        alias="LONGSHOT_VERBOSE",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def qb_dataset_path(self) -> Path:
        return self.data_dir / self.qb_dataset

    @property
    def skill_dataset_path(self) -> Path:
        return self.data_dir / self.skill_dataset


# Global configuration instance
config = LongshotConfig()


def get_config() -> LongshotConfig:
    """Get the current configuration."""
    return config


def update_config(**kwargs) -> None:
    """Update configuration settings."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration option: {key}")


def reset_config() -> None:
    """Reset configuration to defaults."""
    global config
    config = LongshotConfig()
