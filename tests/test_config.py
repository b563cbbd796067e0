"""Test configuration functionality."""

from pathlib import Path

import pytest

from longshot.config import (
    LongshotConfig,
    get_config,
    reset_config,
    update_config,
)


def test_config_defaults(monkeypatch):
    """Test default configuration values."""
    monkeypatch.delenv("LONGSHOT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("LONGSHOT_VERBOSE", raising=False)
    config = LongshotConfig()

    assert config.qb_dataset == "qb_season_stats.json"
    assert config.skill_dataset == "skill_position_season_stats.json"
    assert config.calibration_path is None
    assert config.log_level == "WARNING"
    assert config.verbose is False


def test_config_from_env(monkeypatch, tmp_path):
    """Test configuration from environment variables."""
    monkeypatch.setenv("LONGSHOT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LONGSHOT_QB_DATASET", "qb.parquet")
    monkeypatch.setenv("LONGSHOT_VERBOSE", "true")

    config = LongshotConfig()

    assert config.data_dir == tmp_path
    assert config.verbose is True
    assert config.qb_dataset_path == tmp_path / "qb.parquet"
    assert config.skill_dataset_path == tmp_path / "skill_position_season_stats.json"


def test_get_config():
    """Test getting global configuration."""
    config = get_config()
    assert isinstance(config, LongshotConfig)


def test_update_config():
    """Test updating configuration."""
    update_config(data_dir=Path("/tmp/longshot-data"), verbose=True)
    assert get_config().data_dir == Path("/tmp/longshot-data")
    assert get_config().verbose is True

    # Reset for other tests
    reset_config()


def test_update_config_invalid_key():
    """Test updating configuration with invalid key."""
    with pytest.raises(ValueError, match="Unknown configuration option"):
        update_config(invalid_key="value")


def test_reset_config(monkeypatch):
    """Test resetting configuration to defaults."""
    monkeypatch.delenv("LONGSHOT_VERBOSE", raising=False)
    update_config(verbose=True)
    assert get_config().verbose is True

    reset_config()
    assert get_config().verbose is False
