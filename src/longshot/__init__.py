"""
longshot: calibrated odds for free-text sports hypotheticals.

This package turns prompts such as "Josh Allen throws 30 touchdowns this
season" into a probability and an American-odds quote, using rare-event
baselines, historical season rates and multi-season outcome distributions.
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - exercised in packaging workflows
    __version__ = version("longshot")
except PackageNotFoundError:  # pragma: no cover - local editable installs
    __version__ = "0.0.0"

_EXPORTS = {
    # Engine
    "OddsEngine": ".engine.pipeline",
    "EstimateRequest": ".engine.pipeline",
    "estimate": ".engine.pipeline",
    "Estimate": ".engine.models",
    "PlayerProfile": ".engine.models",
    "Calibration": ".engine.configuration",
    "load_calibration": ".engine.configuration",
    "build_player_outcomes": ".engine.outcomes",
    "to_american_odds": ".engine.utils",
    "from_american_odds": ".engine.utils",
    # Datasets
    "load_season_dataset": ".datasets",
    "clear_cache": ".cache",
    # Utility functions
    "get_current_season": ".utils_date",
    "get_config": ".config",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:  # pragma: no cover - thin lazy importer
    from importlib import import_module

    target_module = _EXPORTS.get(name)
    if not target_module:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    module = import_module(target_module, __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:  # pragma: no cover - trivial
    return sorted(list(globals().keys()) + __all__)
