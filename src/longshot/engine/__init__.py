"""Probabilistic estimation core: prompt readers, rate and tail models, odds."""

_EXPORTS = {
    "OddsEngine": ".pipeline",
    "EstimateRequest": ".pipeline",
    "Estimate": ".models",
    "Intent": ".models",
    "PlayerProfile": ".models",
    "StatClaim": ".models",
    "CountDistribution": ".models",
    "Calibration": ".configuration",
    "ConfigurationError": ".configuration",
    "load_calibration": ".configuration",
    "normalize": ".normalization",
    "parse_intent": ".intent",
    "detect_baseline_event": ".baselines",
    "horizon_adjusted_probability": ".baselines",
    "parse_season_stat_intent": ".stat_claims",
    "rate": ".rates",
    "tail_probability": ".tail",
    "repair": ".consistency",
    "count_distribution": ".outcomes",
    "build_player_outcomes": ".outcomes",
    "build_performance_threshold_outcome": ".outcomes",
    "to_american_odds": ".utils",
    "from_american_odds": ".utils",
    "configure_logging": ".logging",
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
