from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    MutableMapping,
    Sequence,
)

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel, to_snake

logger = logging.getLogger(__name__)

ENVIRONMENT_VARIABLE = "LONGSHOT_CALIBRATION_ENV"
EXTRA_CONFIG_VARIABLE = "LONGSHOT_CALIBRATION_FILES"
ENV_OVERRIDE_PREFIX = "LONGSHOT_CALIBRATION__"

TIERS = ("elite", "high", "young", "default")


class ConfigurationError(ValueError):
    """Raised when calibration validation fails."""


def _merge_layers(base: Dict[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in layer.items():
        if (
            key in merged
            and isinstance(merged[key], Mapping)
            and isinstance(value, Mapping)
        ):
            merged[key] = _merge_layers(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _over_defaults(defaults: Mapping[str, Any]) -> Callable[[Any], Any]:
    """Before-validator that layers a partial table over its built-in defaults."""

    def merge(value: Any) -> Any:
        if value is None:
            return copy.deepcopy(dict(defaults))
        if not isinstance(value, Mapping):
            return value
        layer = {str(key): item for key, item in value.items()}
        return _merge_layers(copy.deepcopy(dict(defaults)), layer)

    return merge


def _table(defaults: Mapping[str, Any]) -> Any:
    return Field(default_factory=lambda: copy.deepcopy(dict(defaults)))


class _Section(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Built-in tables
# ---------------------------------------------------------------------------

DEFAULT_PASSING_TDS_MEAN = {"elite": 33.0, "high": 28.0, "young": 22.0, "default": 24.0}
DEFAULT_PASSING_INTERCEPTIONS_MEAN = {"elite": 9.0, "high": 10.5, "young": 12.5, "default": 11.0}
DEFAULT_PASSING_YARDS_MEAN = {"elite": 4650.0, "high": 4250.0, "young": 3650.0, "default": 3900.0}
DEFAULT_YARDS_PER_ATTEMPT = {"elite": 7.5, "high": 7.2, "young": 6.9, "default": 7.0}

DEFAULT_SKILL_FALLBACK = {
    "rushing_yards": {"rb": 760.0, "wr": 95.0, "te": 15.0, "qb": 240.0, "other": 40.0},
    "rushing_tds": {"rb": 5.8, "wr": 0.7, "te": 0.3, "qb": 2.2, "other": 0.4},
    "receiving_yards": {"rb": 370.0, "wr": 840.0, "te": 620.0, "qb": 5.0, "other": 120.0},
    "receiving_tds": {"rb": 2.4, "wr": 5.5, "te": 4.8, "qb": 0.03, "other": 0.8},
    "receptions": {"rb": 38.0, "wr": 62.0, "te": 54.0, "qb": 0.1, "other": 12.0},
    "scrimmage_yards": {"rb": 1120.0, "wr": 920.0, "te": 640.0, "qb": 250.0, "other": 180.0},
    "total_tds": {"rb": 8.2, "wr": 6.2, "te": 5.1, "qb": 2.2, "other": 1.2},
}

DEFAULT_DISPERSION_BUMPS = {
    "passing_interceptions": 1.6,
    "rushing_yards": 1.4,
    "receiving_yards": 1.4,
    "receptions": 1.4,
    "passing_yards": 9.5,
}

DEFAULT_PASSING_TD_CAPS = {
    "50": {"elite": 1.9, "high": 1.4, "young": 1.2, "default": 0.9},
    "45": {"elite": 8.0, "high": 6.2, "young": 5.1, "default": 4.2},
    "40": {"elite": 25.0, "high": 20.0, "young": 17.0, "default": 14.0},
}
DEFAULT_PASSING_TD_FLOORS = {
    "50": {"elite": 1.8, "high": 1.5, "young": 1.5, "default": 0.9},
}

DEFAULT_QB_TIERS = {
    "patrick mahomes": "elite",
    "josh allen": "elite",
    "joe burrow": "elite",
    "lamar jackson": "elite",
    "jalen hurts": "high",
    "justin herbert": "high",
    "cj stroud": "high",
    "drake maye": "young",
    "caleb williams": "young",
    "jayden daniels": "young",
}
DEFAULT_TIER_MULTIPLIERS = {
    "patrick mahomes": 2.6,
    "joe burrow": 2.0,
    "josh allen": 2.0,
    "lamar jackson": 2.0,
    "jalen hurts": 1.5,
    "justin herbert": 1.5,
    "cj stroud": 1.5,
    "drake maye": 0.9,
    "caleb williams": 0.9,
    "jayden daniels": 0.9,
}

DEFAULT_AWARD_BASE_PCT = {
    "mvp": {"qb": 4.2, "rb": 0.8, "receiver": 0.6, "defense": 0.15, "other": 0.08},
    "opoy": {"qb": 2.6, "rb": 2.0, "receiver": 1.8, "defense": 0.03, "other": 0.05},
    "dpoy": {"qb": 0.02, "rb": 0.02, "receiver": 0.02, "defense": 1.9, "other": 0.05},
    "allpro": {"qb": 6.2, "rb": 5.6, "receiver": 6.4, "defense": 5.8, "other": 3.0},
}
DEFAULT_AWARD_DECAY = {"mvp": 0.965, "opoy": 0.965, "dpoy": 0.965, "allpro": 0.965}


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class SeasonStatModelConfig(_Section):
    """Season rate model priors and blending constants."""

    passing_tds_mean: Annotated[Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_PASSING_TDS_MEAN))] = _table(DEFAULT_PASSING_TDS_MEAN)
    passing_interceptions_mean: Annotated[
        Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_PASSING_INTERCEPTIONS_MEAN))
    ] = _table(DEFAULT_PASSING_INTERCEPTIONS_MEAN)
    passing_yards_mean: Annotated[Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_PASSING_YARDS_MEAN))] = _table(DEFAULT_PASSING_YARDS_MEAN)
    yards_per_attempt: Annotated[Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_YARDS_PER_ATTEMPT))] = _table(DEFAULT_YARDS_PER_ATTEMPT)
    skill_fallback: Annotated[
        Dict[str, Dict[str, float]], BeforeValidator(_over_defaults(DEFAULT_SKILL_FALLBACK))
    ] = _table(DEFAULT_SKILL_FALLBACK)
    recency_weights: List[float] = Field(default_factory=lambda: [0.52, 0.30, 0.18])
    experience_factors: List[float] = Field(default_factory=lambda: [0.72, 0.82, 0.92, 1.0])
    qb_min_attempts: float = 120.0
    skill_min_games: float = 6.0
    early_career_td_boost: float = 1.07
    early_career_int_boost: float = 1.08
    trend_boost_slope: float = 0.24
    trend_boost_cap: float = 0.14


class TailModelConfig(_Section):
    """Dispersion rules, crossover points and tier caps for tail pricing."""

    dispersion_base: float = 6.2
    dispersion_single_season: float = 3.8
    dispersion_two_seasons: float = 4.8
    stale_dispersion_penalty: float = 0.8
    dispersion_bumps: Annotated[Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_DISPERSION_BUMPS))] = _table(DEFAULT_DISPERSION_BUMPS)
    normal_crossover: float = Field(default=120.0, gt=0)
    games_per_season: int = Field(default=17, ge=1)
    position_mismatch_pct: float = 0.1
    passing_td_caps: Annotated[
        Dict[str, Dict[str, float]], BeforeValidator(_over_defaults(DEFAULT_PASSING_TD_CAPS))
    ] = _table(DEFAULT_PASSING_TD_CAPS)
    passing_td_floors: Annotated[
        Dict[str, Dict[str, float]], BeforeValidator(_over_defaults(DEFAULT_PASSING_TD_FLOORS))
    ] = _table(DEFAULT_PASSING_TD_FLOORS)
    empirical_weight_divisor: float = Field(default=8.0, gt=0)
    empirical_weight_min: float = 0.2
    empirical_weight_max: float = 0.65
    near_miss_ratio: float = 0.9
    near_floor_weight: float = 0.62
    breakout_min_games: float = 12.0
    breakout_floor_base: float = 45.0
    breakout_floor_slope: float = 120.0
    breakout_floor_max: float = 92.0


class PlayersConfig(_Section):
    """Hand-curated player lookups keyed by normalised name."""

    qb_tiers: Annotated[Dict[str, str], BeforeValidator(_over_defaults(DEFAULT_QB_TIERS))] = _table(DEFAULT_QB_TIERS)
    tier_multipliers: Annotated[Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_TIER_MULTIPLIERS))] = _table(DEFAULT_TIER_MULTIPLIERS)


class HallOfFameConfig(_Section):
    base: float = 6.0
    slope: float = 9.5


class AwardsConfig(_Section):
    base_pct: Annotated[
        Dict[str, Dict[str, float]], BeforeValidator(_over_defaults(DEFAULT_AWARD_BASE_PCT))
    ] = _table(DEFAULT_AWARD_BASE_PCT)
    decay: Annotated[Dict[str, float], BeforeValidator(_over_defaults(DEFAULT_AWARD_DECAY))] = _table(DEFAULT_AWARD_DECAY)
    early_career_multiplier: float = 0.82
    hof: HallOfFameConfig = Field(default_factory=HallOfFameConfig)


class TeamConfig(_Section):
    default_super_bowl_season_pct: float = 4.5


class PerformanceConfig(_Section):
    decay: float = 0.965
    threshold_base_pct: Dict[str, Dict[str, float]] = Field(default_factory=dict)


class CareerConfig(_Section):
    longevity_lambda: float = 0.14
    earnings_retention: float = 0.78


class BaselinesConfig(_Section):
    """Constants shared by the rare-event catalog."""

    team_record_alpha: float = Field(default=30.0, gt=0)
    team_record_beta: float = Field(default=30.0, gt=0)
    games_per_season: int = Field(default=17, ge=1)
    league_teams: int = Field(default=32, ge=1)
    career_years: int = Field(default=10, ge=1)
    ever_years: int = Field(default=30, ge=1)
    season_pct_overrides: Dict[str, float] = Field(default_factory=dict)


SECTIONS: Dict[str, type[_Section]] = {
    "season_stat_model": SeasonStatModelConfig,
    "tail_model": TailModelConfig,
    "players": PlayersConfig,
    "awards": AwardsConfig,
    "team": TeamConfig,
    "performance": PerformanceConfig,
    "career": CareerConfig,
    "baselines": BaselinesConfig,
}


class Calibration(_Section):
    """Typed calibration tree; every field carries a built-in default."""

    season_stat_model: SeasonStatModelConfig = Field(default_factory=SeasonStatModelConfig)
    tail_model: TailModelConfig = Field(default_factory=TailModelConfig)
    players: PlayersConfig = Field(default_factory=PlayersConfig)
    awards: AwardsConfig = Field(default_factory=AwardsConfig)
    team: TeamConfig = Field(default_factory=TeamConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    career: CareerConfig = Field(default_factory=CareerConfig)
    baselines: BaselinesConfig = Field(default_factory=BaselinesConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "Calibration":
        """Build a calibration from partial overrides without ever failing.

        Keys may be camelCase or snake_case. A section that fails validation
        falls back to its defaults and logs a warning.
        """

        if not isinstance(data, Mapping):
            if data is not None:
                logger.warning("Ignoring non-mapping calibration of type %s", type(data).__name__)
            return cls()
        canonical = canonical_keys(data)
        sections: Dict[str, Any] = {}
        for name, section_type in SECTIONS.items():
            raw = canonical.get(name)
            if raw is None:
                continue
            try:
                sections[name] = section_type.model_validate(raw)
            except ValidationError as exc:
                logger.warning(
                    "Calibration section %s is invalid; using defaults (%d errors)",
                    name,
                    exc.error_count(),
                )
        return cls(**sections)

    def tier_for(self, normalized_name: str) -> str:
        return self.players.qb_tiers.get(normalized_name, "default")

    def tier_multiplier(self, normalized_name: str) -> float:
        return float(self.players.tier_multipliers.get(normalized_name, 1.0))


def tier_value(table: Mapping[str, float], tier: str) -> float:
    """Look up ``tier`` in a tier table, falling back to its default row."""

    if tier in table:
        return float(table[tier])
    return float(table.get("default", 0.0))


def canonical_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Snake-case the section and field levels of a calibration mapping.

    Deeper levels hold data keys (tiers, metrics, player names) and are left
    untouched.
    """

    result: Dict[str, Any] = {}
    for key, value in data.items():
        section = to_snake(str(key))
        if isinstance(value, Mapping):
            fields = {_field_key(sub_key): sub_value for sub_key, sub_value in value.items()}
            existing = result.get(section)
            result[section] = _merge_layers(existing, fields) if isinstance(existing, dict) else fields
        else:
            result[section] = value
    return result


def _field_key(key: Any) -> str:
    text = str(key)
    if re.fullmatch(r"[A-Za-z][A-Za-z0-9]*", text) and any(char.isupper() for char in text):
        return to_snake(text)
    return text


# ---------------------------------------------------------------------------
# Layered loading
# ---------------------------------------------------------------------------

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _load_layer(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        if path.suffix.lower() == ".json":
            data = json.load(handle) or {}
        else:
            data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise TypeError(f"Calibration at {path} must be a mapping")
    return canonical_keys(data)


def _resolve_env_tokens(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda match: os.getenv(match.group(1), ""), value)
    if isinstance(value, Mapping):
        return {k: _resolve_env_tokens(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_resolve_env_tokens(item) for item in value]
    return value


def _coerce_env_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return raw


def _set_nested(mapping: MutableMapping[str, Any], path: Iterable[str], value: Any) -> None:
    segments = list(path)
    if not segments:
        return
    head, *tail = segments
    key = head.lower().replace("-", "_")
    if not tail:
        mapping[key] = value
        return
    child = mapping.get(key)
    if not isinstance(child, MutableMapping):
        child = {}
    else:
        child = dict(child)
    mapping[key] = child
    _set_nested(child, tail, value)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    updated = dict(data)
    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_OVERRIDE_PREFIX):
            continue
        suffix = key[len(ENV_OVERRIDE_PREFIX) :]
        if not suffix:
            continue
        path = [segment for segment in suffix.split("__") if segment]
        if not path:
            continue
        _set_nested(updated, path, _coerce_env_value(raw_value))
    return updated


def load_calibration(
    *,
    base_path: str | os.PathLike[str] | None = None,
    environment: str | None = None,
    extra_paths: Sequence[str | os.PathLike[str]] | None = None,
) -> Calibration:
    """Load layered calibration overrides.

    The loader merges an optional base file (YAML or JSON) with an
    environment-specific sibling (``<stem>.<env><suffix>``), additional
    override files, and environment variables prefixed with
    ``LONGSHOT_CALIBRATION__`` (``__`` separates path segments). A missing
    base file simply means built-in defaults.
    """

    data: Dict[str, Any] = {}
    config_path = Path(base_path) if base_path is not None else None
    if config_path is not None:
        if config_path.exists():
            data = _load_layer(config_path)
        else:
            logger.warning("Calibration file %s not found; using defaults", config_path)

    env_name = environment or os.getenv(ENVIRONMENT_VARIABLE)
    if env_name and config_path is not None:
        env_path = config_path.with_name(f"{config_path.stem}.{env_name}{config_path.suffix}")
        if env_path.exists():
            data = _merge_layers(data, _load_layer(env_path))

    override_sources: list[Path] = []
    if extra_paths:
        override_sources.extend(Path(path) for path in extra_paths)
    env_overrides = os.getenv(EXTRA_CONFIG_VARIABLE)
    if env_overrides:
        override_sources.extend(Path(token) for token in env_overrides.split(os.pathsep) if token)

    for override in override_sources:
        if override.exists():
            data = _merge_layers(data, _load_layer(override))

    data = _apply_env_overrides(data)
    data = _resolve_env_tokens(data)

    return Calibration.from_mapping(data)


def validate_calibration(calibration: Calibration) -> list[str]:
    """Validate a :class:`Calibration` instance.

    Args:
        calibration: Parsed calibration to check.

    Returns:
        A list of warning messages. Raises :class:`ConfigurationError` if any
        fatal issues are detected.
    """

    errors: list[str] = []
    warnings: list[str] = []

    model = calibration.season_stat_model
    if not model.recency_weights:
        errors.append("season_stat_model.recency_weights cannot be empty")
    elif any(weight < 0 for weight in model.recency_weights):
        errors.append("season_stat_model.recency_weights must be non-negative")
    elif abs(sum(model.recency_weights) - 1.0) > 0.05:
        warnings.append("season_stat_model.recency_weights do not sum to 1; they are renormalised")
    if len(model.experience_factors) < 1:
        errors.append("season_stat_model.experience_factors cannot be empty")
    for table_name in (
        "passing_tds_mean",
        "passing_interceptions_mean",
        "passing_yards_mean",
        "yards_per_attempt",
    ):
        for tier, value in getattr(model, table_name).items():
            if value <= 0:
                errors.append(f"season_stat_model.{table_name}.{tier} must be greater than zero")
    for metric, table in model.skill_fallback.items():
        for group, value in table.items():
            if value < 0:
                errors.append(f"season_stat_model.skill_fallback.{metric}.{group} must be non-negative")
    if model.trend_boost_cap < 0:
        errors.append("season_stat_model.trend_boost_cap must be non-negative")

    tail = calibration.tail_model
    if tail.games_per_season <= 0:
        errors.append("tail_model.games_per_season must be greater than zero")
    if tail.normal_crossover <= 0:
        errors.append("tail_model.normal_crossover must be greater than zero")
    if not 0 < tail.near_miss_ratio <= 1:
        errors.append("tail_model.near_miss_ratio must be within (0, 1]")
    if tail.empirical_weight_min > tail.empirical_weight_max:
        errors.append("tail_model.empirical_weight_min cannot exceed empirical_weight_max")
    if tail.breakout_floor_max > 99.9:
        warnings.append("tail_model.breakout_floor_max above 99.9 is clamped")

    for award, decay in calibration.awards.decay.items():
        if not 0 < decay <= 1:
            errors.append(f"awards.decay.{award} must be within (0, 1]")
    if not 0 < calibration.performance.decay <= 1:
        errors.append("performance.decay must be within (0, 1]")
    for award, table in calibration.awards.base_pct.items():
        for group, value in table.items():
            if value < 0:
                errors.append(f"awards.base_pct.{award}.{group} must be non-negative")

    if calibration.team.default_super_bowl_season_pct <= 0:
        errors.append("team.default_super_bowl_season_pct must be greater than zero")
    if calibration.career.longevity_lambda <= 0:
        errors.append("career.longevity_lambda must be greater than zero")
    if not 0 < calibration.career.earnings_retention <= 1:
        errors.append("career.earnings_retention must be within (0, 1]")

    baselines = calibration.baselines
    if baselines.team_record_alpha <= 0 or baselines.team_record_beta <= 0:
        errors.append("baselines team record alpha/beta must be greater than zero")
    if baselines.league_teams < 1:
        errors.append("baselines.league_teams must be at least 1")
    for key, value in baselines.season_pct_overrides.items():
        if not 0 < value < 100:
            errors.append(f"baselines.season_pct_overrides.{key} must be within (0, 100)")

    for name, tier in calibration.players.qb_tiers.items():
        if tier not in TIERS:
            warnings.append(f"players.qb_tiers.{name} uses unknown tier '{tier}'; default row applies")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError(f"Calibration validation failed:\n{bullet_list}")

    return warnings


__all__ = [
    "AwardsConfig",
    "BaselinesConfig",
    "Calibration",
    "CareerConfig",
    "ConfigurationError",
    "PerformanceConfig",
    "PlayersConfig",
    "SeasonStatModelConfig",
    "TailModelConfig",
    "TeamConfig",
    "canonical_keys",
    "load_calibration",
    "tier_value",
    "validate_calibration",
]
