"""Domain records exchanged between the estimation stages."""

from __future__ import annotations

import dataclasses
import math
from typing import (
    Any,
    Dict,
    Literal,
    Mapping,
    SupportsFloat,
    SupportsInt,
    Tuple,
)

from .utils import NO_CHANCE, format_implied_probability, to_american_odds

Horizon = Literal["season", "career", "ever", "multi_year", "unspecified"]
League = Literal["nfl", "nba", "mlb", "nhl", "unknown"]
Scope = Literal["season", "game"]
Status = Literal["ok", "refused", "snark"]
Confidence = Literal["Low", "Medium", "High"]
SourceType = Literal["historical_model", "constraint_model"]
ModelType = Literal[
    "tier_fallback",
    "player_history_blended",
    "skill_history_blended",
    "skill_fallback",
]
Metric = Literal[
    "passing_tds",
    "passing_interceptions",
    "passing_yards",
    "rushing_tds",
    "rushing_yards",
    "receiving_tds",
    "receiving_yards",
    "receptions",
    "scrimmage_yards",
    "total_tds",
]

HORIZONS: Tuple[str, ...] = ("season", "career", "ever", "multi_year", "unspecified")
LEAGUES: Tuple[str, ...] = ("nfl", "nba", "mlb", "nhl", "unknown")
PASSING_METRICS: Tuple[str, ...] = ("passing_tds", "passing_interceptions", "passing_yards")
SKILL_METRICS: Tuple[str, ...] = (
    "rushing_tds",
    "rushing_yards",
    "receiving_tds",
    "receiving_yards",
    "receptions",
    "scrimmage_yards",
    "total_tds",
)
PLAYER_STATUSES: Tuple[str, ...] = ("active", "retired", "deceased", "unknown")


# ---------------------------------------------------------------------------
# Payload coercion
# ---------------------------------------------------------------------------


def _coerce_str(value: object | None, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _coerce_optional_int(value: object | None) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, str)):
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    if isinstance(value, SupportsInt):
        return int(value)
    return None


def _coerce_optional_float(value: object | None) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)) or isinstance(value, SupportsFloat):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _first(values: Mapping[str, object], *keys: str) -> object | None:
    for key in keys:
        if key in values and values[key] is not None:
            return values[key]
    return None


# ---------------------------------------------------------------------------
# Parsed prompt structures
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class Intent:
    """Structured reading of a normalised prompt."""

    horizon: Horizon = "unspecified"
    league: League = "unknown"
    is_betting_advice: bool = False
    is_player_prompt: bool = False
    window_years: int | None = None
    raw: str = ""

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "Intent":
        horizon = _coerce_str(values.get("horizon"), "unspecified")
        if horizon == "next_season":
            horizon = "season"
        league = _coerce_str(values.get("league"), "unknown").lower()
        return cls(
            horizon=horizon if horizon in HORIZONS else "unspecified",  # type: ignore[arg-type]
            league=league if league in LEAGUES else "unknown",  # type: ignore[arg-type]
            is_betting_advice=bool(_first(values, "is_betting_advice", "isBettingAdvice")),
            is_player_prompt=bool(_first(values, "is_player_prompt", "isPlayerPrompt")),
            window_years=_coerce_optional_int(_first(values, "window_years", "windowYears")),
            raw=_coerce_str(values.get("raw")),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class BaselineEvent:
    """A matched rare-event baseline at season scope."""

    key: str
    season_probability_pct: float
    assumptions: Tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class StatClaim:
    """A (metric, threshold, scope) statistical claim."""

    metric: Metric
    threshold: float
    scope: Scope = "season"

    @property
    def label(self) -> str:
        threshold = int(self.threshold) if float(self.threshold).is_integer() else self.threshold
        suffix = " in a game" if self.scope == "game" else ""
        return f"{self.metric.replace('_', ' ')} {threshold}{suffix}"


# ---------------------------------------------------------------------------
# Player data
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class PlayerProfile:
    """Caller-supplied description of the player a prompt is about."""

    name: str
    position: str = ""
    age: float | None = None
    years_exp: int | None = None
    team_abbr: str = ""
    status: str = "unknown"

    @property
    def position_code(self) -> str:
        return self.position.strip().upper()

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "PlayerProfile":
        status = _coerce_str(values.get("status"), "unknown").lower()
        return cls(
            name=_coerce_str(_first(values, "name", "playerName", "player_name")),
            position=_coerce_str(values.get("position")).upper(),
            age=_coerce_optional_float(values.get("age")),
            years_exp=_coerce_optional_int(_first(values, "years_exp", "yearsExp")),
            team_abbr=_coerce_str(_first(values, "team_abbr", "teamAbbr")).upper(),
            status=status if status in PLAYER_STATUSES else "unknown",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class SeasonRecord:
    """One player-season of aggregate statistics."""

    season: int
    games: int = 0
    passing_attempts: float = 0.0
    passing_yards: float = 0.0
    passing_tds: float = 0.0
    passing_interceptions: float = 0.0
    rushing_attempts: float = 0.0
    rushing_yards: float = 0.0
    rushing_tds: float = 0.0
    receptions: float = 0.0
    receiving_yards: float = 0.0
    receiving_tds: float = 0.0
    position: str = ""

    @property
    def scrimmage_yards(self) -> float:
        return self.rushing_yards + self.receiving_yards

    @property
    def total_tds(self) -> float:
        return self.rushing_tds + self.receiving_tds

    def metric(self, name: str) -> float:
        """Return the aggregate for ``name`` (derived metrics included)."""

        value = getattr(self, name, None)
        if value is None:
            raise KeyError(name)
        return float(value)


@dataclasses.dataclass(frozen=True, slots=True)
class RateModelResult:
    """Expected per-season rate plus the diagnostics used for labelling."""

    lam: float
    model_type: ModelType
    sample_seasons: int = 0
    reliability: float = 0.0
    stale_years: int = 0
    years_exp: int = 0
    recent_attempts: float = 0.0
    recent_games: float = 0.0
    position_group: str = "other"
    tier: str = "default"

    @property
    def uses_history(self) -> bool:
        return self.model_type in {"player_history_blended", "skill_history_blended"}


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class Estimate:
    """Terminal result of the estimation pipeline.

    ``odds`` and ``implied_probability`` are derived from ``probability_pct``
    so the two can never disagree. A probability of exactly ``0`` is the
    impossibility sentinel and renders as ``"NO CHANCE"``.
    """

    status: Status = "ok"
    probability_pct: float | None = None
    confidence: Confidence = "Medium"
    assumptions: Tuple[str, ...] = ()
    source_type: SourceType = "historical_model"
    source_label: str = ""
    summary_label: str = ""
    as_of_date: str = ""
    trace: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    title: str = ""
    message: str = ""
    hint: str = ""

    @property
    def odds(self) -> str | None:
        if self.probability_pct is None:
            return None
        return to_american_odds(self.probability_pct)

    @property
    def implied_probability(self) -> str | None:
        if self.probability_pct is None:
            return None
        return format_implied_probability(self.probability_pct)

    @property
    def is_no_chance(self) -> bool:
        return self.probability_pct == 0

    def with_probability(self, probability_pct: float, **changes: Any) -> "Estimate":
        return dataclasses.replace(self, probability_pct=probability_pct, **changes)

    def to_dict(self, *, include_trace: bool = True) -> Dict[str, Any]:
        """Boundary payload with camelCase keys."""

        if self.status != "ok":
            payload: Dict[str, Any] = {"status": self.status}
            for key in ("title", "message", "hint"):
                value = getattr(self, key)
                if value:
                    payload[key] = value
            return payload
        payload = {
            "status": self.status,
            "odds": self.odds,
            "impliedProbability": self.implied_probability,
            "confidence": self.confidence,
            "assumptions": list(self.assumptions),
            "sourceType": self.source_type,
            "sourceLabel": self.source_label,
            "summaryLabel": self.summary_label,
            "asOfDate": self.as_of_date,
        }
        if include_trace:
            payload["trace"] = dict(self.trace)
        return payload


@dataclasses.dataclass(frozen=True, slots=True)
class CountBucket:
    count: int | str
    probability_pct: float


@dataclasses.dataclass(frozen=True, slots=True)
class CountDistribution:
    """Discrete count distribution truncated with an overflow bucket."""

    expected_count: float
    buckets: Tuple[CountBucket, ...]

    def probability_at_least(self, threshold: int) -> float:
        """Sum of bucket mass at or above ``threshold`` (percentage)."""

        total = 0.0
        for bucket in self.buckets:
            if isinstance(bucket.count, int):
                if bucket.count >= threshold:
                    total += bucket.probability_pct
            elif int(bucket.count.rstrip("+")) >= threshold:
                total += bucket.probability_pct
        return total

    def probability_exactly(self, count: int) -> float:
        for bucket in self.buckets:
            if bucket.count == count:
                return bucket.probability_pct
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expectedCount": self.expected_count,
            "distribution": [
                {"count": bucket.count, "probabilityPct": bucket.probability_pct}
                for bucket in self.buckets
            ],
        }


def no_chance_estimate(
    assumption: str,
    *,
    source_label: str,
    summary_label: str = "",
    as_of_date: str = "",
    trace: Mapping[str, Any] | None = None,
) -> Estimate:
    """Constraint-model estimate pinned to the impossibility sentinel."""

    return Estimate(
        status="ok",
        probability_pct=0.0,
        confidence="High",
        assumptions=(assumption,),
        source_type="constraint_model",
        source_label=source_label,
        summary_label=summary_label,
        as_of_date=as_of_date,
        trace=dict(trace or {}),
    )


__all__ = [
    "BaselineEvent",
    "Confidence",
    "CountBucket",
    "CountDistribution",
    "Estimate",
    "HORIZONS",
    "Horizon",
    "Intent",
    "League",
    "Metric",
    "ModelType",
    "NO_CHANCE",
    "PASSING_METRICS",
    "PlayerProfile",
    "RateModelResult",
    "SKILL_METRICS",
    "Scope",
    "SeasonRecord",
    "StatClaim",
    "no_chance_estimate",
]
