"""Per-season rate (lambda) estimation from player history.

Two tracks share one structure: a recency-weighted mean of qualifying
seasons, blended with the long-run mean, scaled by a usage factor and then
shrunk toward a tier or positional prior by a reliability weight. Missing
datasets or unknown players resolve to the prior and never raise.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence, Tuple

from ..cache import get_dataset_cache
from ..datasets import Datasets, PlayerHistory, SeasonDataset
from ..utils_date import as_of_year, get_current_season, resolve_as_of
from .configuration import Calibration, tier_value
from .models import PASSING_METRICS, PlayerProfile, RateModelResult, SeasonRecord
from .normalization import normalize_person_name
from .utils import clamp

logger = logging.getLogger(__name__)

# Metric -> (lower, upper) bounds every lambda is clamped to.
LAMBDA_BOUNDS: Mapping[str, Tuple[float, float]] = {
    "passing_tds": (0.8, 75.0),
    "passing_interceptions": (0.8, 75.0),
    "passing_yards": (2100.0, 5600.0),
}
SKILL_LAMBDA_BOUNDS: Tuple[float, float] = (0.02, 3000.0)

TREND_METRICS = frozenset(
    {"receiving_yards", "receptions", "receiving_tds", "rushing_yards", "scrimmage_yards", "rushing_tds", "total_tds"}
)
TREND_GROUPS = frozenset({"wr", "rb", "te"})

UNKNOWN_EXPERIENCE_FACTOR = 0.9
DEFAULT_ATTEMPTS_PER_GAME = 31.5


def position_group(position: str | None) -> str:
    code = (position or "").strip().upper()
    if code == "QB":
        return "qb"
    if code in {"RB", "FB"}:
        return "rb"
    if code == "WR":
        return "wr"
    if code == "TE":
        return "te"
    return "other"


def metric_bounds(metric: str) -> Tuple[float, float]:
    return LAMBDA_BOUNDS.get(metric, SKILL_LAMBDA_BOUNDS)


def weighted_recent_mean(seasons: Sequence[SeasonRecord], metric: str, weights: Sequence[float]) -> float | None:
    """Recency-weighted mean over the most recent ``len(weights)`` seasons."""

    numerator = 0.0
    denominator = 0.0
    for index, season in enumerate(seasons[: len(weights)]):
        weight = weights[index]
        numerator += weight * season.metric(metric)
        denominator += weight
    if not denominator:
        return None
    return numerator / denominator


def experience_factor(years_exp: int | None, factors: Sequence[float]) -> float:
    """Starter factor for early-career quarterbacks (last entry applies thereafter)."""

    if years_exp is None or not factors:
        return UNKNOWN_EXPERIENCE_FACTOR
    index = min(max(0, int(years_exp)), len(factors) - 1)
    return float(factors[index])


def stale_years_for(dataset: SeasonDataset | None, seasons: Sequence[SeasonRecord], as_of: object) -> int:
    year = as_of_year(as_of)
    latest = None
    if dataset is not None and dataset.latest_season is not None:
        latest = dataset.latest_season
    elif seasons:
        latest = seasons[0].season
    if latest is None:
        # Nothing on file: take the last finished season as current.
        season = get_current_season(resolve_as_of(as_of))
        latest = season - 1 if season == year else season
    return max(0, year - latest - 1)


def _resolve_datasets(datasets: Datasets | None) -> Datasets:
    if datasets is not None:
        return datasets
    return get_dataset_cache().datasets()


def _lookup(dataset: SeasonDataset | None, name: str) -> PlayerHistory | None:
    if dataset is None:
        return None
    return dataset.history(name)


def _skill_source(profile: PlayerProfile, datasets: Datasets) -> Tuple[SeasonDataset | None, PlayerHistory | None]:
    history = _lookup(datasets.skill, profile.name)
    if history is not None:
        return datasets.skill, history
    # Quarterback rushing lines live in the passing dataset.
    if position_group(profile.position) == "qb":
        history = _lookup(datasets.qb, profile.name)
        if history is not None:
            return datasets.qb, history
    return datasets.skill, None


def qualifying_seasons(
    profile: PlayerProfile,
    metric: str,
    calibration: Calibration | None = None,
    datasets: Datasets | None = None,
) -> Tuple[SeasonRecord, ...]:
    """Seasons (most recent first) that count toward ``metric`` for ``profile``."""

    cal = calibration or Calibration()
    model = cal.season_stat_model
    resolved = _resolve_datasets(datasets)
    if metric in PASSING_METRICS:
        history = _lookup(resolved.qb, profile.name)
        if history is None:
            return ()
        return tuple(s for s in history.seasons if s.passing_attempts >= model.qb_min_attempts)
    _, history = _skill_source(profile, resolved)
    if history is None:
        return ()
    return tuple(s for s in history.seasons if s.games >= model.skill_min_games)


# ---------------------------------------------------------------------------
# Quarterback track
# ---------------------------------------------------------------------------


def _qb_fallback(metric: str, tier: str, cal: Calibration) -> float:
    model = cal.season_stat_model
    if metric == "passing_interceptions":
        return tier_value(model.passing_interceptions_mean, tier)
    if metric == "passing_yards":
        return tier_value(model.passing_yards_mean, tier)
    return tier_value(model.passing_tds_mean, tier)


def quarterback_rate(
    profile: PlayerProfile,
    metric: str,
    cal: Calibration,
    as_of: object,
    datasets: Datasets,
) -> RateModelResult:
    model = cal.season_stat_model
    tier = cal.tier_for(normalize_person_name(profile.name))
    fallback = _qb_fallback(metric, tier, cal)
    lower, upper = metric_bounds(metric)
    years_exp = profile.years_exp
    starter_by_experience = experience_factor(years_exp, model.experience_factors)

    history = _lookup(datasets.qb, profile.name)
    valid = tuple(s for s in history.seasons if s.passing_attempts >= model.qb_min_attempts) if history else ()
    if not valid:
        return RateModelResult(
            lam=clamp(fallback * starter_by_experience, lower, upper),
            model_type="tier_fallback",
            years_exp=years_exp or 0,
            position_group="qb",
            tier=tier,
        )

    recent = weighted_recent_mean(valid, metric, model.recency_weights)
    long_run = sum(s.metric(metric) for s in valid) / len(valid)
    recent_attempts = valid[0].passing_attempts
    recent_games = float(valid[0].games)
    starter = clamp(0.68 + recent_attempts / 760 + recent_games / 45, 0.80, 1.10)
    reliability_base = clamp(0.16 + len(valid) * 0.10 + recent_attempts / 2600, 0.22, 0.76)
    stale = stale_years_for(datasets.qb, valid, as_of)
    reliability = clamp(reliability_base * (0.82 if stale >= 1 else 1.0), 0.18, 0.76)

    if metric == "passing_yards":
        per_game = recent_attempts / recent_games if recent_games > 0 else DEFAULT_ATTEMPTS_PER_GAME
        projected_attempts = clamp(per_game * 16.5, 380, 690)
        from_attempts = projected_attempts * tier_value(model.yards_per_attempt, tier)
        lam = clamp(from_attempts * reliability + fallback * (1 - reliability), lower, upper)
    else:
        signal = clamp(((recent if recent is not None else long_run) * 0.72 + long_run * 0.28) * starter, 1, 70)
        lam = clamp(signal * reliability + fallback * (1 - reliability), lower, upper)
        if years_exp is not None and years_exp <= 2:
            if metric == "passing_tds":
                lam *= model.early_career_td_boost
            elif metric == "passing_interceptions":
                lam *= model.early_career_int_boost
        lam = clamp(lam, lower, upper)

    return RateModelResult(
        lam=lam,
        model_type="player_history_blended",
        sample_seasons=len(valid),
        reliability=reliability,
        stale_years=stale,
        years_exp=years_exp or 0,
        recent_attempts=recent_attempts,
        recent_games=recent_games,
        position_group="qb",
        tier=tier,
    )


# ---------------------------------------------------------------------------
# Skill-position track
# ---------------------------------------------------------------------------


def skill_fallback_mean(metric: str, group: str, cal: Calibration) -> float:
    table = cal.season_stat_model.skill_fallback.get(metric, {})
    if group in table:
        return float(table[group])
    return float(table.get("other", 25.0))


def skill_rate(
    profile: PlayerProfile,
    metric: str,
    cal: Calibration,
    as_of: object,
    datasets: Datasets,
) -> RateModelResult:
    model = cal.season_stat_model
    dataset, history = _skill_source(profile, datasets)
    group = position_group(profile.position or (history.position if history else ""))
    fallback = skill_fallback_mean(metric, group, cal)
    lower, upper = SKILL_LAMBDA_BOUNDS
    years_exp = profile.years_exp or 0

    valid = tuple(s for s in history.seasons if s.games >= model.skill_min_games) if history else ()
    if not valid:
        return RateModelResult(
            lam=clamp(fallback, lower, upper),
            model_type="skill_fallback",
            years_exp=years_exp,
            position_group=group,
        )

    recent = weighted_recent_mean(valid, metric, model.recency_weights)
    long_run = sum(s.metric(metric) for s in valid) / len(valid)
    recent_games = float(valid[0].games)
    durability = clamp(0.84 + recent_games / 60, 0.84, 1.10)
    reliability_base = clamp(0.20 + len(valid) * 0.10 + recent_games / 220, 0.24, 0.78)
    stale = stale_years_for(dataset, valid, as_of)
    reliability = clamp(reliability_base * (0.92 if stale >= 1 else 1.0), 0.2, 0.84)

    blended = ((recent if recent is not None else long_run) * 0.7 + long_run * 0.3) * durability
    lam = clamp(blended, lower, upper)
    lam = clamp(lam * reliability + fallback * (1 - reliability), lower, upper)

    if metric in TREND_METRICS and len(valid) >= 2 and group in TREND_GROUPS:
        latest = valid[0].metric(metric)
        prior = valid[1].metric(metric)
        if prior > 0 and latest > prior and valid[0].games >= 12:
            growth = (latest - prior) / prior
            lam = clamp(lam * (1 + clamp(growth * model.trend_boost_slope, 0, model.trend_boost_cap)), lower, upper)

    return RateModelResult(
        lam=lam,
        model_type="skill_history_blended",
        sample_seasons=len(valid),
        reliability=reliability,
        stale_years=stale,
        years_exp=years_exp,
        recent_games=recent_games,
        position_group=group,
    )


def rate(
    profile: PlayerProfile,
    metric: str,
    calibration: Calibration | None = None,
    as_of: object = None,
    datasets: Datasets | None = None,
) -> RateModelResult:
    """Expected per-season value of ``metric`` for ``profile``."""

    cal = calibration or Calibration()
    resolved = _resolve_datasets(datasets)
    if metric in PASSING_METRICS:
        result = quarterback_rate(profile, metric, cal, as_of, resolved)
    else:
        result = skill_rate(profile, metric, cal, as_of, resolved)
    logger.debug(
        "Rate for %s %s: lambda=%.3f via %s (%d seasons)",
        profile.name,
        metric,
        result.lam,
        result.model_type,
        result.sample_seasons,
    )
    return result


__all__ = [
    "LAMBDA_BOUNDS",
    "SKILL_LAMBDA_BOUNDS",
    "experience_factor",
    "metric_bounds",
    "position_group",
    "qualifying_seasons",
    "quarterback_rate",
    "rate",
    "skill_fallback_mean",
    "skill_rate",
    "stale_years_for",
    "weighted_recent_mean",
]
