"""Threshold tail probabilities for season and single-game stat claims."""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Literal, Sequence, Tuple

from .configuration import Calibration, TailModelConfig, tier_value
from .distributions import (
    negative_binomial_tail_at_least,
    normal_tail_at_least,
    poisson_tail_at_least,
)
from .models import PASSING_METRICS, RateModelResult, SeasonRecord
from .utils import clamp

logger = logging.getLogger(__name__)

Family = Literal["poisson", "negative_binomial", "normal", "passing_td_normal", "passing_yards_normal", "fixed"]

MIN_PCT = 0.01
MAX_PCT = 99.9

POISSON_METRICS = frozenset({"rushing_tds", "receiving_tds", "total_tds"})
EMPIRICAL_METRICS = frozenset(
    {"receiving_yards", "rushing_yards", "receptions", "scrimmage_yards", "rushing_tds", "receiving_tds", "total_tds"}
)


@dataclasses.dataclass(frozen=True, slots=True)
class TailEstimate:
    """Tail probability plus the distribution parameters behind it."""

    probability_pct: float
    family: Family
    mean: float
    dispersion: float | None = None
    sigma: float | None = None
    empirical_weight: float | None = None
    notes: Tuple[str, ...] = ()


def dispersion_for(metric: str, model_meta: RateModelResult | None, config: TailModelConfig) -> float:
    """Negative-binomial dispersion from sample depth, staleness and metric."""

    samples = model_meta.sample_seasons if model_meta is not None else 0
    stale = model_meta.stale_years if model_meta is not None else 0
    if samples <= 1:
        dispersion = config.dispersion_single_season
    elif samples == 2:
        dispersion = config.dispersion_two_seasons
    else:
        dispersion = config.dispersion_base
    if stale >= 1:
        dispersion -= config.stale_dispersion_penalty
    dispersion += config.dispersion_bumps.get(metric, 0.0)
    return max(0.8, dispersion)


def _threshold_key(threshold: float, table: dict) -> str | None:
    """Largest numeric key of ``table`` not above ``threshold``."""

    eligible = [int(key) for key in table if str(key).isdigit() and threshold >= int(key)]
    if not eligible:
        return None
    return str(max(eligible))


def _season_passing_tds(
    lam: float,
    threshold: float,
    model_meta: RateModelResult | None,
    config: TailModelConfig,
) -> Tuple[float, float, Tuple[str, ...]]:
    sigma = clamp(4.6 + 0.14 * lam, 6.0, 10.2)
    tail = normal_tail_at_least(lam, sigma, threshold)
    tier = model_meta.tier if model_meta is not None else "default"
    notes = []

    cap_key = _threshold_key(threshold, config.passing_td_caps)
    if cap_key is not None:
        tail = min(tail, tier_value(config.passing_td_caps[cap_key], tier) / 100)
        notes.append(f"tier cap at {cap_key}+")
    floor_key = _threshold_key(threshold, config.passing_td_floors)
    if floor_key is not None:
        tail = max(tail, tier_value(config.passing_td_floors[floor_key], tier) / 100)

    if model_meta is not None:
        starter_signal = clamp(model_meta.recent_attempts / 520 + model_meta.recent_games / 19, 0, 1.2)
        real_sample = model_meta.sample_seasons >= 1 and model_meta.recent_attempts >= 320
        durable = real_sample and starter_signal >= 0.75 and model_meta.years_exp >= 2
        if threshold <= 20 and durable:
            boost = clamp(1.03 + (starter_signal - 0.75) * 0.09, 1.01, 1.12)
            tail = clamp(tail * boost, 0, 0.985)
            notes.append("durable starter boost")
        if threshold <= 15 and durable:
            tail = clamp(tail * 1.05, 0, 0.992)
    return tail, sigma, tuple(notes)


def _empirical_adjustment(
    probability_pct: float,
    metric: str,
    threshold: float,
    history: Sequence[SeasonRecord],
    config: TailModelConfig,
) -> Tuple[float, float | None, Tuple[str, ...]]:
    notes = []
    weight = None
    values = [season.metric(metric) for season in history]
    if len(values) >= 2:
        hits = sum(1 for value in values if value >= threshold)
        near = sum(1 for value in values if value >= threshold * config.near_miss_ratio)
        hit_pct = hits / len(values) * 100
        near_floor = clamp(near / len(values) * 100 * config.near_floor_weight, 0, 95)
        weight = clamp(len(values) / config.empirical_weight_divisor, config.empirical_weight_min, config.empirical_weight_max)
        blended = probability_pct * (1 - weight) + hit_pct * weight
        probability_pct = clamp(max(blended, near_floor), MIN_PCT, MAX_PCT)
        notes.append(f"empirical blend over {len(values)} seasons")
    if history and history[0].games >= config.breakout_min_games and threshold > 0:
        recent_value = history[0].metric(metric)
        ratio = recent_value / threshold
        if recent_value > 0 and ratio >= 1:
            bonus = 8 if history[0].games >= 15 else 4
            floor = clamp(
                config.breakout_floor_base + (ratio - 1) * config.breakout_floor_slope + bonus,
                config.breakout_floor_base,
                config.breakout_floor_max,
            )
            if floor > probability_pct:
                notes.append("breakout carry-forward floor")
            probability_pct = max(probability_pct, floor)
    return probability_pct, weight, tuple(notes)


def evaluate_tail(
    lam: float,
    metric: str,
    threshold: float,
    scope: str = "season",
    model_meta: RateModelResult | None = None,
    history: Sequence[SeasonRecord] = (),
    *,
    position: str | None = None,
    calibration: Calibration | None = None,
) -> TailEstimate:
    """Price ``P(metric >= threshold)`` for a player with season rate ``lam``.

    Parameters
    ----------
    lam:
        Expected season total from the rate model.
    scope:
        ``"season"`` or ``"game"``; game scope divides the rate by the
        schedule length and skips the season-only adjustments.
    model_meta:
        Rate model diagnostics (sample depth, staleness, usage, tier).
    history:
        Qualifying seasons, most recent first, for the empirical blend.
    position:
        Player position; a non-quarterback passing claim short-circuits to
        the fixed mismatch probability.
    """

    config = (calibration or Calibration()).tail_model
    if metric in PASSING_METRICS and position is not None and position.strip().upper() != "QB":
        return TailEstimate(
            probability_pct=config.position_mismatch_pct,
            family="fixed",
            mean=0.0,
            notes=("passing claim for a non-quarterback",),
        )

    season_scope = scope != "game"
    mean = lam if season_scope else lam / config.games_per_season
    dispersion = dispersion_for(metric, model_meta, config)
    variance = mean + mean * mean / dispersion
    sigma = math.sqrt(max(1.0, variance))
    notes: Tuple[str, ...] = ()
    family: Family

    if metric == "passing_tds" and season_scope:
        tail, sigma, notes = _season_passing_tds(mean, threshold, model_meta, config)
        family = "passing_td_normal"
        dispersion = None
    elif metric == "passing_yards" and season_scope:
        sigma = clamp(360 + 0.08 * mean, 340, 900)
        tail = normal_tail_at_least(mean, sigma, threshold)
        family = "passing_yards_normal"
    elif metric in POISSON_METRICS or metric == "passing_tds":
        tail = poisson_tail_at_least(mean, threshold)
        family = "poisson"
        sigma = math.sqrt(mean)
        dispersion = None
    elif threshold >= config.normal_crossover or mean >= config.normal_crossover:
        tail = normal_tail_at_least(mean, sigma, threshold)
        family = "normal"
    else:
        tail = negative_binomial_tail_at_least(mean, dispersion, threshold)
        family = "negative_binomial"

    probability_pct = clamp(tail * 100, MIN_PCT, MAX_PCT)
    if metric == "passing_tds" and season_scope:
        if threshold <= 10:
            probability_pct = max(probability_pct, 99.9)
        if threshold <= 5:
            probability_pct = max(probability_pct, 99.95)

    weight = None
    if season_scope and metric in EMPIRICAL_METRICS and history:
        probability_pct, weight, extra = _empirical_adjustment(probability_pct, metric, threshold, history, config)
        notes = notes + extra

    logger.debug(
        "Tail %s >= %s (%s): %.4f%% via %s",
        metric,
        threshold,
        scope,
        probability_pct,
        family,
    )
    return TailEstimate(
        probability_pct=probability_pct,
        family=family,
        mean=mean,
        dispersion=dispersion,
        sigma=sigma,
        empirical_weight=weight,
        notes=notes,
    )


def tail_probability(
    lam: float,
    metric: str,
    threshold: float,
    scope: str = "season",
    model_meta: RateModelResult | None = None,
    history: Sequence[SeasonRecord] = (),
    **kwargs,
) -> float:
    """Percentage form of :func:`evaluate_tail`."""

    return evaluate_tail(lam, metric, threshold, scope, model_meta, history, **kwargs).probability_pct


__all__ = [
    "TailEstimate",
    "dispersion_for",
    "evaluate_tail",
    "tail_probability",
]
