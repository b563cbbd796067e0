"""Multi-season outcome distributions for a player's remaining career.

Discrete career counts (MVPs, Super Bowls, 4,500-yard seasons) are the sum
of independent, non-identical season trials and are therefore
Poisson-binomial. Each season's probability is a base rate decayed
geometrically over the player's expected remaining years. Longevity uses a
separate exponential survival curve.
"""

from __future__ import annotations

import dataclasses
import math
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .configuration import Calibration
from .distributions import poisson_binomial_pmf
from .models import CountBucket, CountDistribution, PlayerProfile
from .normalization import normalize_person_name
from .utils import clamp, round1, to_american_odds

AWARD_TYPES: Tuple[str, ...] = ("mvp", "opoy", "dpoy", "allpro")


def outcome_position_group(position: str | None) -> str:
    code = (position or "").strip().upper()
    if code == "QB":
        return "qb"
    if code in {"WR", "TE"}:
        return "receiver"
    if code in {"RB", "FB"}:
        return "rb"
    if code in {"DE", "DT", "LB", "EDGE", "CB", "S"}:
        return "defense"
    if code in {"K", "P", "LS"}:
        return "special"
    return "other"


def age_curve(age: float | None) -> float:
    a = 27.0 if not age else float(age)
    if a <= 24:
        return 0.85
    if a <= 28:
        return 1.05
    if a <= 31:
        return 1.0
    if a <= 34:
        return 0.9
    if a <= 37:
        return 0.7
    return 0.45


def years_remaining(age: float | None, years_exp: int | None) -> int:
    """Seasons left in a career, from age when known, else experience."""

    if age:
        return int(clamp(math.ceil(41 - float(age)), 2, 15))
    if years_exp is not None and years_exp >= 0:
        return int(clamp(12 - years_exp, 2, 15))
    return 9


def count_distribution(probabilities: Sequence[float], max_count: int = 8) -> CountDistribution:
    """Poisson-binomial count distribution with an ``"N+"`` overflow bucket."""

    pmf = poisson_binomial_pmf(probabilities)
    buckets: List[CountBucket] = []
    used = 0.0
    for count in range(min(max_count, len(pmf))):
        pct = clamp(pmf[count] * 100, 0, 100)
        buckets.append(CountBucket(count=count, probability_pct=round1(pct)))
        used += pct
    if len(pmf) > max_count:
        buckets.append(CountBucket(count=f"{max_count}+", probability_pct=round1(clamp(100 - used, 0, 100))))
    expected = sum(clamp(float(p), 0, 1) for p in probabilities)
    return CountDistribution(expected_count=round1(expected), buckets=tuple(buckets))


def build_season_vector(base_pct: float, years: int, decay: float = 0.97) -> List[float]:
    """Per-season probabilities ``base * decay**i`` in probability units."""

    return [clamp(base_pct * decay**index / 100, 0.0005, 0.8) for index in range(max(0, int(years)))]


@dataclasses.dataclass(frozen=True, slots=True)
class OutcomeContext:
    team_super_bowl_pct: float | None = None
    calibration: Calibration | None = None
    as_of_date: str = ""

    @property
    def resolved_calibration(self) -> Calibration:
        return self.calibration or Calibration()


def tier_multiplier(profile: PlayerProfile, calibration: Calibration) -> float:
    return calibration.tier_multiplier(normalize_person_name(profile.name))


# ---------------------------------------------------------------------------
# Awards
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class ProbabilityQuote:
    probability_pct: float

    @property
    def implied_odds(self) -> str:
        return to_american_odds(self.probability_pct)

    def to_dict(self) -> Dict[str, Any]:
        return {"probabilityPct": self.probability_pct, "impliedOdds": self.implied_odds}


@dataclasses.dataclass(frozen=True, slots=True)
class AwardOutcomes:
    mvp: CountDistribution
    opoy: CountDistribution
    dpoy: CountDistribution
    all_pro: CountDistribution
    hall_of_fame: ProbabilityQuote

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mvp": self.mvp.to_dict(),
            "opoy": self.opoy.to_dict(),
            "dpoy": self.dpoy.to_dict(),
            "allPro": self.all_pro.to_dict(),
            "hallOfFame": self.hall_of_fame.to_dict(),
        }


def award_base_pct(award: str, group: str, calibration: Calibration) -> float:
    table = calibration.awards.base_pct.get(award) or calibration.awards.base_pct["mvp"]
    if group in table:
        return float(table[group])
    return float(table.get("other", 0.0))


def award_season_vector(profile: PlayerProfile, award: str, calibration: Calibration) -> List[float]:
    """Per-season probabilities of winning ``award`` over the remaining career."""

    group = outcome_position_group(profile.position)
    years = years_remaining(profile.age, profile.years_exp)
    early = (profile.years_exp or 0) <= 2
    multiplier = calibration.awards.early_career_multiplier if early else 1.0
    base = award_base_pct(award, group, calibration) * tier_multiplier(profile, calibration)
    base *= age_curve(profile.age) * multiplier
    decay = calibration.awards.decay.get(award, 0.965)
    return build_season_vector(base, years, decay)


def build_award_outcomes(profile: PlayerProfile, calibration: Calibration) -> AwardOutcomes:
    distributions = {award: count_distribution(award_season_vector(profile, award, calibration), 8) for award in AWARD_TYPES}
    years = years_remaining(profile.age, profile.years_exp)
    score = (
        distributions["mvp"].expected_count * 2.2
        + distributions["opoy"].expected_count * 1.4
        + distributions["dpoy"].expected_count * 1.6
        + distributions["allpro"].expected_count * 0.9
        + (1.1 if years >= 10 else 0.4)
    )
    hof = calibration.awards.hof
    hof_pct = clamp(hof.base + score * hof.slope, 0.5, 95)
    return AwardOutcomes(
        mvp=distributions["mvp"],
        opoy=distributions["opoy"],
        dpoy=distributions["dpoy"],
        all_pro=distributions["allpro"],
        hall_of_fame=ProbabilityQuote(round1(hof_pct)),
    )


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class TeamOutcomes:
    super_bowls_won: CountDistribution
    conference_championships_won: CountDistribution
    expected_playoff_wins: float
    playoff_berths: CountDistribution
    playoff_rate_pct: float
    undefeated_seasons: CountDistribution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "superBowlsWon": self.super_bowls_won.to_dict(),
            "conferenceChampionshipsWon": self.conference_championships_won.to_dict(),
            "expectedPlayoffWins": self.expected_playoff_wins,
            "playoffBerths": self.playoff_berths.to_dict(),
            "playoffRatePct": self.playoff_rate_pct,
            "undefeatedSeasons": self.undefeated_seasons.to_dict(),
        }


def build_team_outcomes(
    profile: PlayerProfile,
    team_super_bowl_pct: float | None,
    calibration: Calibration,
) -> TeamOutcomes:
    years = years_remaining(profile.age, profile.years_exp)
    qb_impact = 1.0 if outcome_position_group(profile.position) == "qb" else 0.65
    tier = tier_multiplier(profile, calibration)
    team_pct = team_super_bowl_pct or calibration.team.default_super_bowl_season_pct
    sb_season = clamp(team_pct * qb_impact * min(1.35, 0.8 + tier * 0.25), 0.3, 28)
    ccg_season = clamp(sb_season * 2.2, 0.7, 45)
    playoffs_season = clamp(26 + sb_season * 2.0, 8, 78)
    undefeated_season = clamp(sb_season * 0.006, 0.01, 0.35)

    berths = count_distribution(build_season_vector(playoffs_season, years, 0.97), 15)
    wins_per_trip = clamp(0.8 + sb_season / 6, 0.5, 2.1)
    return TeamOutcomes(
        super_bowls_won=count_distribution(build_season_vector(sb_season, years, 0.95), 7),
        conference_championships_won=count_distribution(build_season_vector(ccg_season, years, 0.95), 9),
        expected_playoff_wins=round1(berths.expected_count * wins_per_trip),
        playoff_berths=berths,
        playoff_rate_pct=round1(berths.expected_count / max(1, years) * 100),
        undefeated_seasons=count_distribution(build_season_vector(undefeated_season, years, 0.98), 3),
    )


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

# metric -> (eligible position groups, ineligible base, ((threshold, base pct), ...) high to low, floor pct)
_THRESHOLD_TABLES: Mapping[str, Tuple[frozenset, float, Tuple[Tuple[float, float], ...], float]] = {
    "passing_yards": (frozenset({"qb"}), 0.05, ((5500, 0.5), (5000, 1.4), (4500, 5.0), (4000, 16.0)), 28.0),
    "passing_tds": (frozenset({"qb"}), 0.05, ((50, 0.6), (45, 1.7), (40, 5.4), (35, 13.2)), 25.0),
    "receiving_yards": (
        frozenset({"receiver", "rb"}),
        0.05,
        ((1900, 0.9), (1700, 2.4), (1500, 7.0), (1300, 15.4)),
        26.0,
    ),
    "sacks": (frozenset({"defense"}), 0.05, ((22, 1.0), (18, 2.6), (15, 8.1), (12, 15.7)), 24.0),
    "interceptions": (frozenset({"defense"}), 0.08, ((10, 0.9), (8, 2.3), (6, 8.3), (5, 13.5)), 24.0),
}


def threshold_base_pct(metric: str, group: str, threshold: float, calibration: Calibration) -> float:
    """Season probability that a ``group`` player clears ``threshold``."""

    calibrated = calibration.performance.threshold_base_pct.get(metric, {}).get(group)
    if calibrated is not None and math.isfinite(calibrated):
        return float(calibrated)
    spec = _THRESHOLD_TABLES.get(metric)
    if spec is None:
        return 0.5
    eligible, ineligible_pct, rows, floor_pct = spec
    if group not in eligible:
        return ineligible_pct
    for bound, pct in rows:
        if threshold >= bound:
            return pct
    return floor_pct


def performance_lift(profile: PlayerProfile, calibration: Calibration) -> float:
    return clamp(0.8 + tier_multiplier(profile, calibration) * 0.22, 0.6, 1.7) * age_curve(profile.age)


def threshold_distribution(
    profile: PlayerProfile, metric: str, threshold: float, calibration: Calibration
) -> CountDistribution:
    group = outcome_position_group(profile.position)
    years = years_remaining(profile.age, profile.years_exp)
    base = threshold_base_pct(metric, group, threshold, calibration) * performance_lift(profile, calibration)
    return count_distribution(build_season_vector(base, years, calibration.performance.decay), 8)


@dataclasses.dataclass(frozen=True, slots=True)
class PerformanceOutcomes:
    threshold_templates: Mapping[str, CountDistribution]
    league_leading_finishes: Mapping[str, CountDistribution]
    record_break_probability_pct: Mapping[str, float]
    qbr_above_70: CountDistribution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thresholdTemplates": {key: dist.to_dict() for key, dist in self.threshold_templates.items()},
            "leagueLeadingFinishes": {key: dist.to_dict() for key, dist in self.league_leading_finishes.items()},
            "recordBreakProbabilityPct": dict(self.record_break_probability_pct),
            "qbrAbove70": self.qbr_above_70.to_dict(),
        }


def build_performance_outcomes(profile: PlayerProfile, calibration: Calibration) -> PerformanceOutcomes:
    group = outcome_position_group(profile.position)
    years = years_remaining(profile.age, profile.years_exp)
    lift = performance_lift(profile, calibration)

    def dist(metric: str, threshold: float) -> CountDistribution:
        return threshold_distribution(profile, metric, threshold, calibration)

    def record(metric: str, threshold: float, divisor: float) -> float:
        return round1(clamp(dist(metric, threshold).expected_count / divisor * 100, 0.1, 55))

    if group == "qb":
        qbr = count_distribution(build_season_vector(clamp(18 * lift, 4, 42), years, 0.97), 8)
    else:
        qbr = count_distribution(build_season_vector(0.05, years, 1.0), 3)

    return PerformanceOutcomes(
        threshold_templates={
            "passingYards4500": dist("passing_yards", 4500),
            "passingTds40": dist("passing_tds", 40),
            "receivingYards1500": dist("receiving_yards", 1500),
            "sacks15": dist("sacks", 15),
            "interceptions6": dist("interceptions", 6),
        },
        league_leading_finishes={
            "passingYards": dist("passing_yards", 5000),
            "passingTds": dist("passing_tds", 45),
            "receivingYards": dist("receiving_yards", 1700),
            "sacks": dist("sacks", 18),
            "interceptions": dist("interceptions", 8),
        },
        record_break_probability_pct={
            "passingTdsSingleSeason": record("passing_tds", 56, 1.6),
            "passingYardsSingleSeason": record("passing_yards", 5600, 1.5),
            "receivingYardsSingleSeason": record("receiving_yards", 2000, 1.7),
            "sacksSingleSeason": record("sacks", 23, 1.5),
        },
        qbr_above_70=qbr,
    )


@dataclasses.dataclass(frozen=True, slots=True)
class PerformanceThresholdOutcome:
    metric: str
    threshold: float
    distribution: CountDistribution

    def to_dict(self) -> Dict[str, Any]:
        payload = {"metric": self.metric, "threshold": self.threshold}
        payload.update(self.distribution.to_dict())
        return payload


def build_performance_threshold_outcome(
    profile: PlayerProfile,
    metric: str,
    threshold: float,
    context: OutcomeContext | None = None,
) -> PerformanceThresholdOutcome:
    calibration = (context or OutcomeContext()).resolved_calibration
    return PerformanceThresholdOutcome(
        metric=metric,
        threshold=threshold,
        distribution=threshold_distribution(profile, metric, threshold, calibration),
    )


# ---------------------------------------------------------------------------
# Career
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class Milestone:
    label: str
    target: float
    probability_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "target": self.target,
            "probabilityPct": self.probability_pct,
            "impliedOdds": to_american_odds(self.probability_pct),
        }


@dataclasses.dataclass(frozen=True, slots=True)
class CareerOutcomes:
    longevity: Mapping[str, float]
    expected_career_earnings_million_usd: float
    milestones: Tuple[Milestone, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "longevity": dict(self.longevity),
            "expectedCareerEarningsMillionUsd": self.expected_career_earnings_million_usd,
            "milestoneProbabilities": [milestone.to_dict() for milestone in self.milestones],
        }


_MILESTONES: Mapping[str, Tuple[Tuple[str, float, float], ...]] = {
    "qb": (
        ("Career passing TDs", 300, 26.0),
        ("Career passing TDs", 400, 11.0),
        ("Career passing TDs", 500, 3.4),
        ("Career passing yards", 50000, 18.0),
    ),
    "receiver": (
        ("Career receiving yards", 10000, 21.0),
        ("Career receiving yards", 13000, 9.0),
        ("Career receiving yards", 15000, 3.0),
    ),
    "rb": (
        ("Career rushing yards", 8000, 23.0),
        ("Career rushing yards", 12000, 6.0),
    ),
    "defense": (
        ("Career sacks", 80, 17.0),
        ("Career sacks", 120, 6.0),
    ),
}


def probability_play_to_age(profile: PlayerProfile, target_age: float, calibration: Calibration) -> float:
    """Exponential survival ``100 * exp(-lambda * (target - age))``."""

    age = float(profile.age) if profile.age else 26.0
    delta = target_age - age
    if delta <= 0:
        return 100.0
    pct = 100 * math.exp(-calibration.career.longevity_lambda * delta)
    if outcome_position_group(profile.position) == "qb":
        pct *= 1.25
    pct *= clamp(0.8 + tier_multiplier(profile, calibration) * 0.12, 0.65, 1.5)
    return round1(clamp(pct, 0.2, 99.9))


def annual_earnings_millions(group: str, tier: float) -> float:
    if group == "qb":
        return clamp(28 + tier * 9, 8, 65)
    if group == "receiver":
        return clamp(13 + tier * 4, 2, 35)
    if group == "rb":
        return clamp(8 + tier * 2, 1, 18)
    if group == "defense":
        return clamp(12 + tier * 3, 2, 32)
    return clamp(6 + tier * 2, 1, 20)


def build_career_outcomes(profile: PlayerProfile, calibration: Calibration) -> CareerOutcomes:
    group = outcome_position_group(profile.position)
    tier = tier_multiplier(profile, calibration)
    years = years_remaining(profile.age, profile.years_exp)
    earnings = round1(annual_earnings_millions(group, tier) * years * calibration.career.earnings_retention)
    lift = clamp(0.82 + tier * 0.2, 0.6, 1.7)
    milestones = tuple(
        Milestone(label=label, target=target, probability_pct=round1(clamp(base * lift, 0.1, 95)))
        for label, target, base in _MILESTONES.get(group, ())
    )
    return CareerOutcomes(
        longevity={
            "playToAge30Pct": probability_play_to_age(profile, 30, calibration),
            "playToAge35Pct": probability_play_to_age(profile, 35, calibration),
            "playToAge40Pct": probability_play_to_age(profile, 40, calibration),
        },
        expected_career_earnings_million_usd=earnings,
        milestones=milestones,
    )


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class PlayerOutlook:
    profile: PlayerProfile
    as_of_date: str
    awards: AwardOutcomes
    team: TeamOutcomes
    performance: PerformanceOutcomes
    career: CareerOutcomes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asOfDate": self.as_of_date,
            "player": {
                "name": self.profile.name,
                "position": self.profile.position or "NA",
                "teamAbbr": self.profile.team_abbr,
                "age": self.profile.age,
                "yearsExp": self.profile.years_exp,
            },
            "awards": self.awards.to_dict(),
            "teamOutcomes": self.team.to_dict(),
            "performance": self.performance.to_dict(),
            "career": self.career.to_dict(),
        }


def build_player_outcomes(profile: PlayerProfile, context: OutcomeContext | None = None) -> PlayerOutlook:
    """Full career outlook for ``profile``."""

    ctx = context or OutcomeContext()
    calibration = ctx.resolved_calibration
    return PlayerOutlook(
        profile=profile,
        as_of_date=ctx.as_of_date,
        awards=build_award_outcomes(profile, calibration),
        team=build_team_outcomes(profile, ctx.team_super_bowl_pct, calibration),
        performance=build_performance_outcomes(profile, calibration),
        career=build_career_outcomes(profile, calibration),
    )


__all__ = [
    "AWARD_TYPES",
    "AwardOutcomes",
    "CareerOutcomes",
    "Milestone",
    "OutcomeContext",
    "PerformanceOutcomes",
    "PerformanceThresholdOutcome",
    "PlayerOutlook",
    "ProbabilityQuote",
    "TeamOutcomes",
    "age_curve",
    "award_season_vector",
    "build_award_outcomes",
    "build_career_outcomes",
    "build_performance_outcomes",
    "build_performance_threshold_outcome",
    "build_player_outcomes",
    "build_season_vector",
    "build_team_outcomes",
    "count_distribution",
    "outcome_position_group",
    "threshold_base_pct",
    "years_remaining",
]
