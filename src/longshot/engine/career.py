"""Player-level career estimators: award counts, retirement and Hall of Fame.

Each estimator returns ``None`` when the prompt is not its kind of question
so the pipeline can fall through to the next one.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from typing import List, Mapping, Tuple

from .configuration import Calibration
from .consistency import has_comeback_cue
from .distributions import poisson_binomial_at_least, poisson_binomial_exactly
from .models import Estimate, Intent, PlayerProfile, no_chance_estimate
from .normalization import normalize_person_name, number_words_to_digits
from .outcomes import (
    award_season_vector,
    build_award_outcomes,
    outcome_position_group,
    years_remaining,
)
from .utils import clamp

logger = logging.getLogger(__name__)

AWARD_LABELS: Mapping[str, str] = {
    "super_bowl": "Super Bowl",
    "mvp": "MVP",
    "opoy": "Offensive Player of the Year",
    "dpoy": "Defensive Player of the Year",
    "allpro": "All-Pro selection",
}

_AWARD_NOUNS: Mapping[str, str] = {
    "super_bowl": r"super\s*bowls?",
    "mvp": r"(?:mvps?|most valuable player(?:s| awards?)?)",
    "opoy": r"(?:opoys?|offensive player of the year(?: awards?)?)",
    "dpoy": r"(?:dpoys?|defensive player of the year(?: awards?)?)",
    "allpro": r"(?:first[- ]team\s+)?all[- ]pros?(?:\s+(?:selections?|nods?|teams?))?",
}
_WIN_VERB = r"(?:wins?|won|to win|makes?|made|earns?|named|gets?)"

_RETIREMENT_CUE = re.compile(r"\b(?:retire[ds]?|retirement|retiring)\b")
_INJURY_CUE = re.compile(r"\b(?:injury|injured|concussions?|medical)\b")
_HALL_OF_FAME = re.compile(r"\b(?:hall of fame|hof)\b")
_EXPLICIT_SEASON = re.compile(r"\b(?:this year|this season|next year|next season|upcoming season|in \d{4})\b")

MAX_AWARD_COUNT = 8
MAX_SUPER_BOWL_COUNT = 7


@dataclasses.dataclass(frozen=True, slots=True)
class AwardCountClaim:
    """``wins [exactly] N <award>`` read from a prompt."""

    award: str
    count: int = 1
    exact: bool = False

    @property
    def label(self) -> str:
        noun = AWARD_LABELS[self.award]
        if self.count == 1 and not self.exact:
            return f"wins {noun}" if self.award != "super_bowl" else "wins a Super Bowl"
        plural = noun + "s"
        if self.exact:
            return f"wins exactly {self.count} {plural}"
        return f"wins {self.count}+ {plural}"


def parse_award_count(prompt: str) -> AwardCountClaim | None:
    """Detect a career award-count claim, or ``None``."""

    lower = number_words_to_digits(str(prompt or "")).lower()
    lower = re.sub(r"\bto win\b", "wins", lower)
    for award, noun in _AWARD_NOUNS.items():
        if not re.search(rf"\b{noun}\b", lower):
            continue
        counted = re.search(rf"\b{_WIN_VERB}\s+(?:exactly\s+)?(\d+)\s+{noun}\b", lower)
        single = re.search(rf"\b{_WIN_VERB}\s+(?:(?:a|an|the|1)\s+)?{noun}\b", lower)
        if counted is None and single is None:
            continue
        count = int(counted.group(1)) if counted else 1
        limit = MAX_SUPER_BOWL_COUNT if award == "super_bowl" else MAX_AWARD_COUNT
        if count < 1 or count > limit:
            return None
        exact = bool(
            re.search(rf"\bexactly\s+{count}\s+{noun}\b", lower)
            or re.search(rf"\b{count}\s+{noun}\s+exactly\b", lower)
        )
        return AwardCountClaim(award=award, count=count, exact=exact)
    return None


# ---------------------------------------------------------------------------
# Super Bowl curve
# ---------------------------------------------------------------------------

_SUPER_BOWL_SHARE_BY_TIER: Mapping[str, float] = {"elite": 1.35, "high": 1.15, "young": 1.0, "default": 1.0}


def super_bowl_historical_cap(group: str, wins: int, years_exp: int | None) -> float:
    """Upper bound (percent) on N-title careers by position group."""

    young = (years_exp or 0) <= 2
    if group == "qb":
        if wins == 1:
            return 34.0 if young else 46.0
        if wins == 2:
            return 18.0 if young else 24.0
        if wins == 3:
            return 10.0
        return 3.0
    if wins == 1:
        return 20.0
    if wins == 2:
        return 6.0
    if wins == 3:
        return 2.4
    return 1.0


def super_bowl_season_curve(
    profile: PlayerProfile,
    team_super_bowl_pct: float | None,
    calibration: Calibration,
) -> List[float]:
    """Per-season title probabilities shaped by career stage and parity decay."""

    group = outcome_position_group(profile.position)
    exp = profile.years_exp or 0
    years = int(clamp(years_remaining(profile.age, profile.years_exp), 3, 14))
    team_pct = team_super_bowl_pct or calibration.team.default_super_bowl_season_pct

    share = 0.95 if group == "qb" else 0.28
    share *= _SUPER_BOWL_SHARE_BY_TIER.get(calibration.tier_for(normalize_person_name(profile.name)), 1.0)
    if group == "qb" and exp <= 2:
        share *= 0.72
    if group == "qb" and exp >= 4:
        share *= 1.12
    base = clamp(team_pct * share, 0.2, 35)

    curve = []
    for index in range(years):
        career_year = exp + index + 1
        if career_year <= 2:
            role = 0.78
        elif career_year <= 4:
            role = 0.92
        elif career_year <= 9:
            role = 1.05
        elif career_year <= 12:
            role = 0.92
        else:
            role = 0.8
        if group != "qb":
            role *= 0.74
        curve.append(clamp(base * role * 0.97**index / 100, 0.001, 0.38))
    return curve


# ---------------------------------------------------------------------------
# Season award formulas
# ---------------------------------------------------------------------------

_MVP_TIER_BOOST: Mapping[str, float] = {"elite": 1.45, "high": 1.25, "young": 1.12, "default": 1.0}


def mvp_season_pct(profile: PlayerProfile, team_super_bowl_pct: float | None, calibration: Calibration) -> float:
    group = outcome_position_group(profile.position)
    exp = profile.years_exp or 0
    team_signal = clamp((team_super_bowl_pct or calibration.team.default_super_bowl_season_pct) * 0.9, 0.8, 14)
    tier_boost = _MVP_TIER_BOOST.get(calibration.tier_for(normalize_person_name(profile.name)), 1.0)
    if exp <= 0:
        exp_mul = 0.65
    elif exp == 1:
        exp_mul = 0.82
    elif exp == 2:
        exp_mul = 1.0
    elif exp <= 7:
        exp_mul = 1.1
    else:
        exp_mul = 0.95
    if group == "qb":
        pos_mul, baseline = 1.0, 1.2
    elif group in {"rb", "receiver"}:
        pos_mul, baseline = 0.12, 0.15
    else:
        pos_mul, baseline = 0.05, 0.15
    return clamp(team_signal * tier_boost * exp_mul * pos_mul + baseline, 0.1, 40)


def _count_probability(vector: List[float], claim: AwardCountClaim) -> float:
    if claim.exact:
        return poisson_binomial_exactly(vector, claim.count) * 100
    return poisson_binomial_at_least(vector, claim.count) * 100


def estimate_award_count(
    prompt: str,
    intent: Intent,
    profile: PlayerProfile | None,
    *,
    calibration: Calibration | None = None,
    team_super_bowl_pct: float | None = None,
    as_of_date: str = "",
) -> Estimate | None:
    """Price "wins N Super Bowls / MVPs / ..." for a known player.

    Career and unspecified horizons use the full Poisson-binomial over the
    remaining seasons; a season horizon uses only the first season, where a
    count above one is impossible.
    """

    claim = parse_award_count(prompt)
    if claim is None or profile is None or not profile.name:
        return None
    cal = calibration or Calibration()
    summary = f"{profile.name} {claim.label}"
    group = outcome_position_group(profile.position)
    season_only = intent.horizon == "season"

    if season_only and claim.count >= 2:
        return no_chance_estimate(
            f"No player can win more than one {AWARD_LABELS[claim.award]} in a single season.",
            source_label="Single-season award constraint",
            summary_label=summary,
            as_of_date=as_of_date,
            trace={"award": claim.award, "countTarget": claim.count, "horizon": intent.horizon},
        )

    assumptions: Tuple[str, ...]
    if claim.award == "super_bowl":
        curve = super_bowl_season_curve(profile, team_super_bowl_pct, cal)
        vector = curve[:1] if season_only else curve
        raw = _count_probability(vector, claim)
        cap = super_bowl_historical_cap(group, claim.count, profile.years_exp)
        probability = clamp(min(raw, cap), 0.2, 95)
        count_label = f"{claim.count}" if claim.exact else f"{claim.count}+"
        assumptions = (
            "Team Super Bowl strength used as the per-season base.",
            f"Career window modeled over ~{len(curve)} seasons with NFL parity decay.",
            f"Historical cap applied for {count_label} Super Bowl wins by {group.upper()} careers.",
        )
        source_label = "Career historical model"
        expected = sum(curve)
    else:
        vector = award_season_vector(profile, claim.award, cal)
        expected = sum(vector)
        if season_only and claim.award == "mvp":
            probability = mvp_season_pct(profile, team_super_bowl_pct, cal)
        elif season_only:
            probability = clamp((vector[0] if vector else 0.0) * 100, 0.01, 99.9)
        else:
            probability = _count_probability(vector, claim)
            probability = clamp(probability, 0.01, 99.9)
        assumptions = (
            "Deterministic player-award model used with position, age/experience, and team strength context.",
        )
        source_label = "Award baseline model"

    logger.debug("Award count %s for %s: %.3f%%", claim, profile.name, probability)
    return Estimate(
        probability_pct=probability,
        confidence="High",
        assumptions=assumptions,
        source_type="historical_model",
        source_label=source_label,
        summary_label=summary,
        as_of_date=as_of_date,
        trace={
            "award": claim.award,
            "countTarget": claim.count,
            "countMode": "exact" if claim.exact else "at_least",
            "horizon": intent.horizon,
            "expectedCountCareer": round(expected, 3),
        },
    )


# ---------------------------------------------------------------------------
# Retirement
# ---------------------------------------------------------------------------


def has_retirement_intent(prompt: str) -> bool:
    lower = str(prompt or "").lower()
    return bool(_RETIREMENT_CUE.search(lower)) and not has_comeback_cue(lower)


def retirement_season_pct(profile: PlayerProfile, injury: bool = False) -> float:
    """Chance of retiring within one season from age, position and injury."""

    if profile.age:
        age = float(profile.age)
    elif profile.years_exp is not None and profile.years_exp >= 0:
        age = 22.0 + profile.years_exp
    else:
        age = 28.0
    if age <= 24:
        pct = 0.6
    elif age <= 27:
        pct = 0.9
    elif age <= 30:
        pct = 1.4
    elif age <= 33:
        pct = 2.8
    elif age <= 36:
        pct = 7.5
    elif age <= 39:
        pct = 18.0
    else:
        pct = 36.0
    position = profile.position_code
    if position == "QB":
        pct *= 0.75
    elif position == "RB":
        pct *= 1.25
    if profile.years_exp is not None and profile.years_exp <= 2:
        pct = min(pct, 1.2)
    if injury:
        pct *= 1.7
    return clamp(pct, 0.1, 70)


def estimate_retirement(
    prompt: str,
    intent: Intent,
    profile: PlayerProfile | None,
    *,
    as_of_date: str = "",
) -> Estimate | None:
    if not has_retirement_intent(prompt) or profile is None:
        return None
    lower = str(prompt or "").lower()
    summary = str(prompt or "")[:42]
    if profile.status in {"retired", "deceased"}:
        return no_chance_estimate(
            "Player is already retired, so this specific retirement event cannot occur again.",
            source_label="Retirement status constraint",
            summary_label=summary,
            as_of_date=as_of_date,
        )

    season_pct = retirement_season_pct(profile, bool(_INJURY_CUE.search(lower)))
    years = {"career": 8, "ever": 15}.get(intent.horizon)
    if intent.horizon == "multi_year" and intent.window_years:
        years = intent.window_years
    probability = season_pct
    if years:
        probability = (1 - (1 - season_pct / 100) ** years) * 100
    probability = clamp(probability, 0.1, 95)
    return Estimate(
        probability_pct=probability,
        confidence="High",
        assumptions=(
            "Age + career-stage retirement baseline model applied.",
            "Position-adjusted retirement tendency used where available.",
        ),
        source_type="historical_model",
        source_label="Retirement baseline model",
        summary_label=summary,
        as_of_date=as_of_date,
        trace={"seasonProbabilityPct": round(season_pct, 3), "horizon": intent.horizon, "years": years or 1},
    )


# ---------------------------------------------------------------------------
# Hall of Fame
# ---------------------------------------------------------------------------


def estimate_hall_of_fame(
    prompt: str,
    intent: Intent,
    profile: PlayerProfile | None,
    *,
    calibration: Calibration | None = None,
    as_of_date: str = "",
) -> Estimate | None:
    lower = str(prompt or "").lower()
    if not _HALL_OF_FAME.search(lower) or profile is None or not profile.name:
        return None
    summary = str(prompt or "")[:42]
    explicit_season = bool(_EXPLICIT_SEASON.search(lower))
    status = profile.status
    if explicit_season and status == "active":
        return no_chance_estimate(
            "Active players are not Hall of Fame inductees in the current season.",
            source_label="Hall of Fame eligibility constraint",
            summary_label=summary,
            as_of_date=as_of_date,
        )

    cal = calibration or Calibration()
    group = outcome_position_group(profile.position)
    career_pct = build_award_outcomes(profile, cal).hall_of_fame.probability_pct
    years_exp = profile.years_exp or 0
    if status == "retired" and explicit_season:
        career_pct = min(max(career_pct / 3, 4), 35)
    if status == "active" and years_exp <= 3:
        career_pct = min(career_pct, 28 if group == "qb" else 18)
    if status == "active" and years_exp >= 8:
        career_pct = min(career_pct * 1.08, 92)
    if status == "unknown":
        career_pct = max(4, career_pct * 0.8)

    probability = career_pct
    if intent.horizon == "season" and status != "active":
        probability = min(max(career_pct / 3, 2), 45)
    elif intent.horizon == "ever":
        probability = min(career_pct * 1.02, 95)
    probability = clamp(probability, 0.2, 95)
    if not math.isfinite(probability):
        return None
    return Estimate(
        probability_pct=probability,
        confidence="High",
        assumptions=("Hall of Fame estimate uses position baseline + player-tier adjustment.",),
        source_type="historical_model",
        source_label="Hall of Fame baseline model",
        summary_label=summary,
        as_of_date=as_of_date,
        trace={"careerProbabilityPct": round(career_pct, 3), "horizon": intent.horizon, "status": status},
    )


__all__ = [
    "AWARD_LABELS",
    "AwardCountClaim",
    "estimate_award_count",
    "estimate_hall_of_fame",
    "estimate_retirement",
    "has_retirement_intent",
    "mvp_season_pct",
    "parse_award_count",
    "retirement_season_pct",
    "super_bowl_historical_cap",
    "super_bowl_season_curve",
]
