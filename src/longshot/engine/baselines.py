"""Rare-event baseline catalog.

Each :class:`BaselineRule` pairs a prompt matcher with a season-scoped
probability function. Rules are evaluated in order and the first match wins,
so specific events (Super Bowl overtime) sit ahead of generic ones (any team
record). League-wide phrasings ("any team", "a quarterback") go through
:func:`~longshot.engine.distributions.any_entity_probability`.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from .configuration import BaselinesConfig, Calibration
from .distributions import any_entity_probability, beta_binomial_pmf, beta_binomial_tail_at_least
from .models import BaselineEvent, Estimate, Horizon, Intent
from .utils import clamp

logger = logging.getLogger(__name__)

Captures = Dict[str, Any]
Matcher = Callable[[str], "Captures | None"]
ProbabilityFn = Callable[[Captures, BaselinesConfig], float]

MIN_PCT = 0.01
MAX_PCT = 99.9
TIE_GAME_RATE = 0.0018

_SEASON_CUE = re.compile(r"\b(?:this year|this season|next year|next season|in \d{4}|season)\b")
_ANY_QB = re.compile(r"\b(?:a|any)\s+(?:quarterback|qb)\b")
_ANY_TEAM = re.compile(r"\b(?:a|any|some|one)\s+(?:nfl\s+)?team\b|\bany of the\b")
_NFL_CONTEXT = re.compile(r"\bnfl\b|\b(?:0-17|17-0)\b")
_SEASON_CONTEXT = re.compile(r"\b(?:regular season|this nfl season|nfl season|this season|season)\b")
_SUPER_BOWL = re.compile(r"\b(?:super bowl|superbowl|sb)\b")
_IN_A_GAME = re.compile(r"\b(?:in a (?:single )?game|in one game|single[- ]game)\b")
_DIGIT_GROUP = re.compile(r"(?<=\d),(?=\d{3}\b)")
_ANY_GAME = re.compile(r"\b(?:a|an|any|some|one)\s+(?:nfl\s+)?(?:tie\s+)?(?:game|contest)\b|\bany of the games\b")
_TIE_WORDING = re.compile(r"\b(?:ends? in a tie|tie game|game is tied at the end)\b")


@dataclasses.dataclass(frozen=True, slots=True)
class BaselineRule:
    """One catalog entry: matcher plus season probability function."""

    key: str
    matcher: Matcher
    probability: ProbabilityFn
    assumptions: Tuple[str, ...]

    def evaluate(self, lower: str, config: BaselinesConfig) -> BaselineEvent | None:
        captures = self.matcher(lower)
        if captures is None:
            return None
        key = str(captures.get("key") or self.key)
        override = config.season_pct_overrides.get(key)
        season_pct = float(override) if override is not None else self.probability(captures, config)
        return BaselineEvent(
            key=key,
            season_probability_pct=clamp(season_pct, MIN_PCT, MAX_PCT),
            assumptions=self.assumptions,
        )


# ---------------------------------------------------------------------------
# Threshold tables
# ---------------------------------------------------------------------------


def _step_table(table: Sequence[Tuple[float, float]], tail: float) -> Callable[[float], float]:
    """Return a lookup mapping ``threshold`` to the first row with ``threshold <= bound``."""

    def lookup(threshold: float) -> float:
        for bound, pct in table:
            if threshold <= bound:
                return pct
        return tail

    return lookup


ANY_QB_TD_SEASON = _step_table(
    ((15, 99.8), (20, 99.2), (25, 96.5), (30, 86.0), (35, 62.0), (40, 34.0), (45, 13.0), (50, 3.5), (55, 0.8)),
    0.2,
)
ANY_QB_INT_SEASON = _step_table(
    ((10, 99.7), (12, 97.0), (15, 89.0), (18, 60.0), (20, 33.0), (22, 16.0), (25, 4.0)),
    0.8,
)
ANY_RUSHER_YARDS_SEASON = _step_table(
    ((1000, 99.9), (1500, 92.0), (1800, 45.0), (2000, 12.0), (2100, 5.0), (2200, 2.0)),
    0.6,
)
ANY_RECEIVER_YARDS_SEASON = _step_table(
    ((1200, 99.9), (1500, 88.0), (1700, 55.0), (1800, 35.0), (1964, 14.0), (2000, 9.0)),
    2.0,
)
ANY_PLAYER_SACKS_SEASON = _step_table(
    ((15, 97.0), (18, 60.0), (20, 22.0), (22.5, 6.0), (25, 1.5)),
    0.3,
)
ANY_QB_GAME_PASSING_YARDS = _step_table(
    ((400, 99.5), (450, 85.0), (500, 30.0), (554, 6.0)),
    1.5,
)
ANY_QB_GAME_PASSING_TDS = _step_table(
    ((5, 99.0), (6, 60.0), (7, 8.0)),
    0.8,
)
LONG_FIELD_GOAL_SEASON = _step_table(
    ((59, 99.5), (60, 88.0), (63, 45.0), (65, 14.0), (66, 6.0), (70, 1.2)),
    0.1,
)

# Season playoff odds for clubs with a stable recent profile; everyone else is a coin flip.
TEAM_PLAYOFF_PCT: Mapping[str, float] = {
    "KC": 82.0,
    "BUF": 79.0,
    "BAL": 77.0,
    "CIN": 66.0,
    "HOU": 64.0,
    "SF": 74.0,
    "PHI": 72.0,
    "DET": 71.0,
    "DAL": 63.0,
    "GB": 62.0,
    "MIA": 55.0,
    "NYJ": 36.0,
    "NE": 39.0,
    "PIT": 50.0,
    "LAR": 58.0,
}
DEFAULT_PLAYOFF_PCT = 50.0

TEAM_NICKNAMES: Mapping[str, str] = {
    "cardinals": "ARI",
    "falcons": "ATL",
    "ravens": "BAL",
    "bills": "BUF",
    "panthers": "CAR",
    "bears": "CHI",
    "bengals": "CIN",
    "browns": "CLE",
    "cowboys": "DAL",
    "broncos": "DEN",
    "lions": "DET",
    "packers": "GB",
    "texans": "HOU",
    "colts": "IND",
    "jaguars": "JAX",
    "chiefs": "KC",
    "raiders": "LV",
    "chargers": "LAC",
    "rams": "LAR",
    "dolphins": "MIA",
    "vikings": "MIN",
    "patriots": "NE",
    "saints": "NO",
    "giants": "NYG",
    "jets": "NYJ",
    "eagles": "PHI",
    "steelers": "PIT",
    "49ers": "SF",
    "niners": "SF",
    "seahawks": "SEA",
    "buccaneers": "TB",
    "bucs": "TB",
    "titans": "TEN",
    "commanders": "WAS",
}


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def _regex_matcher(pattern: str, *, requires: Sequence[re.Pattern[str]] = ()) -> Matcher:
    compiled = re.compile(pattern)

    def match(lower: str) -> Captures | None:
        if any(not guard.search(lower) for guard in requires):
            return None
        found = compiled.search(lower)
        if found is None:
            return None
        return {name: value for name, value in found.groupdict().items() if value is not None}

    return match


def _match_generic_qb(lower: str) -> Captures | None:
    if not _SEASON_CUE.search(lower) or not _ANY_QB.search(lower):
        return None
    if _IN_A_GAME.search(lower):
        return None
    found = re.search(r"\bthrows?\s+(?:for\s+)?(\d{1,2})\s+(tds?|touchdowns?|ints?|interceptions?|picks?)\b", lower)
    if found is None:
        return None
    threshold = int(found.group(1))
    if threshold < 1:
        return None
    is_int = re.search(r"int|interception|pick", found.group(2)) is not None
    return {
        "threshold": threshold,
        "key": "nfl_any_qb_passing_int_threshold" if is_int else "nfl_any_qb_passing_td_threshold",
    }


def _match_exact_record(lower: str) -> Captures | None:
    for found in re.finditer(r"\b(\d{1,2})-(\d{1,2})\b", lower):
        wins, losses = int(found.group(1)), int(found.group(2))
        if wins + losses == 17 and wins not in (0, 17):
            return {"wins": wins, "any_team": bool(_ANY_TEAM.search(lower))}
    return None


def _match_win_total(lower: str) -> Captures | None:
    found = re.search(
        r"\bwins?\s+(?:at least\s+|over\s+)?(\d{1,2})\+?\s+(?:regular[- ]season\s+)?games\b", lower
    )
    if found is None:
        return None
    wins = int(found.group(1))
    if not 1 <= wins <= 17:
        return None
    return {"wins": wins, "any_team": bool(_ANY_TEAM.search(lower))}


def _match_playoffs(lower: str) -> Captures | None:
    found = re.search(
        r"\b(?:the\s+)?([a-z0-9]+)\s+(make|makes|making|reach|reaches|miss|misses|missing)\s+the\s+playoffs\b",
        lower,
    )
    if found is None:
        return None
    team = TEAM_NICKNAMES.get(found.group(1))
    if team is None:
        return None
    miss = found.group(2).startswith("miss")
    return {"team": team, "miss": miss, "key": "nfl_team_misses_playoffs" if miss else "nfl_team_makes_playoffs"}


def _match_tie_game(lower: str) -> Captures | None:
    if not _TIE_WORDING.search(lower):
        return None
    return {"any_game": bool(_ANY_GAME.search(lower))}


def _match_team_points(lower: str) -> Captures | None:
    if not _ANY_TEAM.search(lower):
        return None
    found = re.search(r"\bscores?\s+(\d{2,3})\+?\s+points\b", lower)
    if found is None:
        return None
    return {"points": int(found.group(1))}


# ---------------------------------------------------------------------------
# Probability functions
# ---------------------------------------------------------------------------


def _constant(pct: float) -> ProbabilityFn:
    return lambda captures, config: pct


def _generic_qb_pct(captures: Captures, config: BaselinesConfig) -> float:
    threshold = float(captures["threshold"])
    if captures["key"] == "nfl_any_qb_passing_int_threshold":
        return ANY_QB_INT_SEASON(threshold)
    return ANY_QB_TD_SEASON(threshold)


def _super_bowl_margin_pct(captures: Captures, config: BaselinesConfig) -> float:
    margin = max(1, int(captures["margin"]))
    return clamp(100.0 * math.exp(-0.075 * (margin - 1)), 0.05, 99.0)


def _exact_record_pct(captures: Captures, config: BaselinesConfig) -> float:
    single = beta_binomial_pmf(
        int(captures["wins"]),
        config.games_per_season,
        config.team_record_alpha,
        config.team_record_beta,
    )
    if captures.get("any_team"):
        return 100.0 * any_entity_probability(single, config.league_teams)
    return 100.0 * single


def _win_total_pct(captures: Captures, config: BaselinesConfig) -> float:
    single = beta_binomial_tail_at_least(
        int(captures["wins"]),
        config.games_per_season,
        config.team_record_alpha,
        config.team_record_beta,
    )
    if captures.get("any_team"):
        return 100.0 * any_entity_probability(single, config.league_teams)
    return 100.0 * single


def _threshold_pct(table: Callable[[float], float], group: str = "threshold") -> ProbabilityFn:
    return lambda captures, config: table(float(captures[group]))


def _playoff_pct(captures: Captures, config: BaselinesConfig) -> float:
    make = TEAM_PLAYOFF_PCT.get(str(captures["team"]), DEFAULT_PLAYOFF_PCT)
    return 100.0 - make if captures.get("miss") else make


def _tie_game_pct(captures: Captures, config: BaselinesConfig) -> float:
    if not captures.get("any_game"):
        return 100.0 * TIE_GAME_RATE
    games = config.league_teams * config.games_per_season // 2
    return 100.0 * any_entity_probability(TIE_GAME_RATE, games)


def _team_points_pct(captures: Captures, config: BaselinesConfig) -> float:
    points = int(captures["points"])
    per_team_game = clamp(0.005 * math.exp(-0.3 * (points - 50)), 1e-9, 0.5)
    team_games = config.league_teams * config.games_per_season
    return 100.0 * any_entity_probability(per_team_game, team_games)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

_HORIZON_NOTE = "Baseline event model used with time-horizon adjustment."

BASELINE_RULES: Tuple[BaselineRule, ...] = (
    BaselineRule(
        key="nfl_super_bowl_overtime",
        matcher=_regex_matcher(r"\b(?:overtime|goes to ot|in ot)\b", requires=(_SUPER_BOWL,)),
        probability=_constant(3.4),
        assumptions=("Two Super Bowls in roughly sixty have reached overtime.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_super_bowl_shutout",
        matcher=_regex_matcher(r"\b(?:shutout|shut out|shuts out|held scoreless|scoreless)\b", requires=(_SUPER_BOWL,)),
        probability=_constant(0.8),
        assumptions=("No Super Bowl has ended in a shutout.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_super_bowl_margin",
        matcher=_regex_matcher(
            r"\b(?:wins?|won|winning)\s+(?:the\s+super bowl\s+)?by\s+(?:at least\s+)?(?P<margin>\d{1,2})\+?\s+(?:points|pts)\b",
            requires=(_SUPER_BOWL,),
        ),
        probability=_super_bowl_margin_pct,
        assumptions=("Super Bowl margins decay roughly exponentially with size.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_super_bowl_three_peat",
        matcher=_regex_matcher(r"\b(?:three[- ]?peat|3[- ]?peat|(?:three|3) straight super bowls)\b"),
        probability=_constant(2.5),
        assumptions=("No team has won three consecutive Super Bowls.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_super_bowl_repeat",
        matcher=_regex_matcher(
            r"\b(?:repeats?|repeat as (?:super bowl )?champions?|back[- ]to[- ]back (?:super bowls|champions?|titles))\b",
            requires=(_SUPER_BOWL,),
        ),
        probability=_constant(12.0),
        assumptions=("Defending champions repeat roughly one season in ten.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_rookie_qb_wins_super_bowl",
        matcher=_regex_matcher(r"\brookie\s+(?:qb|quarterback)\b.*\bwins?\b", requires=(_SUPER_BOWL,)),
        probability=_constant(0.3),
        assumptions=("No rookie starting quarterback has won a Super Bowl.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_one_seed_wins_super_bowl",
        matcher=_regex_matcher(r"\b(?:no\.?\s*1|number one|top|1)\s+seeds?\s+wins?\b", requires=(_SUPER_BOWL,)),
        probability=_constant(42.0),
        assumptions=("Top seeds have won a large share of recent Super Bowls.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_home_team_super_bowl",
        matcher=_regex_matcher(
            r"\b(?:home (?:team|stadium)|own stadium|home field)\b", requires=(_SUPER_BOWL,)
        ),
        probability=_constant(4.0),
        assumptions=("The host city's team rarely reaches the Super Bowl.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_worst_to_first",
        matcher=_regex_matcher(r"\bworst[- ]to[- ]first\b"),
        probability=_constant(50.0),
        assumptions=("Some division produces a worst-to-first club about every other season.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_team_17_0_regular",
        matcher=_regex_matcher(r"\b17-0\b", requires=(_NFL_CONTEXT, _SEASON_CONTEXT)),
        probability=_constant(0.35),
        assumptions=(
            "NFL parity and schedule strength distribution make 17-0 extremely rare.",
            _HORIZON_NOTE,
        ),
    ),
    BaselineRule(
        key="nfl_team_0_17_regular",
        matcher=_regex_matcher(r"\b0-17\b", requires=(_NFL_CONTEXT, _SEASON_CONTEXT)),
        probability=_constant(1.2),
        assumptions=(
            "Bottom-tail season outcomes are uncommon but more frequent than perfect seasons.",
            _HORIZON_NOTE,
        ),
    ),
    BaselineRule(
        key="nfl_team_exact_record",
        matcher=_match_exact_record,
        probability=_exact_record_pct,
        assumptions=(
            "Beta-binomial team-record model (17 games, alpha = beta = 30).",
            _HORIZON_NOTE,
        ),
    ),
    BaselineRule(
        key="nfl_team_win_total",
        matcher=_match_win_total,
        probability=_win_total_pct,
        assumptions=(
            "Beta-binomial team-record model (17 games, alpha = beta = 30).",
            _HORIZON_NOTE,
        ),
    ),
    BaselineRule(
        key="nfl_any_qb_game_passing_yards",
        matcher=_regex_matcher(
            r"\bthrows?\s+(?:for\s+)?(?P<threshold>\d{3})\s+(?:passing\s+)?(?:yards?|yds?)\b",
            requires=(_ANY_QB, _IN_A_GAME),
        ),
        probability=_threshold_pct(ANY_QB_GAME_PASSING_YARDS),
        assumptions=("League-wide single-game passing yardage table.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_any_qb_game_passing_tds",
        matcher=_regex_matcher(
            r"\bthrows?\s+(?:for\s+)?(?P<threshold>\d{1,2})\s+(?:tds?|touchdowns?|touchdown passes)\b",
            requires=(_ANY_QB, _IN_A_GAME),
        ),
        probability=_threshold_pct(ANY_QB_GAME_PASSING_TDS),
        assumptions=("League-wide single-game passing touchdown table.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_any_qb_passing_td_threshold",
        matcher=_match_generic_qb,
        probability=_generic_qb_pct,
        assumptions=(
            "Historical NFL passing environment baseline for any-QB season threshold.",
            "Deterministic threshold model used for generic QB prompts.",
        ),
    ),
    BaselineRule(
        key="nfl_any_rusher_yards",
        matcher=_regex_matcher(
            r"\b(?:a|any)\s+(?:running back|rb|rusher|player)\s+(?:rushes|runs)\s+for\s+(?P<threshold>\d{3,4})\s+(?:rushing\s+)?(?:yards?|yds?)\b",
            requires=(_SEASON_CUE,),
        ),
        probability=_threshold_pct(ANY_RUSHER_YARDS_SEASON),
        assumptions=("League-wide season rushing leader table.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_any_receiver_yards",
        matcher=_regex_matcher(
            r"\b(?:a|any)\s+(?:receiver|wide receiver|wr|player|tight end)\s+(?:has|gets|records|goes for|catches for)\s+(?P<threshold>\d{3,4})\s+(?:receiving\s+)?(?:yards?|yds?)\b",
            requires=(_SEASON_CUE,),
        ),
        probability=_threshold_pct(ANY_RECEIVER_YARDS_SEASON),
        assumptions=("League-wide season receiving leader table.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_any_player_sacks",
        matcher=_regex_matcher(
            r"\b(?:a|any)\s+(?:player|defender|pass rusher|edge rusher)\s+(?:has|gets|records)\s+(?P<threshold>\d{1,2}(?:\.5)?)\s+sacks\b"
        ),
        probability=_threshold_pct(ANY_PLAYER_SACKS_SEASON),
        assumptions=("League-wide season sack leader table.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_long_field_goal",
        matcher=_regex_matcher(r"\b(?P<threshold>\d{2})[- ]?(?:yard|yd)\s+field goal\b"),
        probability=_threshold_pct(LONG_FIELD_GOAL_SEASON),
        assumptions=("League-wide longest field goal table.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_game_ends_in_tie",
        matcher=_match_tie_game,
        probability=_tie_game_pct,
        assumptions=(
            "Ties occur in roughly one game in five hundred.",
            "A named game is priced once; any game is a union over the season schedule.",
            _HORIZON_NOTE,
        ),
    ),
    BaselineRule(
        key="nfl_team_scores_points",
        matcher=_match_team_points,
        probability=_team_points_pct,
        assumptions=("Per team-game scoring tail aggregated over a season of games.", _HORIZON_NOTE),
    ),
    BaselineRule(
        key="nfl_team_makes_playoffs",
        matcher=_match_playoffs,
        probability=_playoff_pct,
        assumptions=("Team playoff baseline from recent roster strength.", _HORIZON_NOTE),
    ),
)


def _baselines_config(calibration: Calibration | None) -> BaselinesConfig:
    return calibration.baselines if calibration is not None else BaselinesConfig()


def detect_baseline_event(
    prompt: str,
    calibration: Calibration | None = None,
    rules: Sequence[BaselineRule] = BASELINE_RULES,
) -> BaselineEvent | None:
    """Return the first catalog event matching ``prompt``, or ``None``."""

    lower = _DIGIT_GROUP.sub("", str(prompt or "").lower())
    config = _baselines_config(calibration)
    for rule in rules:
        event = rule.evaluate(lower, config)
        if event is not None:
            logger.debug("Baseline rule %s matched (%.3f%%)", event.key, event.season_probability_pct)
            return event
    return None


def horizon_adjusted_probability(
    season_pct: float,
    horizon: Horizon | str,
    window_years: int | None = None,
    calibration: Calibration | None = None,
) -> float:
    """Compound a season probability over the horizon's window of seasons."""

    config = _baselines_config(calibration)
    if horizon == "career":
        years = config.career_years
    elif horizon == "ever":
        years = config.ever_years
    elif horizon == "multi_year" and window_years:
        years = int(window_years)
    else:
        return season_pct
    p = clamp(season_pct / 100.0, 0.0, 1.0)
    return clamp((1.0 - (1.0 - p) ** years) * 100.0, MIN_PCT, MAX_PCT)


@dataclasses.dataclass(frozen=True, slots=True)
class BaselineEstimate:
    """Horizon-adjusted estimate plus its season-scoped companion."""

    estimate: Estimate
    companion: Estimate
    event: BaselineEvent


def build_baseline_estimate(
    prompt: str,
    intent: Intent,
    as_of_date: str,
    calibration: Calibration | None = None,
) -> BaselineEstimate | None:
    event = detect_baseline_event(prompt, calibration)
    if event is None:
        return None
    probability = horizon_adjusted_probability(
        event.season_probability_pct, intent.horizon, intent.window_years, calibration
    )
    trace = {
        "baselineEventKey": event.key,
        "seasonProbabilityPct": event.season_probability_pct,
        "horizon": intent.horizon,
    }
    if intent.window_years:
        trace["windowYears"] = intent.window_years
    estimate = Estimate(
        probability_pct=probability,
        confidence="High",
        assumptions=event.assumptions,
        source_type="historical_model",
        source_label=f"Baseline event model ({event.key})",
        summary_label=str(prompt or "")[:42],
        as_of_date=as_of_date,
        trace=trace,
    )
    companion = dataclasses.replace(
        estimate,
        probability_pct=event.season_probability_pct,
        trace={**trace, "horizon": "season"},
    )
    return BaselineEstimate(estimate=estimate, companion=companion, event=event)


__all__ = [
    "BASELINE_RULES",
    "BaselineEstimate",
    "BaselineRule",
    "TEAM_NICKNAMES",
    "TEAM_PLAYOFF_PCT",
    "build_baseline_estimate",
    "detect_baseline_event",
    "horizon_adjusted_probability",
]
