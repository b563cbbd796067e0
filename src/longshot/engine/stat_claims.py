"""Statistical-claim extraction ("1500 receiving yards this season")."""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Callable, Mapping, Pattern, Sequence, Tuple

from .models import Metric, Scope, StatClaim
from .normalization import number_words_to_digits

logger = logging.getLogger(__name__)

_SEASON_CUE = re.compile(r"\b(?:this year|this season|next year|next season|upcoming season|in \d{4}|season)\b")
_GAME_CUE = re.compile(
    r"\b(?:in a (?:single |playoff |regular[- ]season )?game|in (?:one|1) game|single[- ]game|in a week|in week \d{1,2})\b"
)
_RECEIVING_CONTEXT = re.compile(r"\b(?:receiv\w*|catch\w*|rec)\b")

# Common misspellings and shorthand rewritten before matching.
_REWRITES: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(?<=\d),(?=\d{3}\b)"), ""),
    (re.compile(r"\brushers?\s+for\b"), "rushes for"),
    (re.compile(r"\brushesr?\s+for\b"), "rushes for"),
    (re.compile(r"\brec(?:eiv|iev)ing\b"), "receiving"),
    (re.compile(r"\brec\s+yds?\b"), "receiving yards"),
    (re.compile(r"\brec\b(?=\s*(?:yards?|yds?)\b)"), "receiving"),
    (re.compile(r"\breception\b"), "receptions"),
    (re.compile(r"\btouchdown passes\b"), "touchdowns"),
    (re.compile(r"\btd passes\b"), "tds"),
)

# (metric, scope) -> smallest threshold worth pricing.
MIN_THRESHOLDS: Mapping[Tuple[str, str], float] = {
    ("passing_yards", "season"): 500,
    ("passing_yards", "game"): 200,
    ("rushing_yards", "season"): 10,
    ("rushing_yards", "game"): 10,
    ("receiving_yards", "season"): 10,
    ("receiving_yards", "game"): 10,
    ("scrimmage_yards", "season"): 50,
    ("scrimmage_yards", "game"): 50,
    ("receptions", "season"): 5,
    ("receptions", "game"): 3,
}
DEFAULT_MIN_THRESHOLD = 1.0


def _passing_metric(match: re.Match[str]) -> Metric:
    word = match.group("unit")
    if re.search(r"yards?|yds?", word):
        return "passing_yards"
    if re.search(r"int|interception|pick", word):
        return "passing_interceptions"
    return "passing_tds"


@dataclasses.dataclass(frozen=True, slots=True)
class StatClaimRule:
    """Pattern producing a claim for one metric (or a metric chosen from the match)."""

    name: str
    pattern: Pattern[str]
    metric: Metric | Callable[[re.Match[str]], Metric]
    requires: Pattern[str] | None = None

    def match(self, text: str, scope: Scope) -> StatClaim | None:
        if self.requires is not None and not self.requires.search(text):
            return None
        found = self.pattern.search(text)
        if found is None:
            return None
        metric = self.metric(found) if callable(self.metric) else self.metric
        threshold = float(found.group("n"))
        if threshold < MIN_THRESHOLDS.get((metric, scope), DEFAULT_MIN_THRESHOLD):
            return None
        return StatClaim(metric=metric, threshold=threshold, scope=scope)


STAT_CLAIM_RULES: Tuple[StatClaimRule, ...] = (
    StatClaimRule(
        name="passing",
        pattern=re.compile(
            r"\b(?:throws?|threw|passes|passed)\s+(?:for\s+)?(?P<n>\d{1,4})\s+"
            r"(?P<unit>passing\s+yards?|yards?|yds?|interceptions?|ints?|picks?|passing\s+tds?|tds?|touchdowns?)\b"
        ),
        metric=_passing_metric,
    ),
    StatClaimRule(
        name="receiving_tds",
        pattern=re.compile(
            r"\b(?:catches?|caught|receives?|gets?|has|scores?|scored)\s+(?:for\s+)?(?P<n>\d{1,2})\s+receiving\s+(?:tds?|touchdowns?)\b"
        ),
        metric="receiving_tds",
    ),
    StatClaimRule(
        name="receiving_tds_catch",
        pattern=re.compile(r"\b(?:catches?|caught|receives?)\s+(?:for\s+)?(?P<n>\d{1,2})\s+(?:tds?|touchdowns?)\b"),
        metric="receiving_tds",
    ),
    StatClaimRule(
        name="rushing_tds",
        pattern=re.compile(r"\b(?:rush(?:es|ing|ed)?|runs?|ran)\s+(?:for\s+)?(?P<n>\d{1,2})\s+(?:rushing\s+)?(?:tds?|touchdowns?)\b"),
        metric="rushing_tds",
    ),
    StatClaimRule(
        name="rushing_tds_compact",
        pattern=re.compile(r"\b(?P<n>\d{1,2})\s+rushing\s+(?:tds?|touchdowns?)\b"),
        metric="rushing_tds",
    ),
    StatClaimRule(
        name="receiving_tds_compact",
        pattern=re.compile(r"\b(?P<n>\d{1,2})\s+receiving\s+(?:tds?|touchdowns?)\b"),
        metric="receiving_tds",
    ),
    StatClaimRule(
        name="scrimmage_yards",
        pattern=re.compile(
            r"\b(?P<n>\d{2,4})\s+(?:scrimmage\s+(?:yards?|yds?)|(?:yards?|yds?)\s+from\s+scrimmage|total\s+yards)\b"
        ),
        metric="scrimmage_yards",
    ),
    StatClaimRule(
        name="rushing_yards",
        pattern=re.compile(r"\b(?:rush(?:es|ing|ed)?|runs?|ran)\s+(?:for\s+)?(?P<n>\d{2,4})\s+(?:yards?|yds?)\b"),
        metric="rushing_yards",
    ),
    StatClaimRule(
        name="receiving_yards",
        pattern=re.compile(r"\b(?:(?:for|gets?|has|records?|posts?)\s+)?(?P<n>\d{2,4})\s+(?:receiving\s+)?(?:yards?|yds?)\b"),
        metric="receiving_yards",
        requires=_RECEIVING_CONTEXT,
    ),
    StatClaimRule(
        name="rushing_yards_compact",
        pattern=re.compile(r"\b(?P<n>\d{2,4})\s+rushing\s+(?:yards?|yds?)\b"),
        metric="rushing_yards",
    ),
    StatClaimRule(
        name="receptions",
        pattern=re.compile(r"\b(?:catches?|gets?|has|records?|hauls in)?\s*(?P<n>\d{1,3})\s+(?:receptions|catches)\b"),
        metric="receptions",
    ),
    StatClaimRule(
        name="total_tds",
        pattern=re.compile(
            r"\b(?:scores?|scored|has|gets?|records?|finds the end zone for)\s+(?P<n>\d{1,2})\s+(?:total\s+)?(?:tds?|touchdowns?)\b"
        ),
        metric="total_tds",
    ),
)


def claim_scope(text: str) -> Scope | None:
    """Temporal scope of a claim, or ``None`` without a season/game cue."""

    if _GAME_CUE.search(text):
        return "game"
    if _SEASON_CUE.search(text):
        return "season"
    return None


def _rewrite(text: str) -> str:
    for pattern, replacement in _REWRITES:
        text = pattern.sub(replacement, text)
    return text


def parse_season_stat_intent(
    prompt: str,
    rules: Sequence[StatClaimRule] = STAT_CLAIM_RULES,
) -> StatClaim | None:
    """Return the first structurally valid stat claim in ``prompt``."""

    lower = number_words_to_digits(str(prompt or "")).lower()
    scope = claim_scope(lower)
    if scope is None:
        return None
    text = _rewrite(lower)
    for rule in rules:
        claim = rule.match(text, scope)
        if claim is not None:
            logger.debug("Stat-claim rule %s produced %s", rule.name, claim)
            return claim
    return None


__all__ = [
    "MIN_THRESHOLDS",
    "STAT_CLAIM_RULES",
    "StatClaimRule",
    "claim_scope",
    "parse_season_stat_intent",
]
