"""Structured intent extraction from normalised prompts."""

from __future__ import annotations

import logging
import re
from typing import FrozenSet, Pattern, Tuple

from .models import Horizon, Intent, League
from .normalization import collapse_whitespace, number_words_to_digits

logger = logging.getLogger(__name__)

_MULTI_YEAR = re.compile(r"\b(?:next|over|within|in the next)\s+(\d{1,2})\s+(?:years|seasons)\b")
_EVER = re.compile(r"\b(?:ever|all[- ]time|at some point|someday|some day)\b")
_CAREER = re.compile(r"\b(?:career|in (?:his|her|their) career)\b")
_HALL_OF_FAME = re.compile(r"\b(?:hall of fame|hof)\b")
_EXPLICIT_SEASON = re.compile(r"\b(?:this year|this season|next year|next season|upcoming season|in \d{4})\b")
_NEXT_SEASON = re.compile(r"\b(?:next year|next season|upcoming season)\b")
_THIS_SEASON = re.compile(r"\b(?:this year|this season|in \d{4})\b")

_LEAGUES: Tuple[Tuple[League, Pattern[str]], ...] = (
    ("nfl", re.compile(r"\bnfl\b")),
    ("nba", re.compile(r"\bnba\b")),
    ("mlb", re.compile(r"\bmlb\b")),
    ("nhl", re.compile(r"\bnhl\b")),
)

BETTING_ADVICE = re.compile(
    r"\b(?:best bet|should i bet|place a bet|bet (?:on|this|that)|parlay|units?|wager|spread|moneyline|over/?under)\b"
)

_NAME_PAIR = re.compile(r"\b([A-Z][A-Za-z'.-]+)\s+([A-Z][A-Za-z'.-]+)\b")

NON_NAME_TOKENS: FrozenSet[str] = frozenset(
    {
        "a",
        "an",
        "any",
        "are",
        "best",
        "bowl",
        "afc",
        "nfc",
        "championship",
        "fame",
        "greatest",
        "hall",
        "hof",
        "is",
        "mvp",
        "next",
        "nfl",
        "nba",
        "mlb",
        "nhl",
        "odds",
        "of",
        "season",
        "super",
        "that",
        "the",
        "this",
        "what",
        "will",
        "year",
    }
)


def parse_time_horizon(text: str) -> Tuple[Horizon, int | None]:
    """Return the horizon and, for multi-year windows, the window length."""

    lower = collapse_whitespace(number_words_to_digits(text)).lower()
    window = _MULTI_YEAR.search(lower)
    if window:
        years = int(window.group(1))
        if 1 <= years <= 30:
            return "multi_year", years
    if _EVER.search(lower):
        return "ever", None
    if _CAREER.search(lower):
        return "career", None
    if _HALL_OF_FAME.search(lower) and not _EXPLICIT_SEASON.search(lower):
        return "career", None
    # "next year" and "this year" both price the upcoming season.
    if _NEXT_SEASON.search(lower) or _THIS_SEASON.search(lower):
        return "season", None
    return "unspecified", None


def detect_league(lower: str) -> League:
    for league, pattern in _LEAGUES:
        if pattern.search(lower):
            return league
    return "unknown"


def is_betting_advice(text: str) -> bool:
    return bool(BETTING_ADVICE.search(text.lower()))


def is_player_prompt(text: str) -> bool:
    """Whether the prompt names a person as two consecutive capitalised tokens."""

    for match in _NAME_PAIR.finditer(text):
        first, last = match.group(1).lower(), match.group(2).lower()
        if first in NON_NAME_TOKENS or last in NON_NAME_TOKENS:
            continue
        return True
    return False


def parse_intent(text: str) -> Intent:
    """Derive an :class:`Intent` from normalised prompt text."""

    raw = collapse_whitespace(text or "")
    lower = raw.lower()
    horizon, window_years = parse_time_horizon(raw)
    intent = Intent(
        horizon=horizon,
        league=detect_league(lower),
        is_betting_advice=is_betting_advice(raw),
        is_player_prompt=is_player_prompt(raw),
        window_years=window_years,
        raw=raw,
    )
    logger.debug("Parsed intent %s for %r", intent, raw)
    return intent


__all__ = [
    "BETTING_ADVICE",
    "NON_NAME_TOKENS",
    "detect_league",
    "is_betting_advice",
    "is_player_prompt",
    "parse_intent",
    "parse_time_horizon",
]
