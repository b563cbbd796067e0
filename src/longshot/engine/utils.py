"""Reusable math helpers for odds and probabilities."""

from __future__ import annotations

import math

OddsValue = int | float | str

NO_CHANCE = "NO CHANCE"

# Display thresholds: at or beyond these quotes a presentation layer renders a
# "lock" or "no shot" badge instead of the raw number.
LOCK_ODDS_THRESHOLD = -10_000
NO_SHOT_ODDS_THRESHOLD = 10_000

_MIN_QUOTED_PROBABILITY = 0.001
_MAX_QUOTED_PROBABILITY = 0.999

__all__ = [
    "OddsValue",
    "NO_CHANCE",
    "LOCK_ODDS_THRESHOLD",
    "NO_SHOT_ODDS_THRESHOLD",
    "clamp",
    "round1",
    "normalise_american_odds",
    "to_american_odds",
    "from_american_odds",
    "format_implied_probability",
    "is_lock",
    "is_no_shot",
]


def clamp(value: float, lower: float, upper: float) -> float:
    """Bound ``value`` to the closed interval ``[lower, upper]``."""

    return min(upper, max(lower, value))


def round1(value: float) -> float:
    """Round half away from zero to one decimal place."""

    scaled = value * 10.0
    return math.floor(scaled + 0.5) / 10.0 if scaled >= 0 else -math.floor(-scaled + 0.5) / 10.0


def normalise_american_odds(value: OddsValue) -> int:
    """Coerce American odds into a signed integer."""

    if isinstance(value, bool):
        raise ValueError("Boolean is not an odds value")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("Odds must be finite")
        return int(round(value))
    stripped = value.strip()
    if not stripped:
        raise ValueError("Empty odds value")
    if stripped[0] in {"+", "-"}:
        return int(stripped)
    return int(f"+{stripped}")


def to_american_odds(probability_pct: float) -> str:
    """Render a percentage as an American odds string.

    Exactly zero renders as :data:`NO_CHANCE`. Every other input is clamped to
    ``[0.1, 99.9]`` percent before quoting, so the magnitude never exceeds
    ``99900``.
    """

    if probability_pct == 0:
        return NO_CHANCE
    p = clamp(probability_pct / 100.0, _MIN_QUOTED_PROBABILITY, _MAX_QUOTED_PROBABILITY)
    if p >= 0.5:
        return f"{-_round_half_up(p / (1.0 - p) * 100.0)}"
    return f"+{_round_half_up((1.0 - p) / p * 100.0)}"


def from_american_odds(text: OddsValue | None) -> float | None:
    """Invert :func:`to_american_odds` into a percentage.

    ``"NO CHANCE"`` maps to ``0.0``. Unparseable input and the meaningless
    quote ``0`` return ``None``.
    """

    if text is None:
        return None
    if isinstance(text, str) and text.strip().upper() == NO_CHANCE:
        return 0.0
    try:
        price = normalise_american_odds(text)
    except ValueError:
        return None
    if price == 0:
        return None
    if price > 0:
        return 100.0 * 100.0 / (price + 100.0)
    return 100.0 * -price / (-price + 100.0)


def format_implied_probability(probability_pct: float) -> str:
    """Fixed one-decimal percentage string, e.g. ``"37.5%"``."""

    return f"{round1(probability_pct):.1f}%"


def is_lock(odds: str) -> bool:
    """Whether a quote sits at or beyond the lock display threshold."""

    price = _parse_price(odds)
    return price is not None and price <= LOCK_ODDS_THRESHOLD


def is_no_shot(odds: str) -> bool:
    """Whether a quote sits at or beyond the no-shot display threshold."""

    if isinstance(odds, str) and odds.strip().upper() == NO_CHANCE:
        return True
    price = _parse_price(odds)
    return price is not None and price >= NO_SHOT_ODDS_THRESHOLD


def _parse_price(odds: OddsValue) -> int | None:
    try:
        return normalise_american_odds(odds)
    except ValueError:
        return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
