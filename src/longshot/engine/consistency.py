"""Cross-prompt consistency repairs applied to a finished estimate."""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import FrozenSet

from .models import Estimate, Intent

logger = logging.getLogger(__name__)

IMPOSSIBILITY_LABEL = "Hard impossibility constraint"
IMPOSSIBILITY_ASSUMPTION = "Scenario is infeasible by hard-world constraints."
MONOTONICITY_NOTE = "Repaired horizon monotonicity: ever >= season."

KNOWN_DECEASED: FrozenSet[str] = frozenset(
    {
        "babe ruth",
        "kobe bryant",
        "walter payton",
        "joe dimaggio",
        "lou gehrig",
        "thurman munson",
    }
)

_DECEASED_CUE = re.compile(r"\b(?:dead|deceased)\b", re.IGNORECASE)
# "late" only as an honorific before a capitalised name.
_THE_LATE = re.compile(r"\b[Tt]he late [A-Z]")
_COMEBACK_CUE = re.compile(
    r"\b(?:comes? out of retirement|unretires?|un-retires?|returns? to play|returns? from retirement|comes? back from retirement)\b",
    re.IGNORECASE,
)


def has_deceased_cue(text: str) -> bool:
    """Explicit death wording, "the late <Name>", or a known deceased athlete."""

    if _DECEASED_CUE.search(text) or _THE_LATE.search(text):
        return True
    lower = text.lower()
    return any(name in lower for name in KNOWN_DECEASED)


def has_comeback_cue(text: str) -> bool:
    """Explicit return from retirement, not an in-game or in-season return."""

    return bool(_COMEBACK_CUE.search(text))


def is_hard_impossibility(prompt: str) -> bool:
    """A deceased subject combined with an active return is infeasible."""

    text = str(prompt or "")
    return has_deceased_cue(text) and has_comeback_cue(text)


def _companion_pct(companion: Estimate | float | None) -> float | None:
    if companion is None:
        return None
    if isinstance(companion, Estimate):
        return companion.probability_pct
    return float(companion)


def repair(
    prompt: str,
    intent: Intent | None,
    estimate: Estimate | None,
    companion: Estimate | float | None = None,
) -> Estimate | None:
    """Apply the impossibility override and horizon monotonicity.

    ``companion`` is the season-scoped counterpart of the same event (an
    :class:`Estimate` or a bare percentage). Estimates that are not ``ok`` or
    already carry the impossibility sentinel pass through unchanged.
    """

    if estimate is None or estimate.status != "ok" or estimate.is_no_chance:
        return estimate
    if estimate.probability_pct is None:
        return estimate

    if is_hard_impossibility(prompt):
        logger.info("Hard impossibility constraint applied to %r", prompt)
        return dataclasses.replace(
            estimate,
            probability_pct=0.0,
            confidence="High",
            source_type="constraint_model",
            source_label=IMPOSSIBILITY_LABEL,
            assumptions=(IMPOSSIBILITY_ASSUMPTION,),
        )

    probability = estimate.probability_pct
    season_pct = _companion_pct(companion)
    if intent is not None and intent.horizon == "ever" and season_pct and probability < season_pct:
        logger.info("Raised ever estimate %.3f%% to season companion %.3f%%", probability, season_pct)
        return estimate.with_probability(
            season_pct,
            assumptions=tuple(estimate.assumptions) + (MONOTONICITY_NOTE,),
        )
    return estimate


__all__ = [
    "IMPOSSIBILITY_ASSUMPTION",
    "IMPOSSIBILITY_LABEL",
    "KNOWN_DECEASED",
    "MONOTONICITY_NOTE",
    "has_comeback_cue",
    "has_deceased_cue",
    "is_hard_impossibility",
    "repair",
]
