from __future__ import annotations

import pytest

from longshot.engine.consistency import (
    IMPOSSIBILITY_LABEL,
    MONOTONICITY_NOTE,
    has_comeback_cue,
    has_deceased_cue,
    is_hard_impossibility,
    repair,
)
from longshot.engine.models import Estimate, Intent, NO_CHANCE


def _estimate(pct: float) -> Estimate:
    return Estimate(probability_pct=pct, confidence="Medium", assumptions=("base",), source_label="Baseline")


@pytest.mark.parametrize(
    "prompt, expected",
    [
        ("Babe Ruth comes out of retirement", True),
        ("The late Walter Payton comes out of retirement", True),
        ("The late Walter Payton plays again", False),
        ("A deceased quarterback returns to play", True),
        ("Kobe Bryant wins MVP", False),
        ("Tom Brady comes out of retirement", False),
        ("A team wins the Super Bowl by 10 points after a late comeback", False),
        ("Derrick Henry returns late in the season and rushes for 1000 yards this season", False),
        ("A dead-ball foul wins the game", False),
    ],
)
def test_hard_impossibility(prompt: str, expected: bool) -> None:
    assert is_hard_impossibility(prompt) is expected


def test_comeback_cue_requires_retirement_return() -> None:
    assert has_comeback_cue("aaron rodgers un-retires")
    assert has_comeback_cue("Jim Brown returns to play")
    assert not has_comeback_cue("the bills return kick returns for touchdowns")
    assert not has_comeback_cue("a late comeback wins the game")


def test_late_is_a_death_cue_only_before_a_name() -> None:
    assert has_deceased_cue("The late Walter Payton")
    assert has_deceased_cue("the late Junior Seau plays again")
    assert not has_deceased_cue("a late comeback")
    assert not has_deceased_cue("Derrick Henry returns late in the season")


def test_impossibility_dominates() -> None:
    repaired = repair("Babe Ruth comes out of retirement", Intent(horizon="ever"), _estimate(12.0), 40.0)
    assert repaired is not None
    assert repaired.probability_pct == 0.0
    assert repaired.odds == NO_CHANCE
    assert repaired.source_type == "constraint_model"
    assert repaired.source_label == IMPOSSIBILITY_LABEL
    assert repaired.confidence == "High"


def test_ever_is_raised_to_season_companion() -> None:
    season = _estimate(5.0)
    repaired = repair("A team goes 17-0 ever", Intent(horizon="ever"), _estimate(2.0), season)
    assert repaired is not None
    assert repaired.probability_pct == 5.0
    assert repaired.assumptions[-1] == MONOTONICITY_NOTE


def test_monotone_estimates_pass_through() -> None:
    original = _estimate(10.0)
    assert repair("A team goes 17-0 ever", Intent(horizon="ever"), original, 5.0) is original
    assert repair("A team goes 17-0", Intent(horizon="season"), original, 50.0) is original
    assert repair("anything", None, original) is original


def test_non_ok_and_sentinel_estimates_pass_through() -> None:
    refused = Estimate(status="refused", title="Not betting advice")
    assert repair("Babe Ruth comes out of retirement", None, refused) is refused
    sentinel = _estimate(0.0)
    assert repair("A team goes 17-0 ever", Intent(horizon="ever"), sentinel, 5.0) is sentinel
    assert repair("anything", None, None) is None
