from __future__ import annotations

import pytest

from longshot.engine.baselines import (
    build_baseline_estimate,
    detect_baseline_event,
    horizon_adjusted_probability,
)
from longshot.engine.configuration import Calibration
from longshot.engine.intent import parse_intent


@pytest.mark.parametrize(
    "prompt, key, pct",
    [
        ("The Super Bowl goes to overtime", "nfl_super_bowl_overtime", 3.4),
        ("A team goes 17-0 in the NFL regular season", "nfl_team_17_0_regular", 0.35),
        ("A team goes 0-17 this NFL season", "nfl_team_0_17_regular", 1.2),
        ("A quarterback throws 50 touchdowns this season", "nfl_any_qb_passing_td_threshold", 3.5),
        ("A quarterback throws for 20 touchdowns this season", "nfl_any_qb_passing_td_threshold", 99.2),
        ("Any QB throws 56 TDs this season", "nfl_any_qb_passing_td_threshold", 0.2),
        ("A quarterback throws 20 interceptions this season", "nfl_any_qb_passing_int_threshold", 33.0),
        ("Any quarterback throws for 500 yards in a game", "nfl_any_qb_game_passing_yards", 30.0),
        ("Any player rushes for 2,000 yards this season", "nfl_any_rusher_yards", 12.0),
        ("A kicker makes a 66-yard field goal this season", "nfl_long_field_goal", 6.0),
        ("The Bills make the playoffs this season", "nfl_team_makes_playoffs", 79.0),
        ("The Jets miss the playoffs", "nfl_team_misses_playoffs", 64.0),
        ("The Chiefs three-peat", "nfl_super_bowl_three_peat", 2.5),
    ],
)
def test_catalog_matches(prompt: str, key: str, pct: float) -> None:
    event = detect_baseline_event(prompt)
    assert event is not None
    assert event.key == key
    assert event.season_probability_pct == pytest.approx(pct)


@pytest.mark.parametrize(
    "prompt",
    [
        "a team goes 17-0",
        "Josh Allen throws 30 touchdowns this season",
        "The Browns make the Super Bowl",
        "",
    ],
)
def test_catalog_misses(prompt: str) -> None:
    assert detect_baseline_event(prompt) is None


def test_any_team_record_exceeds_single_team() -> None:
    single = detect_baseline_event("The Bills go 12-5 this season")
    league = detect_baseline_event("Any team goes 12-5 this season")
    assert single is not None and league is not None
    assert single.key == league.key == "nfl_team_exact_record"
    assert single.season_probability_pct < league.season_probability_pct <= 99.9


def test_league_wide_unions() -> None:
    tie = detect_baseline_event("An NFL game ends in a tie this season")
    points = detect_baseline_event("Any team scores 70 points in a game this season")
    assert tie is not None and 30.0 < tie.season_probability_pct < 45.0
    assert points is not None and 0.01 <= points.season_probability_pct < 5.0


@pytest.mark.parametrize(
    "prompt",
    [
        "The Bills vs Chiefs game ends in a tie",
        "Sunday night's game ends in a tie",
        "Tonight's Eagles game ends in a tie",
    ],
)
def test_named_game_tie_is_a_single_game(prompt: str) -> None:
    tie = detect_baseline_event(prompt)
    assert tie is not None
    assert tie.key == "nfl_game_ends_in_tie"
    assert tie.season_probability_pct == pytest.approx(0.18)


def test_any_game_tie_is_a_schedule_union() -> None:
    single = detect_baseline_event("The Bills vs Chiefs game ends in a tie")
    league = detect_baseline_event("A tie game happens in the NFL this season")
    assert single is not None and league is not None
    assert league.season_probability_pct > 100 * single.season_probability_pct


def test_calibration_overrides_season_probability() -> None:
    calibration = Calibration.from_mapping({"baselines": {"seasonPctOverrides": {"nfl_super_bowl_overtime": 5.0}}})
    event = detect_baseline_event("The Super Bowl goes to overtime", calibration)
    assert event is not None
    assert event.season_probability_pct == 5.0


def test_horizon_adjustment() -> None:
    assert horizon_adjusted_probability(1.0, "season") == 1.0
    assert horizon_adjusted_probability(1.0, "unspecified") == 1.0
    assert horizon_adjusted_probability(1.0, "career") == pytest.approx((1 - 0.99**10) * 100)
    assert horizon_adjusted_probability(1.0, "ever") == pytest.approx((1 - 0.99**30) * 100)
    assert horizon_adjusted_probability(1.0, "multi_year", 3) == pytest.approx((1 - 0.99**3) * 100)
    assert horizon_adjusted_probability(99.9, "ever") == 99.9


def test_build_baseline_estimate_carries_season_companion() -> None:
    prompt = "A team goes 17-0 in the NFL regular season ever"
    result = build_baseline_estimate(prompt, parse_intent(prompt), "2025-10-01")
    assert result is not None
    assert result.estimate.source_label == "Baseline event model (nfl_team_17_0_regular)"
    assert result.estimate.confidence == "High"
    assert result.estimate.trace["horizon"] == "ever"
    assert result.companion.probability_pct == pytest.approx(0.35)
    assert result.companion.trace["horizon"] == "season"
    assert result.estimate.probability_pct > result.companion.probability_pct
