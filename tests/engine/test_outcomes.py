from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from longshot.engine.configuration import Calibration
from longshot.engine.models import PlayerProfile
from longshot.engine.outcomes import (
    OutcomeContext,
    build_award_outcomes,
    build_career_outcomes,
    build_performance_outcomes,
    build_performance_threshold_outcome,
    build_player_outcomes,
    build_season_vector,
    build_team_outcomes,
    count_distribution,
    outcome_position_group,
    probability_play_to_age,
    threshold_base_pct,
    years_remaining,
)


def test_position_groups() -> None:
    assert outcome_position_group("TE") == "receiver"
    assert outcome_position_group("edge") == "defense"
    assert outcome_position_group("K") == "special"
    assert outcome_position_group(None) == "other"


@pytest.mark.parametrize(
    "age, years_exp, expected",
    [
        (29, 7, 12),
        (30, 8, 11),
        (30.5, 8, 11),
        (29.2, 7, 12),
        (38.9, 15, 3),
        (45, None, 2),
        (None, 10, 2),
        (None, 0, 12),
        (None, None, 9),
    ],
)
def test_years_remaining(age, years_exp, expected) -> None:
    assert years_remaining(age, years_exp) == expected


def test_season_vector_decays_and_clamps() -> None:
    assert build_season_vector(10, 3, 0.5) == pytest.approx([0.1, 0.05, 0.025])
    assert build_season_vector(0.0, 2) == [0.0005, 0.0005]
    assert build_season_vector(95.0, 1) == [0.8]
    assert build_season_vector(5.0, 0) == []


def test_count_distribution_without_overflow() -> None:
    distribution = count_distribution([0.5, 0.5, 0.5])
    assert [bucket.count for bucket in distribution.buckets] == [0, 1, 2, 3]
    assert [bucket.probability_pct for bucket in distribution.buckets] == [12.5, 37.5, 37.5, 12.5]
    assert distribution.expected_count == 1.5
    assert count_distribution([]).buckets[0].probability_pct == 100.0


def test_count_distribution_overflow_bucket() -> None:
    distribution = count_distribution([0.5] * 10, max_count=3)
    assert [bucket.count for bucket in distribution.buckets] == [0, 1, 2, "3+"]
    assert distribution.buckets[-1].probability_pct == pytest.approx(94.5)
    assert distribution.expected_count == 5.0


@given(st.lists(st.floats(min_value=0.0, max_value=1.0, allow_nan=False), max_size=20), st.integers(min_value=1, max_value=10))
def test_count_distribution_mass_is_close_to_100(probs: list[float], max_count: int) -> None:
    distribution = count_distribution(probs, max_count)
    total = sum(bucket.probability_pct for bucket in distribution.buckets)
    assert total == pytest.approx(100.0, abs=0.06 * (max_count + 1))
    assert len(distribution.buckets) <= max_count + 1


def test_award_outcomes_favour_elite_quarterbacks(allen, chase, calibration) -> None:
    qb = build_award_outcomes(allen, calibration)
    wr = build_award_outcomes(chase, calibration)
    assert qb.mvp.expected_count > wr.mvp.expected_count
    assert qb.dpoy.expected_count < 0.1
    assert 0.5 <= qb.hall_of_fame.probability_pct <= 95
    assert qb.to_dict()["hallOfFame"]["impliedOdds"].startswith(("+", "-"))


def test_team_strength_drives_super_bowl_count(allen, calibration) -> None:
    weak = build_team_outcomes(allen, 2.0, calibration)
    strong = build_team_outcomes(allen, 18.0, calibration)
    assert strong.super_bowls_won.expected_count > weak.super_bowls_won.expected_count
    assert 0 < strong.playoff_rate_pct <= 100
    assert set(strong.to_dict()) == {
        "superBowlsWon",
        "conferenceChampionshipsWon",
        "expectedPlayoffWins",
        "playoffBerths",
        "playoffRatePct",
        "undefeatedSeasons",
    }


def test_threshold_base_pct(calibration) -> None:
    assert threshold_base_pct("passing_yards", "qb", 4700, calibration) == 5.0
    assert threshold_base_pct("passing_yards", "qb", 3000, calibration) == 28.0
    assert threshold_base_pct("passing_yards", "receiver", 4700, calibration) == 0.05
    assert threshold_base_pct("punt_yards", "special", 4000, calibration) == 0.5
    tuned = Calibration.from_mapping({"performance": {"thresholdBasePct": {"passing_yards": {"qb": 9.0}}}})
    assert threshold_base_pct("passing_yards", "qb", 4700, tuned) == 9.0


def test_performance_outcomes_shape(allen, chase, calibration) -> None:
    qb = build_performance_outcomes(allen, calibration).to_dict()
    assert set(qb["thresholdTemplates"]) == {
        "passingYards4500",
        "passingTds40",
        "receivingYards1500",
        "sacks15",
        "interceptions6",
    }
    assert all(0.1 <= value <= 55 for value in qb["recordBreakProbabilityPct"].values())
    wr = build_performance_outcomes(chase, calibration)
    assert wr.qbr_above_70.expected_count < build_performance_outcomes(allen, calibration).qbr_above_70.expected_count


def test_custom_threshold_outcome(allen) -> None:
    payload = build_performance_threshold_outcome(allen, "passing_yards", 5000, OutcomeContext()).to_dict()
    assert payload["metric"] == "passing_yards"
    assert payload["threshold"] == 5000
    assert "expectedCount" in payload and "distribution" in payload


def test_longevity_and_career(allen, calibration) -> None:
    assert probability_play_to_age(allen, 25, calibration) == 100.0
    career = build_career_outcomes(allen, calibration)
    assert career.longevity["playToAge35Pct"] >= career.longevity["playToAge40Pct"]
    assert career.expected_career_earnings_million_usd > 0
    assert len(career.milestones) == 4
    assert career.to_dict()["milestoneProbabilities"][0]["label"] == "Career passing TDs"


def test_player_outlook_payload(allen) -> None:
    outlook = build_player_outcomes(allen, OutcomeContext(team_super_bowl_pct=10.0, as_of_date="2025-10-01"))
    payload = outlook.to_dict()
    assert payload["asOfDate"] == "2025-10-01"
    assert payload["player"] == {"name": "Josh Allen", "position": "QB", "teamAbbr": "BUF", "age": 29, "yearsExp": 7}
    assert set(payload) == {"asOfDate", "player", "awards", "teamOutcomes", "performance", "career"}


def test_unknown_position_outlook_is_complete() -> None:
    payload = build_player_outcomes(PlayerProfile(name="Mystery Player")).to_dict()
    assert payload["player"]["position"] == "NA"
    assert payload["career"]["milestoneProbabilities"] == []
