from __future__ import annotations

from longshot.engine.models import (
    CountBucket,
    CountDistribution,
    Estimate,
    PlayerProfile,
    SeasonRecord,
    no_chance_estimate,
)


def test_estimate_payload_derives_odds() -> None:
    estimate = Estimate(
        probability_pct=25.0,
        confidence="High",
        assumptions=("a",),
        source_label="Baseline event model (x)",
        summary_label="x",
        as_of_date="2025-10-01",
        trace={"k": 1},
    )
    payload = estimate.to_dict()
    assert payload["odds"] == "+300"
    assert payload["impliedProbability"] == "25.0%"
    assert payload["trace"] == {"k": 1}
    assert "trace" not in estimate.to_dict(include_trace=False)


def test_non_ok_payload_is_minimal() -> None:
    payload = Estimate(status="snark", title="Nice try.", message="m").to_dict()
    assert payload == {"status": "snark", "title": "Nice try.", "message": "m"}


def test_no_chance_sentinel() -> None:
    estimate = no_chance_estimate("impossible", source_label="Constraint")
    assert estimate.is_no_chance
    assert estimate.odds == "NO CHANCE"
    assert estimate.implied_probability == "0.0%"
    assert estimate.source_type == "constraint_model"
    assert Estimate().odds is None


def test_player_profile_from_mapping() -> None:
    profile = PlayerProfile.from_mapping(
        {"playerName": " Josh Allen ", "position": "qb", "yearsExp": "7", "age": 29, "teamAbbr": "buf", "status": "ACTIVE"}
    )
    assert profile == PlayerProfile(name="Josh Allen", position="QB", age=29.0, years_exp=7, team_abbr="BUF", status="active")
    assert PlayerProfile.from_mapping({"name": "X", "status": "injured"}).status == "unknown"


def test_season_record_derived_metrics() -> None:
    record = SeasonRecord(season=2024, rushing_yards=1921, receiving_yards=193, rushing_tds=16, receiving_tds=2)
    assert record.metric("scrimmage_yards") == 2114
    assert record.metric("total_tds") == 18


def test_count_distribution_queries() -> None:
    distribution = CountDistribution(
        expected_count=1.2,
        buckets=(CountBucket(0, 30.0), CountBucket(1, 30.0), CountBucket(2, 25.0), CountBucket("3+", 15.0)),
    )
    assert distribution.probability_at_least(2) == 40.0
    assert distribution.probability_at_least(4) == 0.0
    assert distribution.probability_exactly(1) == 30.0
    assert distribution.to_dict()["distribution"][-1] == {"count": "3+", "probabilityPct": 15.0}
