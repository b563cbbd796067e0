from __future__ import annotations

import pytest

from longshot.datasets import Datasets
from longshot.engine.consistency import IMPOSSIBILITY_LABEL
from longshot.engine.models import PlayerProfile, RateModelResult
from longshot.engine.pipeline import (
    REFUSAL_TITLE,
    EstimateRequest,
    OddsEngine,
    confidence_for,
)


def test_generic_quarterback_season_threshold(engine) -> None:
    estimate = engine.estimate("A quarterback throws for 20 touchdowns this season")
    assert estimate is not None
    assert estimate.probability_pct >= 90.0
    assert estimate.confidence == "High"
    assert estimate.source_label == "Baseline event model (nfl_any_qb_passing_td_threshold)"
    assert estimate.odds.startswith("-")


def test_ever_is_at_least_season(engine) -> None:
    season = engine.estimate("A team goes 17-0 in the NFL regular season this year")
    ever = engine.estimate("A team goes 17-0 in the NFL regular season ever")
    assert season is not None and ever is not None
    assert season.probability_pct == pytest.approx(0.35)
    assert ever.probability_pct >= season.probability_pct


def test_deceased_comeback_is_no_chance(engine) -> None:
    estimate = engine.estimate("What are the odds that Babe Ruth comes out of retirement?")
    assert estimate is not None
    assert estimate.odds == "NO CHANCE"
    assert estimate.implied_probability == "0.0%"
    assert estimate.source_label == IMPOSSIBILITY_LABEL
    assert estimate.source_type == "constraint_model"


def test_late_comeback_wording_is_priced_normally(engine) -> None:
    margin = engine.estimate("A team wins the Super Bowl by 10 points after a late comeback")
    assert margin is not None
    assert margin.source_label == "Baseline event model (nfl_super_bowl_margin)"
    assert margin.probability_pct > 0

    henry = PlayerProfile(name="Derrick Henry", position="RB", age=31, years_exp=9, status="active")
    rushing = engine.estimate(
        EstimateRequest(
            prompt="Derrick Henry returns late in the season and rushes for 1000 yards this season",
            profile=henry,
        )
    )
    assert rushing is not None
    assert rushing.status == "ok"
    assert rushing.source_type == "historical_model"
    assert rushing.trace["metric"] == "rushing_yards"
    assert rushing.probability_pct > 0


def test_non_quarterback_passing_claim(engine, kelce) -> None:
    estimate = engine.estimate(
        EstimateRequest(prompt="Travis Kelce throws 30 touchdowns this season", profile=kelce)
    )
    assert estimate is not None
    assert estimate.probability_pct == pytest.approx(0.1)
    assert estimate.odds == "+99900"
    assert estimate.confidence == "Medium"
    assert estimate.trace["family"] == "fixed"


def test_player_stat_claim_uses_history(engine, allen) -> None:
    estimate = engine.estimate(
        EstimateRequest(prompt="Josh Allen throws 30 touchdowns this season", profile=allen, as_of_date="2025-10-01")
    )
    assert estimate is not None
    assert estimate.source_label == "Season stat model (player_history_blended)"
    assert estimate.summary_label == "Josh Allen passing tds 30"
    assert estimate.as_of_date == "2025-10-01"
    assert estimate.confidence == "High"
    assert {"metric", "threshold", "scope", "lambda", "modelType", "sampleSeasons", "family"} <= set(estimate.trace)
    assert 0.01 <= estimate.probability_pct <= 99.9


def test_stat_claim_without_history_is_low_confidence(calibration) -> None:
    engine = OddsEngine(calibration=calibration, datasets=Datasets())
    rookie = PlayerProfile(name="Unknown Receiver", position="WR", years_exp=0)
    estimate = engine.estimate(EstimateRequest(prompt="Unknown Receiver gets 1,000 receiving yards this season", profile=rookie))
    assert estimate is not None
    assert estimate.confidence == "Low"
    assert estimate.trace["modelType"] == "skill_fallback"


def test_stat_claim_requires_a_profile(engine) -> None:
    assert engine.estimate("Josh Allen throws 30 touchdowns this season") is None


def test_betting_advice_is_refused(engine) -> None:
    estimate = engine.estimate("What's the best bet this week")
    assert estimate is not None
    assert estimate.status == "refused"
    payload = estimate.to_dict()
    assert payload["status"] == "refused"
    assert payload["title"] == REFUSAL_TITLE
    assert "odds" not in payload


def test_active_player_comeback_is_snark(engine, allen) -> None:
    estimate = engine.estimate(EstimateRequest(prompt="Josh Allen comes out of retirement", profile=allen))
    assert estimate is not None
    assert estimate.status == "snark"
    assert estimate.title == "Nice try."


def test_award_retirement_and_hall_of_fame_routes(engine, allen, kelce) -> None:
    mvp = engine.estimate(EstimateRequest(prompt="Josh Allen wins 2 MVPs this season", profile=allen))
    assert mvp is not None and mvp.is_no_chance

    retire = engine.estimate(EstimateRequest(prompt="Travis Kelce retires this season", profile=kelce))
    assert retire is not None
    assert retire.source_label == "Retirement baseline model"

    hof = engine.estimate(EstimateRequest(prompt="Josh Allen makes the Hall of Fame", profile=allen))
    assert hof is not None
    assert hof.source_label == "Hall of Fame baseline model"


@pytest.mark.parametrize("prompt", ["", "   ", "Will it rain tomorrow"])
def test_unrecognised_prompts(engine, prompt: str) -> None:
    assert engine.estimate(prompt) is None


def test_estimate_from_payload(engine) -> None:
    estimate = engine.estimate_from_payload(
        {
            "prompt": "Josh Allen throws 30 touchdowns this season",
            "profile": {"name": "Josh Allen", "position": "QB", "yearsExp": 7, "status": "active"},
            "asOfDate": "2025-10-01",
            "calibration": {"tailModel": {"positionMismatchPct": 0.2}},
        }
    )
    assert estimate is not None
    assert estimate.trace["modelType"] == "player_history_blended"


@pytest.mark.parametrize(
    "payload, error",
    [
        ([], TypeError),
        ({"prompt": "  "}, ValueError),
        ({"prompt": "x", "profile": "Josh Allen"}, TypeError),
        ({"prompt": "x", "intent": 3}, TypeError),
    ],
)
def test_malformed_payloads_raise(engine, payload, error) -> None:
    with pytest.raises(error):
        engine.estimate_from_payload(payload)


def test_request_calibration_overrides_engine(engine, kelce) -> None:
    payload = {
        "prompt": "Travis Kelce throws 30 touchdowns this season",
        "profile": {"name": "Travis Kelce", "position": "TE"},
        "calibration": {"tailModel": {"positionMismatchPct": 0.5}},
    }
    estimate = engine.estimate_from_payload(payload)
    assert estimate is not None
    assert estimate.probability_pct == pytest.approx(0.5)


def test_confidence_for() -> None:
    assert confidence_for(RateModelResult(lam=1.0, model_type="tier_fallback")) == "Low"
    assert confidence_for(RateModelResult(lam=1.0, model_type="skill_history_blended", reliability=0.3)) == "Medium"
    assert confidence_for(RateModelResult(lam=1.0, model_type="player_history_blended", reliability=0.6)) == "High"


def test_outlook(engine, allen) -> None:
    outlook = engine.outlook(allen, team_super_bowl_pct=12.0, as_of_date="2025-10-01")
    assert outlook.as_of_date == "2025-10-01"
    assert outlook.to_dict()["player"]["name"] == "Josh Allen"
