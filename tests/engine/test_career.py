from __future__ import annotations

import pytest

from longshot.engine.career import (
    AwardCountClaim,
    estimate_award_count,
    estimate_hall_of_fame,
    estimate_retirement,
    has_retirement_intent,
    parse_award_count,
    retirement_season_pct,
    super_bowl_historical_cap,
    super_bowl_season_curve,
)
from longshot.engine.intent import parse_intent
from longshot.engine.models import PlayerProfile


@pytest.mark.parametrize(
    "prompt, claim",
    [
        ("Josh Allen wins MVP", AwardCountClaim("mvp", 1, False)),
        ("Josh Allen wins 2 Super Bowls", AwardCountClaim("super_bowl", 2, False)),
        ("Josh Allen wins exactly two MVPs in his career", AwardCountClaim("mvp", 2, True)),
        ("Drake Maye to win a Super Bowl", AwardCountClaim("super_bowl", 1, False)),
        ("Myles Garrett wins DPOY again", AwardCountClaim("dpoy", 1, False)),
        ("Ja'Marr Chase makes 3 All-Pro teams", AwardCountClaim("allpro", 3, False)),
    ],
)
def test_parse_award_count(prompt: str, claim: AwardCountClaim) -> None:
    assert parse_award_count(prompt) == claim


@pytest.mark.parametrize("prompt", ["Josh Allen wins 9 MVPs", "Josh Allen throws 30 touchdowns", ""])
def test_parse_award_count_rejects(prompt: str) -> None:
    assert parse_award_count(prompt) is None


def test_claim_labels() -> None:
    assert AwardCountClaim("super_bowl").label == "wins a Super Bowl"
    assert AwardCountClaim("mvp", 2, True).label == "wins exactly 2 MVPs"
    assert AwardCountClaim("mvp", 3).label == "wins 3+ MVPs"


def test_super_bowl_caps() -> None:
    assert super_bowl_historical_cap("qb", 1, 1) == 34.0
    assert super_bowl_historical_cap("qb", 1, 7) == 46.0
    assert super_bowl_historical_cap("qb", 5, 7) == 3.0
    assert super_bowl_historical_cap("receiver", 2, 4) == 6.0


def test_super_bowl_curve_is_bounded(allen, chase, calibration) -> None:
    qb = super_bowl_season_curve(allen, 12.0, calibration)
    wr = super_bowl_season_curve(chase, 12.0, calibration)
    assert 3 <= len(qb) <= 14
    assert all(0.001 <= p <= 0.38 for p in qb + wr)
    assert sum(qb) > sum(wr) * len(qb) / len(wr)


def test_single_season_multi_award_is_impossible(allen, calibration) -> None:
    prompt = "Josh Allen wins 2 MVPs this season"
    estimate = estimate_award_count(prompt, parse_intent(prompt), allen, calibration=calibration)
    assert estimate is not None
    assert estimate.is_no_chance
    assert estimate.source_label == "Single-season award constraint"


def test_season_mvp_uses_season_formula(allen, kelce, calibration) -> None:
    prompt = "Josh Allen wins MVP this season"
    qb = estimate_award_count(prompt, parse_intent(prompt), allen, calibration=calibration)
    te = estimate_award_count(prompt, parse_intent(prompt), kelce, calibration=calibration)
    assert qb is not None and te is not None
    assert qb.source_label == "Award baseline model"
    assert qb.confidence == "High"
    assert 0.1 <= te.probability_pct < qb.probability_pct <= 40


def test_career_super_bowl_respects_cap(allen, calibration) -> None:
    prompt = "Josh Allen wins a Super Bowl in his career"
    estimate = estimate_award_count(prompt, parse_intent(prompt), allen, calibration=calibration, team_super_bowl_pct=30.0)
    assert estimate is not None
    assert estimate.source_label == "Career historical model"
    assert 0.2 <= estimate.probability_pct <= 46.0
    assert estimate.trace["countMode"] == "at_least"


def test_more_titles_are_less_likely(allen, calibration) -> None:
    def pct(count: int) -> float:
        prompt = f"Josh Allen wins {count} MVPs in his career"
        estimate = estimate_award_count(prompt, parse_intent(prompt), allen, calibration=calibration)
        assert estimate is not None
        return estimate.probability_pct

    assert pct(1) >= pct(2) >= pct(3)


def test_award_count_needs_a_profile(calibration) -> None:
    prompt = "Josh Allen wins MVP"
    assert estimate_award_count(prompt, parse_intent(prompt), None, calibration=calibration) is None


def test_retirement_intent_excludes_comebacks() -> None:
    assert has_retirement_intent("Travis Kelce retires after this season")
    assert not has_retirement_intent("Tom Brady comes out of retirement")
    assert not has_retirement_intent("Travis Kelce wins MVP")


def test_retirement_season_pct() -> None:
    assert retirement_season_pct(PlayerProfile(name="A", position="QB", age=29)) == pytest.approx(1.05)
    assert retirement_season_pct(PlayerProfile(name="B", position="RB", age=35)) == pytest.approx(9.375)
    rookie = PlayerProfile(name="C", position="WR", age=35, years_exp=1)
    assert retirement_season_pct(rookie) == 1.2
    assert retirement_season_pct(rookie, injury=True) == pytest.approx(2.04)


def test_retirement_horizons(kelce) -> None:
    season_prompt = "Travis Kelce retires this season"
    ever_prompt = "Travis Kelce retires at some point"
    season = estimate_retirement(season_prompt, parse_intent(season_prompt), kelce)
    ever = estimate_retirement(ever_prompt, parse_intent(ever_prompt), kelce)
    assert season is not None and ever is not None
    assert season.probability_pct == pytest.approx(7.5)
    assert ever.probability_pct == pytest.approx((1 - 0.925**15) * 100)


def test_retired_player_cannot_retire_again() -> None:
    retired = PlayerProfile(name="Tom Brady", position="QB", age=48, status="retired")
    prompt = "Tom Brady retires"
    estimate = estimate_retirement(prompt, parse_intent(prompt), retired)
    assert estimate is not None
    assert estimate.is_no_chance
    assert estimate.source_label == "Retirement status constraint"


def test_hall_of_fame_rules(allen, calibration) -> None:
    season_prompt = "Josh Allen makes the Hall of Fame this season"
    blocked = estimate_hall_of_fame(season_prompt, parse_intent(season_prompt), allen, calibration=calibration)
    assert blocked is not None and blocked.is_no_chance

    prompt = "Josh Allen makes the Hall of Fame"
    career = estimate_hall_of_fame(prompt, parse_intent(prompt), allen, calibration=calibration)
    assert career is not None
    assert career.source_label == "Hall of Fame baseline model"
    assert 0.2 <= career.probability_pct <= 95

    assert estimate_hall_of_fame("Josh Allen wins MVP", parse_intent(prompt), allen) is None
