from __future__ import annotations

from typing import Any, Dict, List

import pytest

from longshot.datasets import Datasets, SeasonDataset, dataset_from_records
from longshot.engine.configuration import Calibration
from longshot.engine.models import PlayerProfile
from longshot.engine.pipeline import OddsEngine




def _qb_rows() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "Josh Allen": [
            {"season": 2024, "games": 17, "passing_attempts": 483, "passing_yards": 3731, "passing_tds": 28, "passing_interceptions": 6, "rushing_yards": 531, "rushing_tds": 12},
            {"season": 2023, "games": 17, "passing_attempts": 579, "passing_yards": 4306, "passing_tds": 29, "passing_interceptions": 18, "rushing_yards": 524, "rushing_tds": 15},
            {"season": 2022, "games": 16, "passing_attempts": 567, "passing_yards": 4283, "passing_tds": 35, "passing_interceptions": 14, "rushing_yards": 762, "rushing_tds": 7},
        ],
        "Backup Passer": [
            {"season": 2024, "games": 3, "passing_attempts": 60, "passing_yards": 410, "passing_tds": 2, "passing_interceptions": 2},
        ],
    }


def _skill_rows() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "Ja'Marr Chase": [
            {"season": 2024, "games": 17, "receptions": 127, "receiving_yards": 1708, "receiving_tds": 17},
            {"season": 2023, "games": 16, "receptions": 100, "receiving_yards": 1216, "receiving_tds": 7},
            {"season": 2022, "games": 12, "receptions": 87, "receiving_yards": 1046, "receiving_tds": 9},
        ],
        "Derrick Henry": [
            {"season": 2024, "games": 17, "rushing_attempts": 325, "rushing_yards": 1921, "rushing_tds": 16, "receptions": 19, "receiving_yards": 193, "receiving_tds": 2},
            {"season": 2023, "games": 17, "rushing_attempts": 280, "rushing_yards": 1167, "rushing_tds": 12, "receptions": 28, "receiving_yards": 214, "receiving_tds": 0},
        ],
    }


@pytest.fixture()
def qb_dataset() -> SeasonDataset:
    return dataset_from_records("qb", _qb_rows(), latest_season=2024, positions={"Josh Allen": "QB", "Backup Passer": "QB"})


@pytest.fixture()
def skill_dataset() -> SeasonDataset:
    return dataset_from_records(
        "skill",
        _skill_rows(),
        latest_season=2024,
        positions={"Ja'Marr Chase": "WR", "Derrick Henry": "RB"},
    )


@pytest.fixture()
def datasets(qb_dataset: SeasonDataset, skill_dataset: SeasonDataset) -> Datasets:
    return Datasets(qb=qb_dataset, skill=skill_dataset)


@pytest.fixture()
def calibration() -> Calibration:
    return Calibration()


@pytest.fixture()
def engine(datasets: Datasets, calibration: Calibration) -> OddsEngine:
    return OddsEngine(calibration=calibration, datasets=datasets)


@pytest.fixture()
def allen() -> PlayerProfile:
    return PlayerProfile(name="Josh Allen", position="QB", age=29, years_exp=7, team_abbr="BUF", status="active")


@pytest.fixture()
def chase() -> PlayerProfile:
    return PlayerProfile(name="Ja'Marr Chase", position="WR", age=25, years_exp=4, team_abbr="CIN", status="active")


@pytest.fixture()
def kelce() -> PlayerProfile:
    return PlayerProfile(name="Travis Kelce", position="TE", age=35, years_exp=12, team_abbr="KC", status="active")
