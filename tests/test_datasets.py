"""Test season dataset loading."""

import json

import polars as pl
import pytest

from longshot.datasets import (
    STAT_COLUMNS,
    DatasetError,
    dataset_from_records,
    load_season_dataset,
    summarise_league,
)


@pytest.fixture
def json_document():
    return {
        "latestSeason": 2024,
        "league": {"passing_tds_mean": 21.5},
        "players": {
            "josh allen": {
                "playerName": "Josh Allen",
                "position": "QB",
                "seasons": [
                    {"season": 2023, "games": 17, "passingAttempts": 579, "passingYards": 4306, "passingTds": 29},
                    {"season": 2024, "games": 17, "passingAttempts": 483, "passingYards": 3731, "passingTds": 28},
                ],
            },
            "broken": "not a mapping",
        },
    }


class TestLoadSeasonDataset:
    """Test load_season_dataset across formats."""

    def test_json_document(self, tmp_path, json_document):
        path = tmp_path / "qb_season_stats.json"
        path.write_text(json.dumps(json_document))

        dataset = load_season_dataset(path, name="qb")

        assert dataset.name == "qb"
        assert dataset.latest_season == 2024
        assert dataset.league == {"passing_tds_mean": 21.5}
        history = dataset.history("Josh Allen")
        assert history is not None
        assert history.position == "QB"
        assert [season.season for season in history.seasons] == [2024, 2023]
        assert history.seasons[0].passing_tds == 28
        assert len(dataset) == 1

    def test_csv_table(self, tmp_path):
        path = tmp_path / "skill.csv"
        path.write_text(
            "player_name,pos,year,games,receivingYards,rec\n"
            "Ja'Marr Chase,WR,2024,17,1708,127\n"
            "Ja'Marr Chase,WR,2023,16,1216,100\n"
        )

        dataset = load_season_dataset(path)

        assert dataset.name == "skill"
        assert dataset.latest_season == 2024
        history = dataset.history("JaMarr Chase")
        assert history is not None
        assert history.seasons[0].receiving_yards == 1708
        assert history.seasons[1].receptions == 100
        assert dataset.league["receiving_yards_mean"] == pytest.approx(1708)

    def test_parquet_table(self, tmp_path):
        path = tmp_path / "qb.parquet"
        pl.DataFrame(
            {"player_name": ["Josh Allen"], "season": [2024], "passing_tds": [28], "passing_attempts": [483]}
        ).write_parquet(path)

        dataset = load_season_dataset(path)

        assert dataset.history("josh allen").seasons[0].passing_tds == 28

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_season_dataset(tmp_path / "absent.json")

    @pytest.mark.parametrize(
        "name, content",
        [
            ("bad.json", "{not json"),
            ("list.json", "[1, 2, 3]"),
            ("noplayers.json", '{"latestSeason": 2024}'),
            ("noseason.csv", "player_name,games\nJosh Allen,17\n"),
            ("data.txt", "season\n2024\n"),
        ],
    )
    def test_unusable_files(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_text(content)
        with pytest.raises(DatasetError):
            load_season_dataset(path)

    def test_undecodable_and_directory_paths(self, tmp_path):
        binary = tmp_path / "qb.json"
        binary.write_bytes(b"\xff\xfe\x00")
        directory = tmp_path / "skill.json"
        directory.mkdir()

        for path in (binary, directory):
            with pytest.raises(DatasetError):
                load_season_dataset(path)


def test_dataset_from_records_accepts_aliases():
    dataset = dataset_from_records(
        "qb",
        {"A.J. Brown": [{"season": 2024, "gamesPlayed": 15, "receivingYards": 1079}]},
        positions={"A.J. Brown": "wr"},
    )
    history = dataset.history("AJ Brown")
    assert history is not None
    assert history.position == "WR"
    assert history.seasons[0].games == 15
    assert dataset.latest_season == 2024


def test_summarise_league_uses_latest_season():
    frame = pl.DataFrame({"season": [2023, 2024, 2024], "passing_tds": [1.0, 2.0, 4.0]})
    frame = frame.with_columns(
        [pl.lit(0.0).alias(column) for column in STAT_COLUMNS if column != "passing_tds"]
    )

    summary = summarise_league(frame)

    assert summary["passing_tds_mean"] == pytest.approx(3.0)
    assert summary["passing_tds_std"] == pytest.approx(2 ** 0.5)
    assert summary["receptions_mean"] == 0.0
    assert summarise_league(frame.clear()) == {}
    assert summarise_league(frame, season=2019) == {}
