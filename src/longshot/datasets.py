"""Load historical season-statistics datasets.

Two datasets feed the rate model: quarterback seasons and skill-position
(rushing/receiving) seasons. Each is keyed by normalised player name. Files
may be the JSON documents produced by the ingestion scripts
(``{latestSeason, league, players: {key: {playerName, seasons: [...]}}}``)
or flat parquet/CSV tables with one row per player-season. Every format is
funnelled through a polars frame so column aliasing, null handling and the
league summary are computed the same way.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import polars as pl

from .engine.models import SeasonRecord
from .engine.normalization import normalize_person_name

logger = logging.getLogger(__name__)

STAT_COLUMNS: Tuple[str, ...] = (
    "games",
    "passing_attempts",
    "passing_yards",
    "passing_tds",
    "passing_interceptions",
    "rushing_attempts",
    "rushing_yards",
    "rushing_tds",
    "receptions",
    "receiving_yards",
    "receiving_tds",
)

# Canonical column -> accepted spellings across ingestion outputs.
COLUMN_ALIASES: Mapping[str, Tuple[str, ...]] = {
    "player_key": ("player_key", "playerKey", "key"),
    "player_name": ("player_name", "playerName", "player_display_name", "name"),
    "position": ("position", "pos"),
    "season": ("season", "year"),
    "games": ("games", "games_played", "gamesPlayed", "g"),
    "passing_attempts": ("passing_attempts", "passingAttempts", "attempts", "pass_attempts"),
    "passing_yards": ("passing_yards", "passingYards"),
    "passing_tds": ("passing_tds", "passingTds", "passing_touchdowns"),
    "passing_interceptions": (
        "passing_interceptions",
        "passingInts",
        "passing_ints",
        "passingInterceptions",
        "interceptions",
    ),
    "rushing_attempts": ("rushing_attempts", "rushingAttempts", "carries"),
    "rushing_yards": ("rushing_yards", "rushingYards"),
    "rushing_tds": ("rushing_tds", "rushingTds"),
    "receptions": ("receptions", "rec"),
    "receiving_yards": ("receiving_yards", "receivingYards"),
    "receiving_tds": ("receiving_tds", "receivingTds"),
}


class DatasetError(ValueError):
    """Raised when a season dataset cannot be read or has the wrong shape."""


@dataclasses.dataclass(frozen=True, slots=True)
class PlayerHistory:
    """All recorded seasons for one player, most recent first."""

    key: str
    player_name: str
    seasons: Tuple[SeasonRecord, ...]
    position: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class SeasonDataset:
    """Immutable, process-shared season dataset."""

    name: str
    players: Mapping[str, PlayerHistory]
    latest_season: int | None = None
    league: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    source: str = ""

    def history(self, player_name: str) -> PlayerHistory | None:
        return self.players.get(normalize_person_name(player_name))

    def __len__(self) -> int:
        return len(self.players)


@dataclasses.dataclass(frozen=True, slots=True)
class Datasets:
    """The pair of datasets the rate model reads; either may be absent."""

    qb: SeasonDataset | None = None
    skill: SeasonDataset | None = None


def _canonical_column(name: str) -> str | None:
    for canonical, aliases in COLUMN_ALIASES.items():
        if name in aliases:
            return canonical
    return None


def _rows_from_document(payload: Mapping[str, Any]) -> List[Dict[str, Any]]:
    players = payload.get("players")
    if not isinstance(players, Mapping):
        raise DatasetError("dataset document must contain a 'players' mapping")
    rows: List[Dict[str, Any]] = []
    for key, entry in players.items():
        if not isinstance(entry, Mapping):
            continue
        seasons = entry.get("seasons")
        if not isinstance(seasons, list):
            continue
        player_name = str(entry.get("playerName") or entry.get("player_name") or key)
        for season in seasons:
            if not isinstance(season, Mapping):
                continue
            row: Dict[str, Any] = {"player_key": str(key), "player_name": player_name}
            if entry.get("position") is not None:
                row["position"] = entry.get("position")
            for column, value in season.items():
                canonical = _canonical_column(str(column))
                if canonical is not None:
                    row[canonical] = value
            rows.append(row)
    return rows


def _normalise_frame(frame: pl.DataFrame) -> pl.DataFrame:
    renames: Dict[str, str] = {}
    for column in frame.columns:
        canonical = _canonical_column(column)
        if canonical is not None and canonical != column and canonical not in frame.columns:
            renames[column] = canonical
    if renames:
        frame = frame.rename(renames)
    if "season" not in frame.columns:
        raise DatasetError("dataset is missing a season column")
    if "player_key" not in frame.columns and "player_name" not in frame.columns:
        raise DatasetError("dataset needs a player_key or player_name column")

    expressions: List[pl.Expr] = []
    for column in STAT_COLUMNS:
        if column in frame.columns:
            expressions.append(pl.col(column).cast(pl.Float64, strict=False).fill_null(0.0))
        else:
            expressions.append(pl.lit(0.0).alias(column))
    if "player_name" not in frame.columns:
        expressions.append(pl.col("player_key").cast(pl.Utf8).alias("player_name"))
    if "position" not in frame.columns:
        expressions.append(pl.lit("").alias("position"))
    frame = frame.with_columns(expressions)
    frame = frame.with_columns(
        pl.col("season").cast(pl.Int64, strict=False),
        pl.col("position").cast(pl.Utf8).fill_null("").str.to_uppercase(),
        pl.col("player_name").cast(pl.Utf8).fill_null(""),
    )
    key_source = "player_key" if "player_key" in frame.columns else "player_name"
    frame = frame.with_columns(
        pl.col(key_source)
        .cast(pl.Utf8)
        .map_elements(normalize_person_name, return_dtype=pl.Utf8)
        .alias("player_key")
    )
    return frame.filter(pl.col("season").is_not_null() & (pl.col("player_key") != ""))


def summarise_league(frame: pl.DataFrame, season: int | None = None) -> Dict[str, float]:
    """Per-stat mean and standard deviation for ``season`` (default: latest)."""

    if frame.is_empty():
        return {}
    target = season if season is not None else frame["season"].max()
    recent = frame.filter(pl.col("season") == target)
    if recent.is_empty():
        return {}
    aggregations: List[pl.Expr] = []
    for column in STAT_COLUMNS:
        if column == "games":
            continue
        aggregations.append(pl.col(column).mean().alias(f"{column}_mean"))
        aggregations.append(pl.col(column).std().alias(f"{column}_std"))
    summary = recent.select(aggregations).to_dicts()[0]
    return {key: float(value) for key, value in summary.items() if value is not None}


def _record_from_row(row: Mapping[str, Any]) -> SeasonRecord:
    return SeasonRecord(
        season=int(row["season"]),
        games=int(row.get("games") or 0),
        passing_attempts=float(row.get("passing_attempts") or 0.0),
        passing_yards=float(row.get("passing_yards") or 0.0),
        passing_tds=float(row.get("passing_tds") or 0.0),
        passing_interceptions=float(row.get("passing_interceptions") or 0.0),
        rushing_attempts=float(row.get("rushing_attempts") or 0.0),
        rushing_yards=float(row.get("rushing_yards") or 0.0),
        rushing_tds=float(row.get("rushing_tds") or 0.0),
        receptions=float(row.get("receptions") or 0.0),
        receiving_yards=float(row.get("receiving_yards") or 0.0),
        receiving_tds=float(row.get("receiving_tds") or 0.0),
        position=str(row.get("position") or ""),
    )


def dataset_from_frame(
    frame: pl.DataFrame,
    *,
    name: str,
    latest_season: int | None = None,
    league: Mapping[str, Any] | None = None,
    source: str = "",
) -> SeasonDataset:
    """Build a :class:`SeasonDataset` from a long player-season frame."""

    frame = _normalise_frame(frame).sort(["player_key", "season"], descending=[False, True])
    players: Dict[str, PlayerHistory] = {}
    if not frame.is_empty():
        for part in frame.partition_by("player_key", maintain_order=True):
            rows = part.to_dicts()
            key = str(rows[0]["player_key"])
            seasons = tuple(_record_from_row(row) for row in rows)
            position = next((season.position for season in seasons if season.position), "")
            players[key] = PlayerHistory(
                key=key,
                player_name=str(rows[0]["player_name"] or key),
                seasons=seasons,
                position=position,
            )
    if latest_season is None and not frame.is_empty():
        latest_season = int(frame["season"].max())
    summary = dict(league) if league else summarise_league(frame, latest_season)
    return SeasonDataset(
        name=name,
        players=players,
        latest_season=latest_season,
        league=summary,
        source=source,
    )


def _coerce_latest_season(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _read_season_dataset(file_path: Path, dataset_name: str) -> SeasonDataset:
    suffix = file_path.suffix.lower()
    if suffix == ".json":
        with file_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, Mapping):
            raise DatasetError(f"{file_path} must contain a JSON object")
        rows = _rows_from_document(payload)
        frame = pl.DataFrame(rows, infer_schema_length=None) if rows else pl.DataFrame(
            {"player_key": [], "season": []}, schema={"player_key": pl.Utf8, "season": pl.Int64}
        )
        league = payload.get("league")
        return dataset_from_frame(
            frame,
            name=dataset_name,
            latest_season=_coerce_latest_season(payload.get("latestSeason", payload.get("latest_season"))),
            league=league if isinstance(league, Mapping) else None,
            source=str(file_path),
        )
    if suffix == ".parquet":
        frame = pl.read_parquet(file_path)
    elif suffix == ".csv":
        frame = pl.read_csv(file_path, infer_schema_length=None)
    else:
        raise DatasetError(f"Unsupported dataset format: {file_path.suffix}")
    return dataset_from_frame(frame, name=dataset_name, source=str(file_path))


def load_season_dataset(path: str | Path, *, name: str | None = None) -> SeasonDataset:
    """Read a season dataset from JSON, parquet or CSV.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        DatasetError: if the file is unreadable or structurally invalid.
    """

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(file_path)
    try:
        return _read_season_dataset(file_path, name or file_path.stem)
    except (DatasetError, FileNotFoundError):
        raise
    except json.JSONDecodeError as exc:
        raise DatasetError(f"{file_path} is not valid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise DatasetError(f"{file_path} is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise DatasetError(f"{file_path} could not be opened: {exc}") from exc
    except (pl.exceptions.PolarsError, TypeError, ValueError) as exc:
        raise DatasetError(f"{file_path} could not be read: {exc}") from exc


def dataset_from_records(
    name: str,
    players: Mapping[str, Iterable[Mapping[str, Any]]],
    *,
    latest_season: int | None = None,
    positions: Mapping[str, str] | None = None,
) -> SeasonDataset:
    """Convenience constructor from ``{player name: [season rows]}``."""

    rows: List[Dict[str, Any]] = []
    for player_name, seasons in players.items():
        for season in seasons:
            row = {"player_name": player_name}
            if positions and player_name in positions:
                row["position"] = positions[player_name]
            for column, value in season.items():
                canonical = _canonical_column(str(column))
                if canonical is not None:
                    row[canonical] = value
            rows.append(row)
    frame = pl.DataFrame(rows, infer_schema_length=None) if rows else pl.DataFrame(
        {"player_name": [], "season": []}, schema={"player_name": pl.Utf8, "season": pl.Int64}
    )
    return dataset_from_frame(frame, name=name, latest_season=latest_season)


__all__ = [
    "COLUMN_ALIASES",
    "DatasetError",
    "Datasets",
    "PlayerHistory",
    "STAT_COLUMNS",
    "SeasonDataset",
    "dataset_from_frame",
    "dataset_from_records",
    "load_season_dataset",
    "summarise_league",
]
