"""In-memory cache for historical season datasets.

Datasets are loaded lazily on first use and then shared, read-only, by every
estimate in the process. Loading is single-flight: concurrent first callers
for the same dataset wait on one load rather than racing.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Mapping

from .config import get_config
from .datasets import DatasetError, Datasets, SeasonDataset, load_season_dataset

logger = logging.getLogger(__name__)

Loader = Callable[[Path], SeasonDataset]

_MISSING = object()


class DatasetCache:
    """Lock-guarded, initialise-once dataset store.

    A dataset file that is absent or unreadable is remembered as missing so
    the rate model falls back to its priors without re-reading the disk on
    every prompt. :meth:`clear` forgets everything.
    """

    def __init__(
        self,
        paths: Mapping[str, Path] | None = None,
        loader: Loader | None = None,
    ) -> None:
        self._paths = dict(paths) if paths is not None else None
        self._loader = loader or load_season_dataset
        self._entries: Dict[str, object] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _path_for(self, name: str) -> Path | None:
        if self._paths is not None:
            return self._paths.get(name)
        cfg = get_config()
        if name == "qb":
            return cfg.qb_dataset_path
        if name == "skill":
            return cfg.skill_dataset_path
        return None

    def _lock_for(self, name: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.Lock()
                self._locks[name] = lock
            return lock

    def get(self, name: str) -> SeasonDataset | None:
        """Return the dataset called ``name`` (``"qb"`` or ``"skill"``)."""

        entry = self._entries.get(name)
        if entry is not None:
            return None if entry is _MISSING else entry  # type: ignore[return-value]
        with self._lock_for(name):
            entry = self._entries.get(name)
            if entry is None:
                entry = self._load(name)
                self._entries[name] = entry
        return None if entry is _MISSING else entry  # type: ignore[return-value]

    def _load(self, name: str) -> object:
        path = self._path_for(name)
        if path is None:
            logger.warning("No path configured for dataset %s", name)
            return _MISSING
        try:
            dataset = self._loader(path)
        except FileNotFoundError:
            logger.warning("Dataset %s not found at %s; using model priors", name, path)
            return _MISSING
        except DatasetError as exc:
            logger.warning("Dataset %s at %s is unusable: %s", name, path, exc)
            return _MISSING
        logger.info(
            "Loaded dataset %s from %s (%d players, latest season %s)",
            name,
            path,
            len(dataset),
            dataset.latest_season,
        )
        return dataset

    def put(self, name: str, dataset: SeasonDataset | None) -> None:
        """Seed the cache, bypassing the loader."""

        with self._lock_for(name):
            self._entries[name] = _MISSING if dataset is None else dataset

    def datasets(self) -> Datasets:
        return Datasets(qb=self.get("qb"), skill=self.get("skill"))

    def is_loaded(self, name: str) -> bool:
        return name in self._entries

    def clear(self) -> None:
        with self._registry_lock:
            self._entries.clear()


_dataset_cache: DatasetCache | None = None
_cache_lock = threading.Lock()


def get_dataset_cache() -> DatasetCache:
    """Return the process-wide dataset cache."""

    global _dataset_cache
    if _dataset_cache is None:
        with _cache_lock:
            if _dataset_cache is None:
                _dataset_cache = DatasetCache()
    return _dataset_cache


def clear_cache() -> None:
    """Drop every cached dataset so the next access reloads from disk."""

    get_dataset_cache().clear()


__all__ = ["DatasetCache", "clear_cache", "get_dataset_cache"]
