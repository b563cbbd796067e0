"""Logging helpers for the odds engine."""

from __future__ import annotations

import logging
from typing import Iterable

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(level: int | str) -> int:
    """Accept ``logging`` constants or their names (``"debug"``, ``"INFO"``)."""

    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(
    level: int | str = logging.INFO,
    handlers: Iterable[logging.Handler] | None = None,
) -> None:
    """Configure root logging for command-line and embedded use.

    Rule matches and model choices are logged at DEBUG, consistency repairs
    at INFO and dataset or calibration degradation at WARNING, so the level
    alone selects how much of the pricing trail is visible.
    """

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        handlers=list(handlers) if handlers else None,
    )


__all__ = ["LOG_FORMAT", "configure_logging", "resolve_level"]
