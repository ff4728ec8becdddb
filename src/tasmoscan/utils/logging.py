from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DEFAULT_DATE_FORMAT = "%H:%M:%S"

# aiohttp logs every refused connection of a scan at DEBUG/INFO
NOISY_LOGGERS = ("aiohttp.client", "aiohttp.internal", "aiohttp.access")


def resolve_level(level: str | None = None) -> str:
    return (level or os.environ.get("LOGLEVEL", "INFO")).upper()


def setup_logging(
    level: LogLevel | str | None = None, quiet: Iterable[str] = NOISY_LOGGERS
) -> None:
    resolved = resolve_level(level)

    coloredlogs.install(
        level=resolved,
        fmt=DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
    )

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
