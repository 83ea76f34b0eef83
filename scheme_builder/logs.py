"""Logging sinks for the CLI."""
from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

_CONSOLE_FORMAT = "<level>{level: <8}</level> {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(level: str = "info", log_file: str | Path | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``level`` and an optional file sink."""

    normalized = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=normalized, format=_CONSOLE_FORMAT, colorize=None)
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(path, level="DEBUG", format=_FILE_FORMAT, encoding="utf-8")
