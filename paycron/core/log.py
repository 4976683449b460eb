"""Loguru sink setup for the CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "{name}:{line} - <level>{message}</level>"
)


def setup_logging(log_path: str | Path | None = None, level: str = "INFO") -> None:
    """Replace the default sink with stderr, plus a rotating file if ``log_path`` is set."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_path:
        logger.add(
            str(Path(log_path).expanduser()),
            level=level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=5,
            colorize=False,
        )
