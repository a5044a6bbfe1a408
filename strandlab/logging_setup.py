"""
Loguru sink configuration shared by the CLI and long-running sessions.
"""

from __future__ import annotations

import sys

from loguru import logger

from config import get_settings

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{line} | {message}"


def configure_logging(level: str | None = None) -> None:
    """Replace the default loguru sink with a single stderr sink."""
    if level is None:
        level = get_settings().log_level

    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
