"""Log sink configuration for command-line entry points."""

from __future__ import annotations

import sys

from loguru import logger

_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stderr sink at `level`."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_FORMAT)
