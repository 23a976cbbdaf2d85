from __future__ import annotations

import sys

from loguru import logger


def configure_logging(level: str = "INFO", serialize: bool = False) -> None:
    """Replace loguru's default sink with one at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=level, serialize=serialize, backtrace=False, diagnose=False)
