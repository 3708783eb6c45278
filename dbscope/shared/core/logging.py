"""Loguru sink setup for the CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def configure_logging(log_path: Path | None = None, debug: bool = False) -> None:
    """Route log output away from the terminal the UI draws on.

    Args:
        log_path: File to log to. Logs go to stderr when omitted.
        debug: Log at DEBUG instead of WARNING.
    """
    level = "DEBUG" if debug else "WARNING"
    logger.remove()
    if log_path is None:
        logger.add(sys.stderr, level=level)
        return
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(log_path, level=level, rotation="1 MB", retention=3)
