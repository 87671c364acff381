"""
logger.py
Logging setup for the gym console.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "kv_fitness"


def setup_logger(level: str | int = logging.INFO, log_file: Path | None = None) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        level: Logging level (name or number).
        log_file: Optional path to a log file. If None, logs to stderr only.
    """
    log = logging.getLogger(ROOT_LOGGER)
    if log.handlers:
        return log

    log.setLevel(level)
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(fmt)
    log.addHandler(h)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    return log


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. get_logger(__name__)."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
