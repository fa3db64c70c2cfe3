"""Logging setup."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", quiet_threads: bool = False) -> None:
    """Configure the root logger with a compact format.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        quiet_threads: If True, the thread name is left out of the format.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    fmt = LOG_FORMAT if quiet_threads else LOG_FORMAT.replace(
        "%(name)s", "%(name)s [%(threadName)s]"
    )
    logging.basicConfig(
        level=numeric,
        format=fmt,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
