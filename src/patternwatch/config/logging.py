"""Logging for the detection engine, namespaced under ``patternwatch``."""

import logging
import sys
from typing import Optional, TextIO

from .settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _ConsoleHandler(logging.StreamHandler):
    """Handler installed by ``setup_logging``."""


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Attach a console handler to the ``patternwatch`` logger.

    The root logger is left untouched. Calling again replaces the handler
    installed by an earlier call.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL`` from settings
        stream: Output stream, defaults to stdout

    Returns:
        The ``patternwatch`` logger
    """
    log_level = level or get_settings().LOG_LEVEL

    logger = logging.getLogger("patternwatch")
    logger.setLevel(log_level)

    for handler in [h for h in logger.handlers if isinstance(h, _ConsoleHandler)]:
        logger.removeHandler(handler)

    handler = _ConsoleHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the patternwatch namespace."""
    return logging.getLogger(f"patternwatch.{name}")
