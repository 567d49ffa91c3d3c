"""Logging configuration for the adapter."""

import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "responses-adapter"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """(Re)configure the adapter logger: one stdout handler at ``level``.

    ``level`` defaults to ``LOG_LEVEL`` from the environment, then INFO.
    Calling it again replaces the handler instead of stacking a second one.
    """
    log_level = _resolve_level(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers = [handler]
    # Records still reach root handlers (pytest's caplog among them)
    logger.propagate = True
    return logger


# Global logger instance
logger = setup_logging()
