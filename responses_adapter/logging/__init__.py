"""Logging module for the adapter."""

from .middleware import log_requests
from .setup import LOG_DATE_FORMAT, LOG_FORMAT, logger, setup_logging

__all__ = [
    "LOG_DATE_FORMAT",
    "LOG_FORMAT",
    "log_requests",
    "logger",
    "setup_logging",
]
