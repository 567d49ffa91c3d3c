"""Request logging middleware."""

import logging
import time

from fastapi import Request

logger = logging.getLogger("responses-adapter")


async def log_requests(request: Request, call_next):
    """Log every inbound request before it is handled."""
    logger.info(
        "Incoming request: %s %s from %s",
        request.method,
        request.url.path,
        request.client.host if request.client else "unknown",
    )
    start = time.perf_counter()
    response = await call_next(request)
    logger.debug(
        "Handled %s %s -> %s in %.3fs (headers sent)",
        request.method,
        request.url.path,
        response.status_code,
        time.perf_counter() - start,
    )
    return response
