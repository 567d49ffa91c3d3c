"""Core exceptions for the adapter."""

from typing import Optional

# Max characters of an upstream error body echoed back to the client
UPSTREAM_BODY_EXCERPT_CHARS = 300


class ProxyError(Exception):
    """Base exception for adapter errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(ProxyError):
    """The backend answered with a non-success status or an unusable body."""

    def __init__(self, status_code: Optional[int], body: str = "") -> None:
        self.status_code = status_code
        self.body_excerpt = (body or "")[:UPSTREAM_BODY_EXCERPT_CHARS]
        super().__init__(f"Upstream {status_code}: {self.body_excerpt}")


class UpstreamConnectionError(ProxyError):
    """The backend could not be reached or the connection broke mid-stream."""
    pass


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass

