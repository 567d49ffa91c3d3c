"""Process-wide handle to the backend client.

``main`` installs the client at startup; routes look it up here, which keeps
them free of imports from ``main``.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .upstream import UpstreamClient

_upstream: Optional["UpstreamClient"] = None


def set_upstream(upstream: Optional["UpstreamClient"]) -> None:
    global _upstream
    _upstream = upstream


def get_upstream() -> "UpstreamClient":
    if _upstream is None:
        raise RuntimeError("Backend client not initialized; the app has not started")
    return _upstream
