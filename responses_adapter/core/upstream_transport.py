"""In-process transports for backends, keyed by ``host[:port]``.

``UpstreamClient`` consults this table when it is built without an explicit
transport, so tests can put a fake backend ASGI app behind any backend URL.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger("responses-adapter")

_BACKEND_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def _netloc(url: str) -> str:
    return urlsplit(url).netloc.lower() if url else ""


def register_upstream_transport_for_url(
    url: str, transport: httpx.AsyncBaseTransport
) -> None:
    """Serve every request to the URL's host with ``transport``."""
    netloc = _netloc(url)
    if not netloc:
        raise ValueError(f"Backend URL has no host: {url!r}")
    _BACKEND_TRANSPORTS[netloc] = transport
    logger.debug("Backend %s now served in-process", netloc)


def clear_upstream_transports() -> None:
    _BACKEND_TRANSPORTS.clear()


def get_upstream_transport(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """The transport registered for the URL's host, if any."""
    return _BACKEND_TRANSPORTS.get(_netloc(url))
