"""Backend configuration and utilities."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

logger = logging.getLogger("responses-adapter")

DEFAULT_TIMEOUT = 60
DEFAULT_OWNED_BY = "ollama"


@dataclass
class Backend:
    """The chat-completion backend every request is translated for."""

    base_url: str
    api_key: str = ""
    timeout: Optional[float] = None
    owned_by: str = DEFAULT_OWNED_BY

    def build_url(self, path: str, query: str = "") -> str:
        """Build the full URL for a backend request.

        The path is appended verbatim, so ``/v1/chat/completions`` and
        ``/api/tags`` land where the backend serves them.
        """
        base = self.base_url.rstrip("/")
        normalized_path = path or ""
        if not normalized_path.startswith("/"):
            normalized_path = f"/{normalized_path}"
        url = f"{base}{normalized_path}"
        if query:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{query}"
        return url

    def auth_headers(self, content_type: Optional[str] = None) -> dict[str, str]:
        """Headers for requests the adapter issues itself."""
        return {
            "Authorization": f"Bearer {self.api_key or ''}",
            "Content-Type": content_type or "application/json",
        }


HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


def format_httpx_error(exc: Any, backend: Backend, url: Optional[str] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = getattr(exc, "request", None)
    except RuntimeError:
        # httpx raises when the request was never attached to the error
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException):
        timeout = backend.timeout or DEFAULT_TIMEOUT
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


def build_outbound_headers(
    incoming: Mapping[str, str], backend_api_key: str
) -> dict[str, str]:
    """Build headers for requests forwarded to the backend unchanged."""
    headers: dict[str, str] = {}
    normalized_keys: set[str] = set()
    for key, value in incoming.items():
        key_lower = key.lower()
        # Strip hop-by-hop headers and the ones rebuilt below
        if key_lower in HOP_BY_HOP_HEADERS or key_lower in {
            "authorization",
            "host",
            "content-length",
            "accept-encoding",
        }:
            continue
        if key_lower in normalized_keys:
            continue
        headers[key] = value
        normalized_keys.add(key_lower)

    if "content-type" not in normalized_keys:
        headers["Content-Type"] = "application/json"
        normalized_keys.add("content-type")
    headers["Authorization"] = f"Bearer {backend_api_key or ''}"
    # Explicitly request uncompressed responses
    headers["Accept-Encoding"] = "identity"
    return headers


def filter_response_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Filter response headers, removing hop-by-hop and framing headers."""
    filtered: dict[str, str] = {}
    for key, value in headers.items():
        key_lower = key.lower()
        # Drop headers the server will recompute or that no longer match the payload
        if key_lower in HOP_BY_HOP_HEADERS or key_lower in {
            "content-length",
            "transfer-encoding",
            "content-encoding",
        }:
            continue
        filtered[key] = value
    return filtered
