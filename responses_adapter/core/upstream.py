"""HTTP client for the chat-completion backend.

All backend traffic goes through ``UpstreamClient``: synchronous completions,
streamed completions, the model listing, and raw pass-through requests.
httpx errors are translated into the adapter's own exceptions here so the
callers only deal with ``UpstreamError`` / ``UpstreamConnectionError``.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from .backend import DEFAULT_TIMEOUT, Backend, build_outbound_headers, format_httpx_error
from .exceptions import UpstreamConnectionError, UpstreamError
from .upstream_transport import get_upstream_transport

logger = logging.getLogger("responses-adapter")

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
MODEL_TAGS_PATH = "/api/tags"


class UpstreamClient:
    """Issues requests against a single backend over a pooled httpx client."""

    def __init__(
        self,
        backend: Backend,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.backend = backend
        timeout = backend.timeout or DEFAULT_TIMEOUT
        self.timeout = httpx.Timeout(timeout)
        # Streams may idle between tokens for as long as the model needs
        self.stream_timeout = httpx.Timeout(
            connect=timeout, read=None, write=timeout, pool=timeout
        )
        if transport is None:
            transport = get_upstream_transport(backend.base_url)
        self._client = httpx.AsyncClient(
            timeout=self.timeout, transport=transport, follow_redirects=True
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Chat completions
    # -------------------------------------------------------------------------

    async def create_chat_completion(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST a non-streaming chat completion and return the decoded reply."""
        url = self.backend.build_url(CHAT_COMPLETIONS_PATH)
        logger.debug("Executing non-streaming request to %s", url)
        try:
            resp = await self._client.post(
                url,
                headers=self.backend.auth_headers(),
                content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            )
        except httpx.HTTPError as exc:
            raise UpstreamConnectionError(
                format_httpx_error(exc, self.backend, url)
            ) from exc

        logger.debug("Received response from %s: status %s", url, resp.status_code)
        if not resp.is_success:
            raise UpstreamError(resp.status_code, resp.text)
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(resp.status_code, resp.text) from exc
        if not isinstance(data, dict):
            raise UpstreamError(resp.status_code, resp.text)
        return data

    @asynccontextmanager
    async def stream_chat_completion(
        self, payload: Mapping[str, Any]
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streaming chat completion.

        Yields an async iterator over the raw body chunks. The backend
        connection is released when the context exits, whichever way it exits.

        Raises:
            UpstreamConnectionError: The backend could not be reached.
            UpstreamError: The backend answered with a non-success status.
        """
        url = self.backend.build_url(CHAT_COMPLETIONS_PATH)
        request = self._client.build_request(
            "POST",
            url,
            headers=self.backend.auth_headers(),
            content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            timeout=self.stream_timeout,
        )
        logger.debug("Sending streaming request to %s", url)
        try:
            resp = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.error("Failed to send streaming request to %s: %s", url, exc)
            raise UpstreamConnectionError(
                format_httpx_error(exc, self.backend, url)
            ) from exc

        try:
            if not resp.is_success:
                try:
                    await resp.aread()
                    text = resp.text
                except httpx.HTTPError:
                    text = ""
                raise UpstreamError(resp.status_code, text)
            logger.debug("Streaming request to %s accepted, status %s", url, resp.status_code)
            yield self._iter_body(resp, url)
        finally:
            logger.debug("Closing stream for %s", url)
            await resp.aclose()

    async def _iter_body(self, resp: httpx.Response, url: str) -> AsyncIterator[bytes]:
        try:
            async for chunk in resp.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.HTTPError as exc:
            raise UpstreamConnectionError(
                format_httpx_error(exc, self.backend, url)
            ) from exc

    # -------------------------------------------------------------------------
    # Model listing
    # -------------------------------------------------------------------------

    async def list_models(self) -> list[dict[str, Any]]:
        """Return the backend's native model entries (``GET /api/tags``)."""
        url = self.backend.build_url(MODEL_TAGS_PATH)
        try:
            resp = await self._client.get(url, headers=self.backend.auth_headers())
        except httpx.HTTPError as exc:
            raise UpstreamConnectionError(
                format_httpx_error(exc, self.backend, url)
            ) from exc
        if not resp.is_success:
            raise UpstreamError(resp.status_code, resp.reason_phrase)
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(resp.status_code, resp.text) from exc
        models = data.get("models") if isinstance(data, dict) else None
        return [model for model in models or [] if isinstance(model, dict)]

    # -------------------------------------------------------------------------
    # Pass-through
    # -------------------------------------------------------------------------

    async def forward(
        self,
        method: str,
        path: str,
        query: str,
        headers: Mapping[str, str],
        body: Optional[bytes],
    ) -> httpx.Response:
        """Send a request to the backend unchanged and return the open response.

        The body of the returned response is not read yet; the caller must
        ``aclose()`` it.
        """
        url = self.backend.build_url(path, query)
        request = self._client.build_request(
            method,
            url,
            headers=build_outbound_headers(headers, self.backend.api_key),
            content=body if method.upper() not in {"GET", "HEAD"} else None,
            timeout=self.stream_timeout,
        )
        try:
            return await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.error("Pass-through request to %s failed: %s", url, exc)
            raise UpstreamConnectionError(
                format_httpx_error(exc, self.backend, url)
            ) from exc
