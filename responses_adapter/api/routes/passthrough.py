"""Pass-through endpoints.

``/v1/chat/completions``, ``/v1/embeddings`` and every path the adapter does
not handle itself are forwarded to the backend unchanged: method, path,
query and body go out as received (plus the backend credential), and the
backend's status, headers and body are streamed back.
"""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from ...core.backend import filter_response_headers
from ...core.exceptions import UpstreamConnectionError
from ...core.registry import get_upstream

logger = logging.getLogger("responses-adapter")


async def forward_to_backend(request: Request) -> Response:
    """Forward the request to the backend and stream its answer back."""
    upstream = get_upstream()
    path = request.url.path
    logger.info(f"Forwarding {request.method} {path} to backend")

    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning("Client disconnected before request body was fully read")
        return Response(status_code=499)  # Client Closed Request

    try:
        upstream_response = await upstream.forward(
            request.method,
            path,
            request.url.query,
            request.headers,
            body,
        )
    except UpstreamConnectionError as exc:
        return JSONResponse(
            {
                "error": {
                    "type": "upstream_unavailable",
                    "message": f"Upstream connection failed: {exc.message}",
                }
            },
            status_code=502,
        )

    async def _iter_response():
        try:
            async for chunk in upstream_response.aiter_bytes():
                yield chunk
        finally:
            await upstream_response.aclose()

    logger.debug(
        "Backend answered %s %s with status %s",
        request.method,
        path,
        upstream_response.status_code,
    )
    return StreamingResponse(
        _iter_response(),
        status_code=upstream_response.status_code,
        headers=filter_response_headers(upstream_response.headers),
        background=BackgroundTask(upstream_response.aclose),
    )


async def chat_completions(request: Request) -> Response:
    """POST /v1/chat/completions - forwarded unchanged."""
    logger.info("Received chat completions request")
    return await forward_to_backend(request)


async def embeddings(request: Request) -> Response:
    """POST /v1/embeddings - forwarded unchanged."""
    logger.info("Received embeddings request")
    return await forward_to_backend(request)


async def catch_all(request: Request, path: str) -> Response:
    """Any other path: forwarded unchanged."""
    logger.info(f"Unknown endpoint, attempting passthrough: /{path}")
    return await forward_to_backend(request)
