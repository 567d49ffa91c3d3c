"""Responses API endpoint handler.

Implements POST /v1/responses on top of a chat-completion backend:
- Non-streaming: one backend completion -> one response envelope
- Streaming (default): backend token stream -> Responses API event stream
- Any failure ends in a ``response.error`` payload, never a bare reset
"""

import json
import logging
from typing import Any, Mapping

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.requests import ClientDisconnect

from ...core.exceptions import ProxyError, UpstreamConnectionError, UpstreamError
from ...core.registry import get_upstream
from ...core.sse import SSE_DONE, SSE_HEADERS, SSE_MEDIA_TYPE, encode_sse_data
from ...core.upstream import UpstreamClient
from ...responses import (
    ChatToResponsesStreamAdapter,
    ResponseIdentity,
    build_chat_request,
    build_error_payload,
    chat_completion_to_response,
    normalize_messages,
)
from ...types.chat import ChatMessage

logger = logging.getLogger("responses-adapter")


async def responses_endpoint(request: Request) -> Response:
    """POST /v1/responses - Responses API adapter endpoint.

    Args:
        request: The FastAPI request object

    Returns:
        JSONResponse for non-streaming, StreamingResponse for streaming
    """
    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning("Client disconnected before request body was fully read")
        return Response(status_code=499)  # Client Closed Request

    try:
        payload = json.loads(body or b"{}")
    except (ValueError, RecursionError) as exc:
        logger.error(f"Invalid JSON in Responses request: {exc}")
        raise HTTPException(
            status_code=400,
            detail={
                "error": {
                    "type": "invalid_request",
                    "code": "invalid_json",
                    "message": "Invalid JSON payload",
                }
            },
        ) from exc

    fields: Mapping[str, Any] = payload if isinstance(payload, dict) else {}
    model = fields.get("model")
    is_stream = bool(fields.get("stream", True))
    logger.info(f"Responses request: model={model}, stream={is_stream}")

    try:
        identity = ResponseIdentity.generate()
        messages = normalize_messages(payload)
        upstream = get_upstream()
        if not is_stream:
            return await _handle_non_streaming(upstream, fields, messages, identity)
        return _handle_streaming(request, upstream, fields, messages, identity)
    except Exception as exc:
        logger.exception("Responses request failed before the response was committed")
        return build_error_response(exc, is_stream)


async def _handle_non_streaming(
    upstream: UpstreamClient,
    fields: Mapping[str, Any],
    messages: list[ChatMessage],
    identity: ResponseIdentity,
) -> Response:
    """Issue one backend completion and return one envelope."""
    chat_request = build_chat_request(fields, messages, stream=False)
    completion = await upstream.create_chat_completion(chat_request)
    response_obj = chat_completion_to_response(
        completion,
        identity=identity,
        model=fields.get("model"),
    )
    return JSONResponse(response_obj)


def _handle_streaming(
    request: Request,
    upstream: UpstreamClient,
    fields: Mapping[str, Any],
    messages: list[ChatMessage],
    identity: ResponseIdentity,
) -> StreamingResponse:
    """Relay the backend token stream as Responses API events."""
    chat_request = build_chat_request(fields, messages, stream=True)
    adapter = ChatToResponsesStreamAdapter(identity=identity, model=fields.get("model"))

    return StreamingResponse(
        adapter.stream_events(
            lambda: upstream.stream_chat_completion(chat_request),
            disconnect_checker=request.is_disconnected,
        ),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )


def build_error_response(exc: BaseException, is_stream: bool) -> Response:
    """Report a failure in the Responses protocol's own vocabulary.

    Streaming callers get an event stream holding one ``response.error``
    event and the sentinel; non-streaming callers get the same payload as JSON.
    """
    message = exc.message if isinstance(exc, ProxyError) else str(exc)
    payload = build_error_payload(message)
    if is_stream:
        event = {"type": payload["type"], "sequence_number": 1, "error": payload["error"]}
        return StreamingResponse(
            _iter_frames([encode_sse_data(event), SSE_DONE]),
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )
    status_code = 502 if isinstance(exc, (UpstreamError, UpstreamConnectionError)) else 500
    return JSONResponse(payload, status_code=status_code)


async def _iter_frames(frames: list[bytes]):
    for frame in frames:
        yield frame
