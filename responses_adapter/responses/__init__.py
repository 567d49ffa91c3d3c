"""Responses API support for the adapter.

This package translates /v1/responses requests into chat completions and
back:

- normalizer: heterogeneous request bodies -> canonical chat messages
- translator: identifiers, backend request, non-streaming envelope
- stream_adapter: chat completion SSE -> Responses API events
"""

from .normalizer import InputKind, classify_input, flatten_content, normalize_messages
from .stream_adapter import ChatToResponsesStreamAdapter, StreamState
from .translator import (
    ResponseIdentity,
    build_chat_request,
    build_error_payload,
    chat_completion_to_response,
)

__all__ = [
    "ChatToResponsesStreamAdapter",
    "InputKind",
    "ResponseIdentity",
    "StreamState",
    "build_chat_request",
    "build_error_payload",
    "chat_completion_to_response",
    "classify_input",
    "flatten_content",
    "normalize_messages",
]
