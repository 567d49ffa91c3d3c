"""Translation between the Responses API and Chat Completions.

This module handles:
1. Identifier generation for a response and its single message item
2. Building the chat completion request sent to the backend
3. Converting a non-streaming chat completion into a response envelope
4. The output item / content part / envelope shapes shared with streaming
"""

import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from uuid import uuid4

from ..types.chat import ChatCompletionRequest, ChatMessage
from ..types.responses import (
    EVENT_RESPONSE_ERROR,
    MessageItem,
    OutputText,
    ResponseObject,
)
from .normalizer import flatten_content

logger = logging.getLogger("responses-adapter")

# Generation parameters copied verbatim to the backend; everything else the
# client sends (tool configs, metadata, ...) stays behind.
PASSTHROUGH_PARAMS = (
    "temperature",
    "top_p",
    "max_tokens",
    "presence_penalty",
    "frequency_penalty",
    "stop",
    "user",
    "n",
)


def generate_message_id() -> str:
    """Generate a unique message ID."""
    return f"msg_{uuid4().hex}"


def generate_response_id(message_id: str, timestamp_ms: Optional[int] = None) -> str:
    """Generate a response ID that encodes its creation time and message ID."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    raw = f"shim:{timestamp_ms}:{message_id}".encode("utf-8")
    return f"resp_{base64.b64encode(raw).decode('ascii')}"


@dataclass(frozen=True)
class ResponseIdentity:
    """Identifiers shared by every event and envelope of one request."""

    response_id: str
    message_id: str
    created_at: int = field(default_factory=lambda: int(time.time()))

    @classmethod
    def generate(cls) -> "ResponseIdentity":
        now = time.time()
        message_id = generate_message_id()
        return cls(
            response_id=generate_response_id(message_id, int(now * 1000)),
            message_id=message_id,
            created_at=int(now),
        )


# =============================================================================
# Responses API → Chat Completions
# =============================================================================


def build_chat_request(
    body: Mapping[str, Any],
    messages: list[ChatMessage],
    stream: bool,
) -> ChatCompletionRequest:
    """Build the chat completion request for a Responses API body.

    Args:
        body: The original request body.
        messages: Messages produced by the normalizer.
        stream: Whether to ask the backend for a token stream.

    Returns:
        Chat Completions request body.
    """
    instructions = body.get("instructions")
    if isinstance(instructions, str) and instructions:
        messages = [{"role": "system", "content": instructions}, *messages]

    request: ChatCompletionRequest = {
        "model": body.get("model"),
        "messages": messages,
        "stream": stream,
    }
    for key in PASSTHROUGH_PARAMS:
        if key in body:
            request[key] = body[key]

    # Responses clients name the output budget differently
    if "max_tokens" not in request and body.get("max_output_tokens") is not None:
        request["max_tokens"] = body["max_output_tokens"]

    return request


# =============================================================================
# Output shapes
# =============================================================================


def build_output_text(text: str) -> OutputText:
    return {"type": "output_text", "text": text, "annotations": []}


def build_message_item(
    message_id: str,
    text: Optional[str],
    status: Optional[str] = None,
) -> MessageItem:
    """Build the assistant message item.

    ``text=None`` produces the empty-content shell announced before streaming.
    """
    item: MessageItem = {
        "id": message_id,
        "type": "message",
        "role": "assistant",
    }
    if status:
        item["status"] = status
    item["content"] = [] if text is None else [build_output_text(text)]
    return item


def build_response_object(
    identity: ResponseIdentity,
    model: Any,
    text: str,
    usage: Optional[Mapping[str, Any]] = None,
    status: str = "completed",
) -> ResponseObject:
    """Build a finished response envelope."""
    return {
        "id": identity.response_id,
        "object": "response",
        "model": model,
        "status": status,
        "created_at": identity.created_at,
        "output": [build_message_item(identity.message_id, text)],
        "usage": dict(usage) if usage else {},
    }


def build_error_payload(message: str) -> dict[str, Any]:
    """Build the ``response.error`` payload."""
    return {"type": EVENT_RESPONSE_ERROR, "error": {"message": message or "adapter error"}}


# =============================================================================
# Chat Completions → Responses API
# =============================================================================


def extract_completion_text(completion: Mapping[str, Any]) -> str:
    """Return ``choices[0].message.content`` as text (empty when missing)."""
    choices = completion.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    choice = choices[0]
    if not isinstance(choice, Mapping):
        return ""
    message = choice.get("message")
    if not isinstance(message, Mapping):
        return ""
    return flatten_content(message.get("content"))


def chat_completion_to_response(
    completion: Mapping[str, Any],
    identity: ResponseIdentity,
    model: Any,
) -> ResponseObject:
    """Convert a Chat Completion reply to a Responses API envelope.

    Args:
        completion: Decoded backend reply.
        identity: Identifiers for this request.
        model: Model name as requested by the client.

    Returns:
        Completed response envelope; usage is copied verbatim.
    """
    usage = completion.get("usage")
    if not isinstance(usage, Mapping):
        usage = {}
    text = extract_completion_text(completion)
    logger.debug(
        "Translator: completion for %s produced %d characters",
        identity.response_id,
        len(text),
    )
    return build_response_object(identity, model, text, usage)
