"""Normalization of loosely-shaped request bodies into chat messages.

Clients of the Responses API send their conversation in several shapes:

    {"messages": [{"role": "user", "content": "Hi"}]}
    {"input": [{"role": "user", "content": [{"type": "input_text", "text": "Hi"}]}]}
    {"input": {"role": "user", "content": "Hi"}}
    {"input": [{"type": "input_text", "text": "Hi"}]}
    {"input": "Hi"}

The body is first classified into an ``InputKind`` and then converted into a
list of ``{"role", "content"}`` messages whose content is always a plain
string. Normalization never raises and always yields at least one message.
"""

import json
import logging
from enum import Enum
from typing import Any, Mapping

from ..types.chat import DEFAULT_ROLE, VALID_ROLES, ChatMessage

logger = logging.getLogger("responses-adapter")


class InputKind(str, Enum):
    """Shape of a request body, in precedence order."""

    MESSAGES = "messages"
    """``messages`` is a non-empty list of message-like objects."""

    INPUT_MESSAGES = "input_messages"
    """``input`` is a list whose first element looks like a message."""

    INPUT_MESSAGE = "input_message"
    """``input`` is a single object with a ``role`` or ``content`` key."""

    INPUT_TEXT = "input_text"
    """Anything else: parts, plain text, other objects, or nothing at all."""


def classify_input(body: Any) -> InputKind:
    """Classify a request body. Exactly one kind applies to any body."""
    if not isinstance(body, Mapping):
        return InputKind.INPUT_TEXT

    messages = body.get("messages")
    if isinstance(messages, list) and messages:
        return InputKind.MESSAGES

    input_ = body.get("input")
    if isinstance(input_, list) and input_ and _looks_like_message(input_[0]):
        return InputKind.INPUT_MESSAGES
    if isinstance(input_, Mapping) and ("role" in input_ or "content" in input_):
        return InputKind.INPUT_MESSAGE
    return InputKind.INPUT_TEXT


def normalize_messages(body: Any) -> list[ChatMessage]:
    """Convert a request body into an ordered, non-empty list of messages.

    Args:
        body: The decoded JSON request body (any JSON value).

    Returns:
        Messages with a valid role and string content.
    """
    kind = classify_input(body)
    logger.debug("Normalizer: classified request body as %s", kind.value)

    if kind is InputKind.MESSAGES:
        return [normalize_message(item) for item in body["messages"]]
    if kind is InputKind.INPUT_MESSAGES:
        return [normalize_message(item) for item in body["input"]]
    if kind is InputKind.INPUT_MESSAGE:
        return [normalize_message(body["input"])]

    input_ = body.get("input") if isinstance(body, Mapping) else None
    return [{"role": DEFAULT_ROLE, "content": flatten_content(input_)}]


def normalize_message(item: Any) -> ChatMessage:
    """Normalize one message-like object."""
    if not isinstance(item, Mapping):
        return {"role": DEFAULT_ROLE, "content": ""}
    role = item.get("role")
    if role not in VALID_ROLES:
        role = DEFAULT_ROLE
    return {"role": role, "content": flatten_content(item.get("content"))}


def flatten_content(content: Any) -> str:
    """Flatten message content into a single string.

    Lists are concatenated part by part, objects contribute their ``text`` or
    ``content`` field, and anything unrecognized is serialized. Annotations
    and non-text parts are dropped. Nesting depth is unbounded: parts are
    walked with an explicit stack.
    """
    pieces: list[str] = []
    # (is_part, value) pairs, popped in document order
    pending: list[tuple[bool, Any]] = [(False, content)]
    while pending:
        is_part, value = pending.pop()
        if is_part:
            if isinstance(value, str):
                pieces.append(value)
            elif isinstance(value, Mapping):
                inner = value.get("text")
                if inner is None:
                    inner = value.get("content")
                pending.append((False, inner))
        elif isinstance(value, list):
            pending.extend((True, part) for part in reversed(value))
        else:
            pieces.append(_scalar_text(value))
    return "".join(pieces)


def _scalar_text(content: Any) -> str:
    """Text for a non-list content value."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, Mapping):
        text = content.get("text")
        if isinstance(text, str):
            return text
        inner = content.get("content")
        if isinstance(inner, str):
            return inner
        try:
            return json.dumps(content, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(content)
        except RecursionError:
            return ""
    if isinstance(content, (bool, int, float)):
        return json.dumps(content)
    return str(content)


def _looks_like_message(item: Any) -> bool:
    return isinstance(item, Mapping) and bool(item.get("role") or item.get("content"))
