"""Types for the chat-completion side of the adapter.

These follow the OpenAI chat completions format spoken by the backend:
- ChatMessage: a normalized role/content message
- ChatCompletionRequest: the body the adapter sends upstream
- ChatCompletionResponse / ChatCompletionChunk: what comes back
"""

from typing import Any, Literal
from typing_extensions import TypedDict


Role = Literal["system", "user", "assistant"]
"""Roles accepted in a normalized chat message.

Anything else coming from the client is coerced to ``user``.
"""

VALID_ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})
DEFAULT_ROLE: Role = "user"


class ChatMessage(TypedDict):
    """A canonical chat message. Content is always a flat string."""
    role: Role
    content: str


class ChatCompletionRequest(TypedDict, total=False):
    """Request body for POST /v1/chat/completions.

    Attributes:
        model: Model name, forwarded as received.
        messages: Normalized conversation.
        stream: Whether the backend should stream.
        temperature, top_p, max_tokens, presence_penalty, frequency_penalty,
        stop, user, n: Generation parameters copied verbatim from the client.
    """
    model: Any
    messages: list[ChatMessage]
    stream: bool
    temperature: Any
    top_p: Any
    max_tokens: Any
    presence_penalty: Any
    frequency_penalty: Any
    stop: Any
    user: Any
    n: Any


class ResponseMessage(TypedDict, total=False):
    """Message inside a non-streaming choice."""
    role: str
    content: str | list[Any] | None


class Choice(TypedDict, total=False):
    """A non-streaming choice."""
    index: int
    message: ResponseMessage
    finish_reason: str | None


class ChatCompletionResponse(TypedDict, total=False):
    """Non-streaming chat completion reply."""
    id: str
    object: str
    model: str
    choices: list[Choice]
    usage: dict[str, Any]


class Delta(TypedDict, total=False):
    """Incremental message update inside a streamed chunk."""
    role: str
    content: str | list[Any] | None


class StreamChoice(TypedDict, total=False):
    """A streaming choice."""
    index: int
    delta: Delta
    finish_reason: str | None


class ChatCompletionChunk(TypedDict, total=False):
    """One ``data:`` payload of a streamed chat completion."""
    id: str
    object: str
    model: str
    choices: list[StreamChoice]
    usage: dict[str, Any]
