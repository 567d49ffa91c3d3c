"""Type definitions for the adapter."""

from .chat import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    Delta,
    StreamChoice,
)
from .responses import (
    MessageItem,
    OutputText,
    ResponseObject,
    StreamEvent,
)

__all__ = [
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "Delta",
    "MessageItem",
    "OutputText",
    "ResponseObject",
    "StreamChoice",
    "StreamEvent",
]
