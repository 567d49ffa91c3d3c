"""Types for the Responses API surface exposed by the adapter.

Only the subset the adapter produces is modelled here: a single assistant
message item holding a single ``output_text`` part, the response envelope,
and the streaming events that build it up incrementally.
"""

from typing import Any, Literal, Union
from typing_extensions import TypedDict


# =============================================================================
# Status Types
# =============================================================================

ItemStatus = Literal["in_progress", "completed"]

ResponseStatus = Literal["in_progress", "completed", "failed"]


# =============================================================================
# Output Types
# =============================================================================

class OutputText(TypedDict):
    """Text output content."""
    type: Literal["output_text"]
    text: str
    annotations: list[Any]


class MessageItem(TypedDict, total=False):
    """The assistant message item carried in ``output``."""
    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    status: ItemStatus
    content: list[OutputText]


class ResponseObject(TypedDict, total=False):
    """Response envelope returned for a request (or its final stream event)."""
    id: str
    object: Literal["response"]
    model: str
    status: ResponseStatus
    created_at: int
    output: list[MessageItem]
    usage: dict[str, Any]


class ResponseError(TypedDict):
    """Error payload carried by ``response.error``."""
    message: str


# =============================================================================
# Streaming Event Types
# =============================================================================

class StreamEventBase(TypedDict):
    """Base fields for all streaming events."""
    type: str
    sequence_number: int


class ResponseCreatedEvent(StreamEventBase):
    """response.created - envelope shell (id, model, created_at)."""
    response: ResponseObject


class OutputItemEvent(StreamEventBase):
    """response.output_item.added / response.output_item.done"""
    output_index: int
    item: MessageItem


class ContentPartEvent(StreamEventBase):
    """response.content_part.added / response.content_part.done"""
    item_id: str
    output_index: int
    content_index: int
    part: OutputText


class OutputTextDeltaEvent(StreamEventBase):
    """response.output_text.delta - exactly one increment of text."""
    item_id: str
    output_index: int
    content_index: int
    delta: str


class OutputTextDoneEvent(StreamEventBase):
    """response.output_text.done - the full accumulated text."""
    item_id: str
    output_index: int
    content_index: int
    text: str


class ResponseCompletedEvent(StreamEventBase):
    """response.completed - the finished envelope."""
    response: ResponseObject


class ResponseErrorEvent(StreamEventBase):
    """response.error - terminal failure."""
    error: ResponseError


StreamEvent = Union[
    ResponseCreatedEvent,
    OutputItemEvent,
    ContentPartEvent,
    OutputTextDeltaEvent,
    OutputTextDoneEvent,
    ResponseCompletedEvent,
    ResponseErrorEvent,
]


# =============================================================================
# Event Type Constants
# =============================================================================

# Lifecycle events
EVENT_RESPONSE_CREATED = "response.created"
EVENT_RESPONSE_COMPLETED = "response.completed"
EVENT_RESPONSE_ERROR = "response.error"

# Content events
EVENT_OUTPUT_ITEM_ADDED = "response.output_item.added"
EVENT_CONTENT_PART_ADDED = "response.content_part.added"
EVENT_OUTPUT_TEXT_DELTA = "response.output_text.delta"
EVENT_OUTPUT_TEXT_DONE = "response.output_text.done"
EVENT_CONTENT_PART_DONE = "response.content_part.done"
EVENT_OUTPUT_ITEM_DONE = "response.output_item.done"

PRELUDE_EVENTS = (
    EVENT_RESPONSE_CREATED,
    EVENT_OUTPUT_ITEM_ADDED,
    EVENT_CONTENT_PART_ADDED,
)

FINALIZE_EVENTS = (
    EVENT_OUTPUT_TEXT_DONE,
    EVENT_CONTENT_PART_DONE,
    EVENT_OUTPUT_ITEM_DONE,
    EVENT_RESPONSE_COMPLETED,
)
