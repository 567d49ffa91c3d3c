"""Stream adapter for converting Chat Completions SSE to Responses API events.

Converts the chat completion streaming format to the Responses streaming
format the client expects, frame by frame, as backend bytes arrive.

Chat Completion Events:
    data: {"choices":[{"delta":{"role":"assistant"},"index":0}]}
    data: {"choices":[{"delta":{"content":"Hello"},"index":0}]}
    data: [DONE]

Responses API Events:
    data: {"type":"response.created","response":{...}}
    data: {"type":"response.output_item.added","item":{...}}
    data: {"type":"response.content_part.added","part":{...}}
    data: {"type":"response.output_text.delta","delta":"Hello",...}
    data: {"type":"response.output_text.done","text":"Hello",...}
    data: {"type":"response.content_part.done","part":{...}}
    data: {"type":"response.output_item.done","item":{...}}
    data: {"type":"response.completed","response":{...}}
    data: [DONE]

A failure at any point after the prelude ends the stream with a single
``response.error`` event followed by ``data: [DONE]``.
"""

import json
import logging
from enum import Enum
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable, Optional

from ..core.exceptions import ProxyError
from ..core.sse import SSE_DONE, SSEFrame, SSEFrameDecoder, detect_stream_error, encode_sse_data
from ..types.responses import (
    EVENT_CONTENT_PART_ADDED,
    EVENT_CONTENT_PART_DONE,
    EVENT_OUTPUT_ITEM_ADDED,
    EVENT_OUTPUT_ITEM_DONE,
    EVENT_OUTPUT_TEXT_DELTA,
    EVENT_OUTPUT_TEXT_DONE,
    EVENT_RESPONSE_COMPLETED,
    EVENT_RESPONSE_CREATED,
    EVENT_RESPONSE_ERROR,
)
from .normalizer import flatten_content
from .translator import (
    ResponseIdentity,
    build_message_item,
    build_output_text,
    build_response_object,
)

logger = logging.getLogger("responses-adapter")

OUTPUT_INDEX = 0
CONTENT_INDEX = 0
STREAM_ENDED_MESSAGE = "Upstream stream ended without [DONE]"


class StreamState(str, Enum):
    """Lifecycle of one streamed response."""

    PRELUDE = "prelude"
    """Nothing has been written to the client yet."""

    STREAMING = "streaming"
    """Prelude written; deltas are being relayed."""

    COMPLETED = "completed"
    """Finalize events and the sentinel were written (closed)."""

    FAILED = "failed"
    """An error event and the sentinel were written (closed)."""


class ChatToResponsesStreamAdapter:
    """Converts a chat completion SSE stream to Responses API events.

    One instance serves exactly one request. It owns the frame buffer, the
    accumulated text and the event sequence counter, and it guarantees that
    once the stream has started it ends with exactly one terminal event
    (``response.completed`` or ``response.error``) followed by the sentinel.
    """

    def __init__(self, identity: ResponseIdentity, model: Any):
        """Initialize the stream adapter.

        Args:
            identity: Response/message identifiers for this request
            model: Model name as requested by the client
        """
        self.identity = identity
        self.model = model
        self.state = StreamState.PRELUDE
        self.sequence_number = 0
        self.accumulated_text = ""
        self.error_message: Optional[str] = None
        self._decoder = SSEFrameDecoder()

    @property
    def started(self) -> bool:
        return self.state is not StreamState.PRELUDE

    @property
    def closed(self) -> bool:
        return self.state in (StreamState.COMPLETED, StreamState.FAILED)

    # -------------------------------------------------------------------------
    # Driving the stream
    # -------------------------------------------------------------------------

    async def stream_events(
        self,
        open_stream: Callable[[], AsyncContextManager[AsyncIterator[bytes]]],
        disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[bytes]:
        """Run the whole stream: prelude, backend relay, terminal events.

        Args:
            open_stream: Opens the backend stream; the context yields raw chunks
                and releases the backend connection on exit
            disconnect_checker: Optional callable reporting a client disconnect

        Yields:
            Encoded SSE frames for the client
        """
        for event in self.prelude():
            yield event

        try:
            async with open_stream() as chat_stream:
                async for event in self.adapt_stream(chat_stream, disconnect_checker):
                    yield event
        except ProxyError as exc:
            logger.error("StreamAdapter: upstream failure for %s: %s", self.identity.response_id, exc.message)
            for event in self.fail(exc.message):
                yield event
        except Exception as exc:
            logger.exception("StreamAdapter: unexpected failure for %s", self.identity.response_id)
            for event in self.fail(str(exc)):
                yield event

    async def adapt_stream(
        self,
        chat_stream: AsyncIterator[bytes],
        disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[bytes]:
        """Transform chat completion stream chunks to Responses API events.

        Reads one chunk at a time; the next chunk is only requested once the
        events of the previous one were consumed.

        Args:
            chat_stream: The incoming chat completion SSE byte stream
            disconnect_checker: Optional callable reporting a client disconnect

        Yields:
            Responses API SSE events as bytes
        """
        async for chunk in chat_stream:
            for event in self.feed(chunk):
                yield event
            if self.closed:
                return
            if disconnect_checker is not None and await disconnect_checker():
                logger.info(
                    "StreamAdapter: client disconnected from %s, releasing backend stream",
                    self.identity.response_id,
                )
                return

        for event in self.finish():
            yield event

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def prelude(self) -> list[bytes]:
        """Announce the response, its item and its content part."""
        if self.started:
            return []
        self.state = StreamState.STREAMING
        message_id = self.identity.message_id
        return [
            self._emit_event(EVENT_RESPONSE_CREATED, {
                "response": {
                    "id": self.identity.response_id,
                    "object": "response",
                    "model": self.model,
                    "created_at": self.identity.created_at,
                },
            }),
            self._emit_event(EVENT_OUTPUT_ITEM_ADDED, {
                "output_index": OUTPUT_INDEX,
                "item": build_message_item(message_id, None, status="in_progress"),
            }),
            self._emit_event(EVENT_CONTENT_PART_ADDED, {
                "item_id": message_id,
                "output_index": OUTPUT_INDEX,
                "content_index": CONTENT_INDEX,
                "part": build_output_text(""),
            }),
        ]

    def feed(self, chunk: bytes) -> list[bytes]:
        """Process one backend chunk; may complete or fail the stream."""
        if self.closed:
            return []
        events: list[bytes] = []
        for frame in self._decoder.feed(chunk):
            events.extend(self._process_frame(frame))
            if self.closed:
                break
        return events

    def finish(self) -> list[bytes]:
        """Handle the end of the backend body.

        A trailing frame without its blank-line delimiter is still honoured;
        a body that ends without the sentinel fails the stream.
        """
        if self.closed:
            return []
        events: list[bytes] = []
        for frame in self._decoder.flush():
            events.extend(self._process_frame(frame))
            if self.closed:
                return events
        logger.warning("StreamAdapter: %s for %s", STREAM_ENDED_MESSAGE, self.identity.response_id)
        events.extend(self.fail(STREAM_ENDED_MESSAGE))
        return events

    def fail(self, message: str) -> list[bytes]:
        """Emit the terminal error event. A no-op once the stream is closed."""
        if self.closed:
            return []
        self.state = StreamState.FAILED
        self.error_message = message or "adapter error"
        return [
            self._emit_event(EVENT_RESPONSE_ERROR, {"error": {"message": self.error_message}}),
            SSE_DONE,
        ]

    def _finalize(self) -> list[bytes]:
        self.state = StreamState.COMPLETED
        message_id = self.identity.message_id
        text = self.accumulated_text
        return [
            self._emit_event(EVENT_OUTPUT_TEXT_DONE, {
                "item_id": message_id,
                "output_index": OUTPUT_INDEX,
                "content_index": CONTENT_INDEX,
                "text": text,
            }),
            self._emit_event(EVENT_CONTENT_PART_DONE, {
                "item_id": message_id,
                "output_index": OUTPUT_INDEX,
                "content_index": CONTENT_INDEX,
                "part": build_output_text(text),
            }),
            self._emit_event(EVENT_OUTPUT_ITEM_DONE, {
                "output_index": OUTPUT_INDEX,
                "item": build_message_item(message_id, text),
            }),
            self._emit_event(EVENT_RESPONSE_COMPLETED, {
                "response": self.build_final_response(),
            }),
            SSE_DONE,
        ]

    # -------------------------------------------------------------------------
    # Frame handling
    # -------------------------------------------------------------------------

    def _process_frame(self, frame: SSEFrame) -> list[bytes]:
        if frame.data is None:
            return []
        if frame.is_done:
            return self._finalize()

        try:
            data = json.loads(frame.data)
        except json.JSONDecodeError:
            logger.debug(f"StreamAdapter: Failed to parse: {frame.data[:100]}")
            return []

        stream_error = detect_stream_error(data)
        if stream_error:
            logger.warning("StreamAdapter: upstream reported error mid-stream: %s", stream_error)
            return self.fail(stream_error)

        delta = self._extract_delta_text(data)
        if not delta:
            return []
        self.accumulated_text += delta
        return [
            self._emit_event(EVENT_OUTPUT_TEXT_DELTA, {
                "item_id": self.identity.message_id,
                "output_index": OUTPUT_INDEX,
                "content_index": CONTENT_INDEX,
                "delta": delta,
            })
        ]

    @staticmethod
    def _extract_delta_text(data: Any) -> str:
        """Text of ``choices[0].delta.content`` (lists of parts are flattened)."""
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        choice = choices[0]
        if not isinstance(choice, dict):
            return ""
        delta = choice.get("delta")
        if not isinstance(delta, dict):
            return ""
        content = delta.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return flatten_content(content)
        return ""

    def _emit_event(self, event_type: str, data: dict[str, Any]) -> bytes:
        """Encode a single SSE event.

        Args:
            event_type: The event type string
            data: The event data

        Returns:
            SSE formatted bytes
        """
        self.sequence_number += 1
        payload = {
            "type": event_type,
            "sequence_number": self.sequence_number,
            **data,
        }
        return encode_sse_data(payload)

    def build_final_response(self) -> dict[str, Any]:
        """The completed envelope (streaming responses never report usage)."""
        return build_response_object(
            self.identity,
            self.model,
            self.accumulated_text,
            usage={},
            status="completed",
        )
