"""Testing utilities for in-process adapter simulations."""

from .assertions import (
    assert_responses_api_valid,
    assert_responses_sse_failed,
    assert_responses_sse_valid,
    assert_sequence_numbers_monotonic,
    collect_output_text,
    event_types,
    parse_sse_events,
)
from .fake_upstream import (
    FakeUpstream,
    StreamError,
    UpstreamResponse,
    build_chat_completion,
    build_chat_stream_chunks,
)

__all__ = [
    # Core simulation classes
    "FakeUpstream",
    "UpstreamResponse",
    "StreamError",
    # Reply builders
    "build_chat_completion",
    "build_chat_stream_chunks",
    # Parsing and assertions
    "assert_responses_api_valid",
    "assert_responses_sse_failed",
    "assert_responses_sse_valid",
    "assert_sequence_numbers_monotonic",
    "collect_output_text",
    "event_types",
    "parse_sse_events",
]
