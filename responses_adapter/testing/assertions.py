"""Assertion and parsing helpers for Responses API output."""

from __future__ import annotations

import json
from typing import Any

from ..core.sse import DONE_SENTINEL
from ..types.responses import (
    EVENT_RESPONSE_COMPLETED,
    EVENT_RESPONSE_CREATED,
    EVENT_RESPONSE_ERROR,
    FINALIZE_EVENTS,
    PRELUDE_EVENTS,
)


def parse_sse_events(body: bytes | str) -> list[Any]:
    """Split an SSE body into decoded payloads.

    JSON payloads are decoded; the end sentinel is kept as the string ``[DONE]``.
    """
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    events: list[Any] = []
    for block in text.replace("\r\n", "\n").split("\n\n"):
        data_lines = [
            line[len("data:"):].strip()
            for line in block.split("\n")
            if line.startswith("data:")
        ]
        if not data_lines:
            continue
        data = "\n".join(data_lines)
        events.append(data if data == DONE_SENTINEL else json.loads(data))
    return events


def event_types(events: list[Any]) -> list[str]:
    """Event types in order, with the sentinel as ``[DONE]``."""
    return [e if isinstance(e, str) else e.get("type") for e in events]


def collect_output_text(events: list[Any]) -> str:
    """Concatenate every ``output_text.delta`` increment."""
    return "".join(
        e["delta"]
        for e in events
        if isinstance(e, dict) and e.get("type") == "response.output_text.delta"
    )


def assert_responses_api_valid(response: dict[str, Any]) -> None:
    """Validate that a response has valid Responses API envelope structure.

    Args:
        response: Response dict to validate

    Raises:
        AssertionError: If structure is invalid
    """
    assert response.get("object") == "response", (
        f"Expected object 'response', got '{response.get('object')}'"
    )
    assert str(response.get("id", "")).startswith("resp_"), "Response id must start with resp_"
    assert isinstance(response.get("created_at"), int), "created_at must be integer seconds"
    assert response.get("status") == "completed", "Response status should be completed"
    output = response.get("output")
    assert isinstance(output, list) and len(output) == 1, "Response must hold one output item"
    item = output[0]
    assert item.get("type") == "message" and item.get("role") == "assistant"
    assert str(item.get("id", "")).startswith("msg_"), "Item id must start with msg_"
    assert isinstance(response.get("usage"), dict), "usage must be an object"


def assert_responses_sse_valid(events: list[Any]) -> None:
    """Validate a successful Responses API SSE event sequence.

    Args:
        events: Parsed SSE payloads (see ``parse_sse_events``)

    Raises:
        AssertionError: If structure is invalid
    """
    assert len(events) > 0, "Events list is empty"
    types = event_types(events)

    assert types[: len(PRELUDE_EVENTS)] == list(PRELUDE_EVENTS), (
        f"Stream should open with the prelude, got {types[:len(PRELUDE_EVENTS)]}"
    )
    assert types[-1] == DONE_SENTINEL, "Stream must end with [DONE]"
    assert types[-1 - len(FINALIZE_EVENTS):-1] == list(FINALIZE_EVENTS), (
        f"Stream should close with the finalize events, got {types[-5:-1]}"
    )
    assert types.count(EVENT_RESPONSE_CREATED) == 1
    assert types.count(EVENT_RESPONSE_COMPLETED) == 1
    assert EVENT_RESPONSE_ERROR not in types, "Successful stream must not carry an error"

    final = events[-2]["response"]
    assert final["output"][0]["content"][0]["text"] == collect_output_text(events), (
        "Concatenated deltas must equal the completed text"
    )

    assert_sequence_numbers_monotonic(events)


def assert_responses_sse_failed(events: list[Any]) -> None:
    """Validate a stream that ended in a ``response.error`` event."""
    types = event_types(events)
    assert types[-2:] == [EVENT_RESPONSE_ERROR, DONE_SENTINEL], (
        f"Failed stream must end with response.error and [DONE], got {types[-2:]}"
    )
    assert EVENT_RESPONSE_COMPLETED not in types, "Failed stream must not complete"
    assert types.count(EVENT_RESPONSE_ERROR) == 1
    assert types.count(DONE_SENTINEL) == 1


def assert_sequence_numbers_monotonic(events: list[Any]) -> None:
    """Check sequence numbers are strictly increasing."""
    sequence_numbers = [
        e["sequence_number"] for e in events if isinstance(e, dict) and "sequence_number" in e
    ]
    for i in range(1, len(sequence_numbers)):
        assert sequence_numbers[i] > sequence_numbers[i - 1], (
            f"Sequence numbers not monotonic at index {i}: "
            f"{sequence_numbers[i - 1]} -> {sequence_numbers[i]}"
        )
