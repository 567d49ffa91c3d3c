"""Full simulation tests for the /v1/responses endpoint.

Tests the complete flow: Responses API request -> normalization -> chat
completion backend -> translation back -> Responses API envelope or events.
"""

from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from conftest import build_settings, register_fake_upstream
from responses_adapter.main import create_app
from responses_adapter.responses.stream_adapter import STREAM_ENDED_MESSAGE
from responses_adapter.testing import (
    FakeUpstream,
    UpstreamResponse,
    assert_responses_api_valid,
    assert_responses_sse_failed,
    assert_responses_sse_valid,
    build_chat_stream_chunks,
    collect_output_text,
    event_types,
    parse_sse_events,
)


def _unreachable_app():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return create_app(build_settings(), transport=httpx.MockTransport(refuse))


# =============================================================================
# Non-streaming
# =============================================================================


def test_nonstream_returns_envelope(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_chat_response("Hello", usage={"tokens": 3})

    resp = client.post(
        "/v1/responses",
        json={"model": "m", "stream": False, "input": [{"type": "input_text", "text": "hi"}]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert_responses_api_valid(body)
    assert body["model"] == "m"
    assert body["output"][0]["content"] == [
        {"type": "output_text", "text": "Hello", "annotations": []}
    ]
    assert body["usage"] == {"tokens": 3}

    sent = upstream.received[0]
    assert sent["path"] == "/v1/chat/completions"
    assert sent["headers"]["authorization"] == "Bearer test-key"
    assert sent["json"] == {
        "model": "m",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
    }


def test_nonstream_forwards_generation_params(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_chat_response("ok")

    client.post(
        "/v1/responses",
        json={
            "model": "m",
            "stream": False,
            "instructions": "be brief",
            "messages": [{"role": "user", "content": "hi"}],
            "temperature": 0.3,
            "max_output_tokens": 16,
            "tools": [{"type": "function", "name": "x"}],
        },
    )

    sent = upstream.received[0]["json"]
    assert sent["messages"][0] == {"role": "system", "content": "be brief"}
    assert sent["temperature"] == 0.3
    assert sent["max_tokens"] == 16
    assert "tools" not in sent


def test_nonstream_backend_error_is_502(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_error_response(500, "internal failure")

    resp = client.post("/v1/responses", json={"model": "m", "stream": False, "input": "hi"})

    assert resp.status_code == 502
    body = resp.json()
    assert body["type"] == "response.error"
    assert body["error"]["message"].startswith("Upstream 500: ")
    assert "internal failure" in body["error"]["message"]


def test_nonstream_backend_unreachable(clear_transport_registry) -> None:
    with TestClient(_unreachable_app()) as client:
        resp = client.post("/v1/responses", json={"stream": False, "input": "hi"})

    assert resp.status_code == 502
    assert "ConnectError" in resp.json()["error"]["message"]


def test_invalid_json_is_rejected(adapter_harness) -> None:
    _, client = adapter_harness
    resp = client.post(
        "/v1/responses",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"]["code"] == "invalid_json"


def test_invalid_utf8_is_rejected(adapter_harness) -> None:
    _, client = adapter_harness
    resp = client.post(
        "/v1/responses",
        content=b'{"model": "m", "input": "\xff\xfe"}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"]["code"] == "invalid_json"


def test_too_deeply_nested_json_is_rejected(adapter_harness) -> None:
    _, client = adapter_harness
    resp = client.post(
        "/v1/responses",
        content=b'{"input": ' + b"[" * 100000 + b"]" * 100000 + b"}",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"]["code"] == "invalid_json"


def test_deeply_nested_content_is_flattened(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_chat_response("ok")
    depth = 200
    content = b'[{"content": ' * depth + b'"x"' + b"}]" * depth
    resp = client.post(
        "/v1/responses",
        content=b'{"stream": false, "input": [{"role": "user", "content": ' + content + b"}]}",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 200
    assert_responses_api_valid(resp.json())
    assert upstream.received[0]["json"]["messages"] == [{"role": "user", "content": "x"}]


def test_stream_failure_before_commit_is_numbered(adapter_harness, monkeypatch) -> None:
    _, client = adapter_harness

    def fail(body):
        raise RuntimeError("normalizer exploded")

    monkeypatch.setattr("responses_adapter.api.routes.responses.normalize_messages", fail)
    resp = client.post("/v1/responses", json={"model": "m", "input": "hi"})

    assert resp.status_code == 200
    events = parse_sse_events(resp.text)
    assert event_types(events) == ["response.error", "[DONE]"]
    assert events[0]["sequence_number"] == 1
    assert events[0]["error"]["message"] == "normalizer exploded"
    assert resp.text.endswith("data: [DONE]\n\n")


# =============================================================================
# Streaming
# =============================================================================


def test_stream_is_default(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_chat_response("Hello", stream=True)

    resp = client.post("/v1/responses", json={"model": "m", "input": "hi"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache"
    assert resp.headers["x-accel-buffering"] == "no"

    events = parse_sse_events(resp.content)
    assert_responses_sse_valid(events)
    assert collect_output_text(events) == "Hello"
    assert events[0]["response"]["model"] == "m"
    assert upstream.received[0]["json"]["stream"] is True


def test_stream_fragmented_backend_frames(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue(
        UpstreamResponse(
            stream=True,
            stream_events=build_chat_stream_chunks("Hi there"),
            chunk_sizes=[3, 5, 11],
        )
    )

    resp = client.post("/v1/responses", json={"input": "hi"})

    events = parse_sse_events(resp.content)
    assert_responses_sse_valid(events)
    assert collect_output_text(events) == "Hi there"


def test_stream_skips_malformed_frame(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue(
        UpstreamResponse(
            stream=True,
            stream_events=build_chat_stream_chunks("AB"),
            inject_malformed_at=2,
        )
    )

    events = parse_sse_events(client.post("/v1/responses", json={"input": "x"}).content)
    assert_responses_sse_valid(events)
    assert collect_output_text(events) == "AB"


def test_stream_backend_error_status(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_error_response(500, "internal failure")

    resp = client.post("/v1/responses", json={"input": "hi"})

    assert resp.status_code == 200
    events = parse_sse_events(resp.content)
    assert event_types(events) == [
        "response.created",
        "response.output_item.added",
        "response.content_part.added",
        "response.error",
        "[DONE]",
    ]
    assert events[3]["error"]["message"].startswith("Upstream 500: ")


def test_stream_mid_stream_error_frame(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_mid_stream_error(2, error_type="error_frame", partial_content="Hi")

    events = parse_sse_events(client.post("/v1/responses", json={"input": "x"}).content)

    assert_responses_sse_failed(events)
    assert collect_output_text(events) == "H"
    assert events[-2]["error"]["message"] == "backend overloaded"


def test_stream_connection_reset(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_mid_stream_error(2)

    events = parse_sse_events(client.post("/v1/responses", json={"input": "x"}).content)

    assert_responses_sse_failed(events)
    assert events[-2]["error"]["message"]


def test_stream_without_done_sentinel(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue(
        UpstreamResponse(
            stream=True,
            stream_events=build_chat_stream_chunks("Hi"),
            add_done=False,
        )
    )

    events = parse_sse_events(client.post("/v1/responses", json={"input": "x"}).content)

    assert_responses_sse_failed(events)
    assert collect_output_text(events) == "Hi"
    assert events[-2]["error"]["message"] == STREAM_ENDED_MESSAGE


def test_stream_backend_unreachable(clear_transport_registry) -> None:
    with TestClient(_unreachable_app()) as client:
        resp = client.post("/v1/responses", json={"input": "hi"})

    events = parse_sse_events(resp.content)
    assert_responses_sse_failed(events)
    assert event_types(events)[0] == "response.created"
    assert "ConnectError" in events[-2]["error"]["message"]


def test_requests_get_distinct_identifiers(adapter_harness) -> None:
    upstream, client = adapter_harness
    upstream.enqueue_chat_response("a", stream=True)
    upstream.enqueue_chat_response("b", stream=True)

    first = parse_sse_events(client.post("/v1/responses", json={"input": "1"}).content)
    second = parse_sse_events(client.post("/v1/responses", json={"input": "2"}).content)

    assert first[0]["response"]["id"] != second[0]["response"]["id"]
    assert collect_output_text(first) == "a"
    assert collect_output_text(second) == "b"


def test_harness_registers_fake_backend(clear_transport_registry) -> None:
    upstream = FakeUpstream()
    register_fake_upstream("http://other.local", upstream)
    upstream.enqueue_chat_response("routed")

    with TestClient(create_app(build_settings("http://other.local"))) as client:
        body = client.post("/v1/responses", json={"stream": False, "input": "x"}).json()

    assert body["output"][0]["content"][0]["text"] == "routed"
