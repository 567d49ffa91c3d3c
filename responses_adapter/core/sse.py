"""SSE (Server-Sent Events) framing utilities and error detection."""

import codecs
import json
from dataclasses import dataclass, field
from typing import Any, Optional


DONE_SENTINEL = "[DONE]"
SSE_DONE = b"data: [DONE]\n\n"

# Headers sent with every event stream produced by the adapter
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
SSE_MEDIA_TYPE = "text/event-stream"


def encode_sse_data(payload: Any) -> bytes:
    """Encode a JSON payload as a single ``data:`` frame."""
    json_str = json.dumps(payload, ensure_ascii=False)
    return f"data: {json_str}\n\n".encode("utf-8")


@dataclass
class SSEFrame:
    """One blank-line delimited frame of an event stream."""

    data: Optional[str]
    other_lines: list[str] = field(default_factory=list)

    @property
    def is_done(self) -> bool:
        return self.data is not None and self.data.strip() == DONE_SENTINEL


class SSEFrameDecoder:
    """Incrementally splits a byte stream into SSE frames.

    Bytes are decoded with an incremental UTF-8 decoder so a multibyte
    character split across two reads is reassembled. The trailing partial
    frame stays buffered until its delimiter arrives (or ``flush`` is called).
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """The buffered, not yet delimited fragment."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[SSEFrame]:
        if not chunk:
            return []
        self._buffer += self._decoder.decode(chunk)
        # A lone "\r" at the end may still pair with a "\n" from the next read
        self._buffer = self._buffer.replace("\r\n", "\n")
        frames: list[SSEFrame] = []

        while True:
            sep_index = self._buffer.find("\n\n")
            if sep_index == -1:
                break
            raw_frame = self._buffer[:sep_index]
            self._buffer = self._buffer[sep_index + 2:]
            if not raw_frame.strip():
                continue
            frames.append(self._parse_frame(raw_frame))

        return frames

    def flush(self) -> list[SSEFrame]:
        """Return the leftover fragment as a final frame, if it holds anything."""
        self._buffer += self._decoder.decode(b"", final=True)
        leftover = self._buffer.replace("\r\n", "\n")
        self._buffer = ""
        if not leftover.strip():
            return []
        return [self._parse_frame(leftover.strip("\n"))]

    @staticmethod
    def _parse_frame(raw: str) -> SSEFrame:
        data_lines: list[str] = []
        other_lines: list[str] = []
        for line in raw.split("\n"):
            line = line.rstrip("\r")
            if line.startswith("data:"):
                data_lines.append(line[5:].strip())
            else:
                other_lines.append(line)
        data = "\n".join(data_lines) if data_lines else None
        return SSEFrame(data=data, other_lines=other_lines)


def detect_stream_error(payload: Any) -> Optional[str]:
    """
    Check whether a decoded stream payload is an error event.

    Returns an error message if an error is detected, None otherwise.

    Detects patterns like:
    - {"type":"error","error":{...}}
    - Generic OpenAI-style: {"error":{...}}
    """
    if not isinstance(payload, dict):
        return None

    if payload.get("type") == "error":
        error_obj = payload.get("error")
        if isinstance(error_obj, dict):
            return str(error_obj.get("message") or error_obj)
        return str(error_obj or "unknown error")

    error_obj = payload.get("error")
    if isinstance(error_obj, dict):
        return str(error_obj.get("message") or error_obj)
    if isinstance(error_obj, str) and error_obj:
        return error_obj

    return None
