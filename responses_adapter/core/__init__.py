"""Core module initialization."""

from .backend import (
    Backend,
    build_outbound_headers,
    filter_response_headers,
    format_httpx_error,
)
from .exceptions import (
    ConfigurationError,
    ProxyError,
    UpstreamConnectionError,
    UpstreamError,
)
from .registry import get_upstream, set_upstream
from .sse import SSEFrameDecoder, detect_stream_error, encode_sse_data
from .upstream import UpstreamClient

__all__ = [
    "Backend",
    "ConfigurationError",
    "ProxyError",
    "SSEFrameDecoder",
    "UpstreamClient",
    "UpstreamConnectionError",
    "UpstreamError",
    "build_outbound_headers",
    "detect_stream_error",
    "encode_sse_data",
    "filter_response_headers",
    "format_httpx_error",
    "get_upstream",
    "set_upstream",
]
