"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

BACKEND_URL = "http://backend.local"
BACKEND_KEY = "test-key"


# =============================================================================
# Transport Registry Fixtures
# =============================================================================


@pytest.fixture
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear upstream transport registry after test.

    Use this fixture in tests that register fake transports.
    """
    from responses_adapter.core.upstream_transport import clear_upstream_transports

    yield
    clear_upstream_transports()


def register_fake_upstream(url: str, upstream: Any) -> None:
    """Register a FakeUpstream for the host of the given URL.

    Args:
        url: Backend base URL (e.g., "http://backend.local")
        upstream: FakeUpstream instance
    """
    from responses_adapter.core.upstream_transport import (
        register_upstream_transport_for_url,
    )

    register_upstream_transport_for_url(url, httpx.ASGITransport(app=upstream.app))


def build_settings(base_url: str = BACKEND_URL, **overrides: Any) -> Any:
    """Build AdapterSettings pointing at a fake backend."""
    from responses_adapter.config_loader import AdapterSettings

    values: dict[str, Any] = {
        "backend_url": base_url,
        "backend_api_key": BACKEND_KEY,
        "backend_timeout": 5,
        "owned_by": "ollama",
        "host": "127.0.0.1",
        "port": 4011,
    }
    values.update(overrides)
    return AdapterSettings(**values)


# =============================================================================
# Adapter Fixtures
# =============================================================================


@pytest.fixture
def adapter_harness(
    clear_transport_registry: None,
) -> Generator[tuple[Any, Any], None, None]:
    """Create an adapter app wired to an in-process fake backend.

    Returns:
        Tuple of (FakeUpstream, TestClient)

    Usage:
        def test_responses(adapter_harness):
            upstream, client = adapter_harness
            upstream.enqueue_chat_response("Hello")
            # ... test code ...
    """
    from fastapi.testclient import TestClient

    from responses_adapter.main import create_app
    from responses_adapter.testing import FakeUpstream

    upstream = FakeUpstream(models=["llama3", "qwen2"])
    register_fake_upstream(BACKEND_URL, upstream)

    app = create_app(build_settings())
    with TestClient(app) as client:
        yield upstream, client
