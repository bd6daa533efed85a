"""Render module test fixtures."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable

import pytest

from mermaid_render.backends import EncodedRequest, RenderBackend
from mermaid_render.errors import BackendError, EncodingError

FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200


# =============================================================================
# Mock Backend
# =============================================================================


class MockBackend(RenderBackend):
    """Scripted backend for testing without network access.

    Each instance either returns ``result`` or raises the configured
    failure, and records every render key it was asked for.
    """

    def __init__(
        self,
        name: str,
        priority: int,
        result: bytes = FAKE_PNG,
        fail_with: str | None = None,
        on_invoke: Callable[[], None] | None = None,
    ):
        self._name = name
        self._priority = priority
        self.result = result
        self.fail_with = fail_with
        self.on_invoke = on_invoke
        self.calls: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    def encode(self, render_key: str) -> EncodedRequest:
        with self._lock:
            self.calls.append(render_key)
        if self.fail_with == "encoding":
            raise EncodingError("mock", ValueError("cannot encode"))
        return EncodedRequest(method="GET", url=f"mock://{self._name}")

    def invoke(self, request: EncodedRequest) -> bytes:
        if self.on_invoke is not None:
            self.on_invoke()
        if self.fail_with == "timeout":
            raise BackendError(self._name, "timed out")
        if self.fail_with == "status":
            raise BackendError(self._name, "HTTP 503", status_code=503)
        if self.fail_with is not None and self.fail_with != "encoding":
            raise BackendError(self._name, self.fail_with)
        return self.result

    def close(self) -> None:
        self.closed = True


# =============================================================================
# Mock HTTP Response
# =============================================================================


@dataclass
class MockResponse:
    """Mock streamed HTTP response for HttpBackend tests."""

    status_code: int
    content: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    def iter_bytes(self):
        yield self.content


def serve_from(response: MockResponse):
    """Build a replacement for ``httpx.Client.stream`` yielding response."""

    @contextmanager
    def mock_stream(*args, **kwargs):
        yield response

    return mock_stream


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_backend() -> Callable[..., MockBackend]:
    """Factory for scripted backends.

    Returns:
        Callable building a MockBackend.
    """
    return MockBackend


@pytest.fixture
def working_chain() -> list[MockBackend]:
    """Four backends that all succeed with distinct payloads.

    Returns:
        Backends in priority order.
    """
    return [
        MockBackend(f"svc{i}", i, result=FAKE_PNG + bytes([i])) for i in range(1, 5)
    ]


@pytest.fixture
def failing_chain() -> list[MockBackend]:
    """Four backends that each fail in a different way.

    Returns:
        Backends in priority order.
    """
    return [
        MockBackend("svc1", 1, fail_with="timeout"),
        MockBackend("svc2", 2, fail_with="status"),
        MockBackend("svc3", 3, fail_with="encoding"),
        MockBackend("svc4", 4, fail_with="connection refused"),
    ]


@pytest.fixture
def sample_mermaid() -> str:
    """Sample Mermaid flowchart.

    Returns:
        Diagram text.
    """
    return 'graph TD\n  A["Start"] --> B{Decide}\n  B -->|Yes| C[Done]'
