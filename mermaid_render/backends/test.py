"""Tests for rendering backends.

Unit tests are mocked (no network), apart from the deadline test which
talks to a local HTTP server.
Integration tests call the public rendering services.
"""

import base64
import json
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from mermaid_render.encoding import decode_deflate_base64url

from . import (
    BACKEND_NAMES,
    MIN_IMAGE_BYTES,
    BackendError,
    EncodedRequest,
    KrokiBackend,
    MermaidInkBackend,
    QuickChartBackend,
    default_backends,
    validate_response,
)

DIAGRAM = 'graph TD\n  A["Start"] --> B\\C'
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200

# =============================================================================
# Unit Tests (Mocked)
# =============================================================================


@dataclass
class MockResponse:
    """Mock HTTP response for testing."""

    status_code: int
    content: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    def iter_bytes(self):
        for start in range(0, len(self.content), 64):
            yield self.content[start : start + 64]


def stream_returning(response: MockResponse, calls: list | None = None):
    """Build a replacement for ``httpx.Client.stream`` yielding response."""

    @contextmanager
    def mock_stream(method, url, content=None, headers=None):
        if calls is not None:
            calls.append(
                {"method": method, "url": url, "content": content, "headers": headers}
            )
        yield response

    return mock_stream


def stream_raising(error: Exception):
    """Build a replacement for ``httpx.Client.stream`` that fails."""

    def mock_stream(*args, **kwargs):
        raise error

    return mock_stream


class TestValidateResponse:
    """Tests for response validation rules."""

    @pytest.mark.unit
    def test_accepts_png(self):
        """A 200 response with enough bytes is accepted."""
        response = MockResponse(200, FAKE_PNG, {"content-type": "image/png"})
        assert validate_response("x", response) == FAKE_PNG

    @pytest.mark.unit
    def test_99_bytes_rejected(self):
        """99 bytes is too small to be an image."""
        response = MockResponse(200, b"x" * 99)
        with pytest.raises(BackendError, match="invalid image data"):
            validate_response("x", response)

    @pytest.mark.unit
    def test_100_bytes_accepted(self):
        """Exactly 100 bytes with a success status is accepted."""
        response = MockResponse(200, b"x" * 100)
        assert validate_response("x", response) == b"x" * 100
        assert MIN_IMAGE_BYTES == 100

    @pytest.mark.unit
    def test_error_status(self):
        """Non-2xx statuses are rejected even with a large body."""
        response = MockResponse(503, FAKE_PNG)
        with pytest.raises(BackendError) as exc_info:
            validate_response("svc", response)
        assert exc_info.value.status_code == 503
        assert exc_info.value.name == "svc"

    @pytest.mark.unit
    def test_html_error_page_rejected(self):
        """A 200 HTML page is not an image."""
        response = MockResponse(
            200, b"<html>" + b"x" * 500, {"content-type": "text/html; charset=utf-8"}
        )
        with pytest.raises(BackendError, match="text/html"):
            validate_response("svc", response)

    @pytest.mark.unit
    def test_json_error_rejected(self):
        """A 200 JSON body is not an image."""
        response = MockResponse(
            200, b'{"error": "' + b"x" * 200 + b'"}', {"content-type": "application/json"}
        )
        with pytest.raises(BackendError, match="application/json"):
            validate_response("svc", response)

    @pytest.mark.unit
    def test_octet_stream_judged_by_size(self):
        """Binary content types fall back to the size check."""
        response = MockResponse(
            200, FAKE_PNG, {"content-type": "application/octet-stream"}
        )
        assert validate_response("svc", response) == FAKE_PNG


class TestMermaidInkBackend:
    """Tests for the mermaid.ink backend."""

    @pytest.mark.unit
    def test_encode_url(self):
        """URL embeds standard base64 and size parameters."""
        backend = MermaidInkBackend(width=2400, height=1800, scale=3)
        request = backend.encode(DIAGRAM)
        encoded = base64.b64encode(DIAGRAM.encode("utf-8")).decode("ascii")

        assert request.method == "GET"
        assert request.url == (
            f"https://mermaid.ink/img/{encoded}"
            "?type=png&theme=base&width=2400&height=1800&scale=3"
        )
        assert request.body is None

    @pytest.mark.unit
    def test_invalid_scale(self):
        """Scale outside 1-3 is rejected."""
        with pytest.raises(ValueError, match="Scale must be between"):
            MermaidInkBackend(scale=5)

    @pytest.mark.unit
    def test_invalid_size(self):
        """Non-positive dimensions are rejected."""
        with pytest.raises(ValueError, match="Size must be positive"):
            MermaidInkBackend(width=0)

    @pytest.mark.unit
    def test_invoke_success(self, monkeypatch):
        """invoke returns image bytes on success."""
        backend = MermaidInkBackend()
        calls = []
        response = MockResponse(200, FAKE_PNG, {"content-type": "image/png"})
        monkeypatch.setattr(
            backend._client, "stream", stream_returning(response, calls)
        )
        request = backend.encode(DIAGRAM)

        assert backend.invoke(request) == FAKE_PNG
        assert [(c["method"], c["url"]) for c in calls] == [("GET", request.url)]

    @pytest.mark.unit
    def test_invoke_connect_error(self, monkeypatch):
        """Network errors become BackendError with the cause attached."""
        backend = MermaidInkBackend(name="mermaid-ink-hires")
        monkeypatch.setattr(
            backend._client,
            "stream",
            stream_raising(httpx.ConnectError("Connection refused")),
        )

        with pytest.raises(BackendError) as exc_info:
            backend.render(DIAGRAM)
        assert exc_info.value.name == "mermaid-ink-hires"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.unit
    def test_invoke_timeout(self, monkeypatch):
        """Timeouts are reported like any other failure."""
        backend = MermaidInkBackend(timeout=0.5)
        monkeypatch.setattr(
            backend._client, "stream", stream_raising(httpx.ReadTimeout("timed out"))
        )

        with pytest.raises(BackendError) as exc_info:
            backend.render(DIAGRAM)
        assert isinstance(exc_info.value.cause, httpx.TimeoutException)

    @pytest.mark.unit
    def test_uses_configured_timeout(self, monkeypatch):
        """Timeout defaults to MERMAID_RENDER_TIMEOUT."""
        monkeypatch.setenv("MERMAID_RENDER_TIMEOUT", "7")
        backend = MermaidInkBackend()
        assert backend.timeout == 7.0
        assert backend._client.timeout.read == 7.0


class TestKrokiBackend:
    """Tests for the Kroki backend."""

    @pytest.mark.unit
    def test_encode_url(self):
        """URL embeds compressed base64url without padding."""
        request = KrokiBackend().encode(DIAGRAM)
        prefix = "https://kroki.io/mermaid/png/"

        assert request.method == "GET"
        assert request.url.startswith(prefix)
        encoded = request.url[len(prefix) :]
        assert "=" not in encoded
        assert decode_deflate_base64url(encoded) == DIAGRAM

    @pytest.mark.unit
    def test_small_response_rejected(self, monkeypatch):
        """Kroki responses are size-checked too."""
        backend = KrokiBackend()
        monkeypatch.setattr(
            backend._client, "stream", stream_returning(MockResponse(200, b"tiny"))
        )
        with pytest.raises(BackendError, match="kroki"):
            backend.render(DIAGRAM)


class TestQuickChartBackend:
    """Tests for the QuickChart backend."""

    @pytest.mark.unit
    def test_encode_post_body(self):
        """Request is a JSON POST carrying the exact text."""
        request = QuickChartBackend().encode(DIAGRAM)

        assert request.method == "POST"
        assert request.url == "https://quickchart.io/chart"
        assert request.headers["Content-Type"] == "application/json"
        payload = json.loads(request.body)
        assert payload["chart"] == DIAGRAM
        assert payload["format"] == "png"
        assert payload["devicePixelRatio"] == 2

    @pytest.mark.unit
    def test_invoke_posts_body(self, monkeypatch):
        """invoke sends the encoded body with POST."""
        backend = QuickChartBackend()
        calls = []
        monkeypatch.setattr(
            backend._client,
            "stream",
            stream_returning(MockResponse(200, FAKE_PNG), calls),
        )
        request = backend.encode(DIAGRAM)

        assert backend.invoke(request) == FAKE_PNG
        assert calls[0]["method"] == "POST"
        assert calls[0]["url"] == request.url
        assert calls[0]["content"] == request.body
        assert calls[0]["headers"] == {"Content-Type": "application/json"}

    @pytest.mark.unit
    def test_error_status(self, monkeypatch):
        """HTTP errors become BackendError with status code."""
        backend = QuickChartBackend()
        monkeypatch.setattr(
            backend._client, "stream", stream_returning(MockResponse(400, b"bad"))
        )
        with pytest.raises(BackendError) as exc_info:
            backend.invoke(EncodedRequest(method="POST", url="https://example"))
        assert exc_info.value.status_code == 400


# =============================================================================
# Deadline Tests (local HTTP server)
# =============================================================================


class _TrickleHandler(BaseHTTPRequestHandler):
    """Serves a 200-byte PNG body 20 bytes at a time, 0.4s apart."""

    chunk_delay = 0.4

    def do_GET(self):
        body = FAKE_PNG[:200]
        self.send_response(200)
        self.send_header("Content-Type", "image/png")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        try:
            for start in range(0, len(body), 20):
                self.wfile.write(body[start : start + 20])
                self.wfile.flush()
                time.sleep(self.chunk_delay)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def trickle_server():
    """Run a local server that trickles its response body.

    Yields:
        Base URL of the server.
    """
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TrickleHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}/"
    finally:
        server.shutdown()
        server.server_close()


class TestInvokeDeadline:
    """Tests for the wall-clock limit on a whole invocation."""

    @pytest.mark.unit
    def test_slow_body_cut_off(self, trickle_server):
        """A body trickled past the timeout fails even though no read stalls."""
        backend = KrokiBackend(timeout=1.0)
        started = time.monotonic()

        with pytest.raises(BackendError, match="timed out after 1.0s"):
            backend.invoke(EncodedRequest(method="GET", url=trickle_server))

        elapsed = time.monotonic() - started
        backend.close()
        assert elapsed < 2.0

    @pytest.mark.unit
    def test_slow_body_within_deadline(self, trickle_server, monkeypatch):
        """A trickled body that finishes in time is returned whole."""
        monkeypatch.setattr(_TrickleHandler, "chunk_delay", 0.01)
        backend = KrokiBackend(timeout=5.0)

        data = backend.invoke(EncodedRequest(method="GET", url=trickle_server))
        backend.close()
        assert data == FAKE_PNG[:200]


class TestDefaultBackends:
    """Tests for the fixed fallback chain."""

    @pytest.mark.unit
    def test_priority_order(self):
        """Backends come back in fixed priority order."""
        backends = default_backends()
        assert tuple(b.name for b in backends) == BACKEND_NAMES
        assert [b.priority for b in backends] == [1, 2, 3, 4]

    @pytest.mark.unit
    def test_resolutions(self):
        """The high-resolution mermaid.ink backend is tried first."""
        hires, standard = default_backends()[:2]
        assert (hires.width, hires.height, hires.scale) == (2400, 1800, 3)
        assert (standard.width, standard.height, standard.scale) == (1920, 1440, 2)

    @pytest.mark.unit
    def test_shared_timeout(self):
        """The timeout is applied to every backend."""
        assert all(b.timeout == 12.0 for b in default_backends(timeout=12.0))

    @pytest.mark.unit
    def test_fresh_instances(self):
        """Each call builds a new chain."""
        first, second = default_backends(), default_backends()
        assert all(a is not b for a, b in zip(first, second))


# =============================================================================
# Integration Tests (require network access)
# =============================================================================


class TestBackendsIntegration:
    """Integration tests against the public rendering services."""

    @pytest.mark.network
    @pytest.mark.integration
    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_render_png(self, index):
        """URL-based services return a PNG for a simple flowchart."""
        backend = default_backends()[index]
        try:
            image = backend.render("graph TD\n  A-->B")
        except BackendError as e:
            pytest.skip(f"{backend.name} unavailable: {e}")
        assert image[:8] == b"\x89PNG\r\n\x1a\n"
