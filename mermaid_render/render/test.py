"""Tests for render orchestration.

All tests use scripted backends from conftest (no network).
"""

from concurrent.futures import Future, ThreadPoolExecutor

import pytest

from mermaid_render.backends import MermaidInkBackend
from mermaid_render.cache import RenderCache
from mermaid_render.errors import BackendError, EncodingError, ExhaustedError
from mermaid_render.theme import DEFAULT_PRESET, get_preset

from .conftest import FAKE_PNG, MockResponse, serve_from
from .lib import (
    DiagramRequest,
    RenderAttempt,
    RenderedImage,
    RenderOrchestrator,
    RenderState,
)
from .session import RenderSession


class TestDiagramRequest:
    """Tests for DiagramRequest."""

    @pytest.mark.unit
    def test_unthemed_key_is_text(self, sample_mermaid):
        """Without a theme the render key is the raw text."""
        assert DiagramRequest(sample_mermaid).render_key == sample_mermaid

    @pytest.mark.unit
    def test_themed_key(self, sample_mermaid):
        """With a theme the init block is prepended."""
        key = DiagramRequest(sample_mermaid, get_preset("Vibrant")).render_key
        assert key.startswith("%%{init:")
        assert key.endswith("\n" + sample_mermaid)

    @pytest.mark.unit
    def test_rejects_non_string(self):
        """Text must be a string."""
        with pytest.raises(TypeError):
            DiagramRequest(b"graph TD")


class TestRenderedImage:
    """Tests for RenderedImage."""

    @pytest.mark.unit
    def test_save(self, tmp_path):
        """Images save their raw bytes."""
        image = RenderedImage(FAKE_PNG, backend="svc1")
        path = tmp_path / "out.png"
        image.save(path)
        assert path.read_bytes() == FAKE_PNG
        assert image.size_bytes == len(FAKE_PNG)

    @pytest.mark.unit
    def test_equality_ignores_backend(self):
        """Two images with the same bytes compare equal."""
        assert RenderedImage(FAKE_PNG, "a") == RenderedImage(FAKE_PNG, "b")


class TestRenderOrchestrator:
    """Tests for the fallback chain."""

    @pytest.mark.unit
    def test_first_backend_wins(self, working_chain, sample_mermaid):
        """The highest priority backend is used when it succeeds."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        image = orchestrator.render(DiagramRequest(sample_mermaid))

        assert image.data == FAKE_PNG + b"\x01"
        assert image.backend == "svc1"
        assert [len(b.calls) for b in working_chain] == [1, 0, 0, 0]

    @pytest.mark.unit
    def test_sorted_by_priority(self, make_backend, sample_mermaid):
        """Backends are tried by priority, not by list position."""
        late = make_backend("late", 9)
        early = make_backend("early", 1, fail_with="timeout")
        middle = make_backend("middle", 5)
        orchestrator = RenderOrchestrator(backends=[late, early, middle])

        assert [b.name for b in orchestrator.backends] == ["early", "middle", "late"]
        assert orchestrator.render(DiagramRequest(sample_mermaid)).backend == "middle"
        assert late.calls == []

    @pytest.mark.unit
    def test_fallback_stops_at_first_success(self, make_backend, sample_mermaid):
        """Failures move on; the backend after a success is never called."""
        chain = [
            make_backend("svc1", 1, fail_with="timeout"),
            make_backend("svc2", 2, fail_with="status"),
            make_backend("svc3", 3, result=FAKE_PNG + b"3"),
            make_backend("svc4", 4, result=FAKE_PNG + b"4"),
        ]
        orchestrator = RenderOrchestrator(backends=chain)
        request = DiagramRequest(sample_mermaid)
        image = orchestrator.render(request)

        assert image.backend == "svc3"
        assert image.data == FAKE_PNG + b"3"
        assert [len(b.calls) for b in chain] == [1, 1, 1, 0]
        assert orchestrator.cache.get(request.render_key) == image
        assert orchestrator.cache.get(request.render_key).backend == "svc3"

    @pytest.mark.unit
    def test_same_key_sent_to_every_backend(self, failing_chain, sample_mermaid):
        """Every backend receives the identical render key."""
        request = DiagramRequest(sample_mermaid, get_preset(DEFAULT_PRESET))
        orchestrator = RenderOrchestrator(backends=failing_chain)

        with pytest.raises(ExhaustedError):
            orchestrator.render(request)

        for backend in failing_chain:
            assert backend.calls == [request.render_key]

    @pytest.mark.unit
    def test_encoding_failure_falls_through(self, make_backend, sample_mermaid):
        """An encoding failure is treated like any other backend failure."""
        chain = [make_backend("svc1", 1, fail_with="encoding"), make_backend("svc2", 2)]
        image = RenderOrchestrator(backends=chain).render(DiagramRequest(sample_mermaid))
        assert image.backend == "svc2"

    @pytest.mark.unit
    def test_exhausted(self, failing_chain, sample_mermaid):
        """When all backends fail the last failure is reported."""
        orchestrator = RenderOrchestrator(backends=failing_chain)

        with pytest.raises(ExhaustedError) as exc_info:
            orchestrator.render(DiagramRequest(sample_mermaid))

        error = exc_info.value
        assert isinstance(error.last_cause, BackendError)
        assert error.last_cause.name == "svc4"
        assert "connection refused" in str(error)
        assert str(error).startswith("Diagram could not be rendered. Last error:")

    @pytest.mark.unit
    def test_exhausted_records_attempts(self, failing_chain, sample_mermaid):
        """Every failed attempt is kept in order."""
        orchestrator = RenderOrchestrator(backends=failing_chain)

        with pytest.raises(ExhaustedError) as exc_info:
            orchestrator.render(DiagramRequest(sample_mermaid))

        attempts = exc_info.value.attempts
        assert [a.backend for a in attempts] == ["svc1", "svc2", "svc3", "svc4"]
        assert all(isinstance(a, RenderAttempt) for a in attempts)
        assert not any(a.succeeded for a in attempts)
        assert isinstance(attempts[2].error, EncodingError)
        assert attempts[1].error.status_code == 503

    @pytest.mark.unit
    def test_exhausted_caches_nothing(self, failing_chain, sample_mermaid):
        """A failed render leaves no cache entry behind."""
        orchestrator = RenderOrchestrator(backends=failing_chain)

        with pytest.raises(ExhaustedError):
            orchestrator.render(DiagramRequest(sample_mermaid))

        assert len(orchestrator.cache) == 0
        assert sample_mermaid not in orchestrator.cache

    @pytest.mark.unit
    def test_failure_then_retry_calls_backends_again(
        self, make_backend, sample_mermaid
    ):
        """After exhaustion a later call tries the chain again."""
        backend = make_backend("svc1", 1, fail_with="timeout")
        orchestrator = RenderOrchestrator(backends=[backend])

        with pytest.raises(ExhaustedError):
            orchestrator.render(DiagramRequest(sample_mermaid))
        backend.fail_with = None
        assert orchestrator.render(DiagramRequest(sample_mermaid)).data == FAKE_PNG
        assert len(backend.calls) == 2

    @pytest.mark.unit
    def test_unexpected_errors_propagate(self, make_backend, sample_mermaid):
        """Errors outside the rendering hierarchy are not swallowed."""

        def explode():
            raise RuntimeError("bug")

        chain = [make_backend("svc1", 1, on_invoke=explode), make_backend("svc2", 2)]
        with pytest.raises(RuntimeError, match="bug"):
            RenderOrchestrator(backends=chain).render(DiagramRequest(sample_mermaid))

    @pytest.mark.unit
    def test_empty_chain_rejected(self):
        """At least one backend is required."""
        with pytest.raises(ValueError, match="At least one"):
            RenderOrchestrator(backends=[])

    @pytest.mark.unit
    def test_context_manager_closes_backends(self, working_chain):
        """Leaving the context closes every backend."""
        with RenderOrchestrator(backends=working_chain):
            pass
        assert all(b.closed for b in working_chain)


class TestHttpFallback:
    """Tests for response validation driving the fallback chain."""

    @staticmethod
    def _chain(monkeypatch, first_body: bytes):
        hires = MermaidInkBackend(name="hires", priority=1, scale=3)
        standard = MermaidInkBackend(name="standard", priority=2)
        png = {"content-type": "image/png"}
        monkeypatch.setattr(
            hires._client, "stream", serve_from(MockResponse(200, first_body, png))
        )
        monkeypatch.setattr(
            standard._client, "stream", serve_from(MockResponse(200, FAKE_PNG, png))
        )
        return [hires, standard]

    @pytest.mark.unit
    def test_99_byte_response_moves_on(self, monkeypatch, sample_mermaid):
        """A 99-byte body from the first service hands over to the second."""
        chain = self._chain(monkeypatch, b"x" * 99)

        with RenderOrchestrator(backends=chain) as orchestrator:
            image = orchestrator.render(DiagramRequest(sample_mermaid))

        assert image.backend == "standard"
        assert image.data == FAKE_PNG

    @pytest.mark.unit
    def test_100_byte_response_accepted(self, monkeypatch, sample_mermaid):
        """A 100-byte body from the first service is the result."""
        chain = self._chain(monkeypatch, b"x" * 100)

        with RenderOrchestrator(backends=chain) as orchestrator:
            image = orchestrator.render(DiagramRequest(sample_mermaid))

        assert image.backend == "hires"
        assert image.data == b"x" * 100


class TestRenderCaching:
    """Tests for cache behavior during rendering."""

    @pytest.mark.unit
    def test_cache_hit_skips_backends(self, working_chain, sample_mermaid):
        """A second identical request makes no backend calls."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        first = orchestrator.render(DiagramRequest(sample_mermaid))
        second = orchestrator.render(DiagramRequest(sample_mermaid))

        assert first == second
        assert len(working_chain[0].calls) == 1

    @pytest.mark.unit
    def test_keyed_on_themed_text(self, working_chain, sample_mermaid):
        """The same text with different themes is cached separately."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        orchestrator.render(DiagramRequest(sample_mermaid))
        orchestrator.render(DiagramRequest(sample_mermaid, get_preset("Vibrant")))
        orchestrator.render(DiagramRequest(sample_mermaid, get_preset("Vibrant")))

        assert len(orchestrator.cache) == 2
        assert len(working_chain[0].calls) == 2

    @pytest.mark.unit
    def test_whitespace_is_significant(self, working_chain):
        """Keys are exact strings with no normalization."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        orchestrator.render(DiagramRequest("graph TD\n  A-->B"))
        orchestrator.render(DiagramRequest("graph TD\n  A-->B "))
        assert len(orchestrator.cache) == 2

    @pytest.mark.unit
    def test_shared_cache(self, working_chain, sample_mermaid):
        """Orchestrators sharing a cache share hits."""
        cache = RenderCache()
        RenderOrchestrator(backends=working_chain, cache=cache).render(
            DiagramRequest(sample_mermaid)
        )
        other = RenderOrchestrator(backends=working_chain, cache=cache)
        other.render(DiagramRequest(sample_mermaid))
        assert len(working_chain[0].calls) == 1

    @pytest.mark.unit
    def test_first_cached_image_returned(self, make_backend, sample_mermaid):
        """A pre-existing entry wins over a fresh render for the same key."""
        cache = RenderCache()
        backend = make_backend("svc1", 1)
        orchestrator = RenderOrchestrator(backends=[backend], cache=cache)
        request = DiagramRequest(sample_mermaid)

        # Another caller fills the entry while this call is in flight
        backend.on_invoke = lambda: cache.put(
            request.render_key, RenderedImage(b"first" * 40, "other")
        )
        image = orchestrator.render(request)
        assert image.data == b"first" * 40


class TestProgress:
    """Tests for progress notifications."""

    @pytest.mark.unit
    def test_progress_sequence_on_fallback(self, make_backend, sample_mermaid):
        """Progress reports each attempt, then success."""
        events = []
        chain = [make_backend("svc1", 1, fail_with="timeout"), make_backend("svc2", 2)]
        orchestrator = RenderOrchestrator(backends=chain)
        orchestrator.render(
            DiagramRequest(sample_mermaid),
            progress=lambda state, message: events.append((state, message)),
        )

        states = [state for state, _ in events]
        assert states == [
            RenderState.CACHE_CHECK,
            RenderState.ATTEMPTING,
            RenderState.ATTEMPTING,
            RenderState.SUCCESS,
            RenderState.DONE,
        ]
        assert events[1][1] == "Trying rendering service 1 (svc1)..."
        assert events[2][1] == "Trying rendering service 2 (svc2)..."

    @pytest.mark.unit
    def test_progress_on_cache_hit(self, working_chain, sample_mermaid):
        """Cache hits report straight to done."""
        events = []
        orchestrator = RenderOrchestrator(
            backends=working_chain,
            progress=lambda state, message: events.append((state, message)),
        )
        orchestrator.render(DiagramRequest(sample_mermaid))
        events.clear()
        orchestrator.render(DiagramRequest(sample_mermaid))

        assert events == [
            (RenderState.CACHE_CHECK, "Checking diagram cache..."),
            (RenderState.DONE, "Using cached diagram..."),
        ]

    @pytest.mark.unit
    def test_progress_on_exhaustion(self, failing_chain, sample_mermaid):
        """Exhaustion is the final reported state."""
        states = []
        orchestrator = RenderOrchestrator(backends=failing_chain)

        with pytest.raises(ExhaustedError):
            orchestrator.render(
                DiagramRequest(sample_mermaid),
                progress=lambda state, _: states.append(state),
            )

        assert states[-1] == RenderState.EXHAUSTED
        assert states.count(RenderState.ATTEMPTING) == 4
        assert RenderState.SUCCESS not in states


class TestBackgroundRendering:
    """Tests for submit() and concurrent use."""

    @pytest.mark.unit
    def test_submit_returns_future(self, working_chain, sample_mermaid):
        """submit() resolves to the rendered image."""
        with RenderOrchestrator(backends=working_chain) as orchestrator:
            future = orchestrator.submit(DiagramRequest(sample_mermaid))
            assert isinstance(future, Future)
            assert future.result(timeout=5).backend == "svc1"

    @pytest.mark.unit
    def test_submit_propagates_exhaustion(self, failing_chain, sample_mermaid):
        """The future raises ExhaustedError when every backend fails."""
        with RenderOrchestrator(backends=failing_chain) as orchestrator:
            future = orchestrator.submit(DiagramRequest(sample_mermaid))
            with pytest.raises(ExhaustedError):
                future.result(timeout=5)

    @pytest.mark.unit
    def test_max_workers_from_environment(self, working_chain, monkeypatch):
        """Worker count defaults to MERMAID_RENDER_MAX_WORKERS."""
        monkeypatch.setenv("MERMAID_RENDER_MAX_WORKERS", "2")
        orchestrator = RenderOrchestrator(backends=working_chain)
        assert orchestrator._max_workers == 2

    @pytest.mark.unit
    def test_shutdown_without_submit(self, working_chain):
        """Shutting down before any submit is a no-op."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        orchestrator.shutdown()
        orchestrator.shutdown()

    @pytest.mark.unit
    def test_concurrent_renders(self, working_chain):
        """Concurrent renders of distinct and identical keys all succeed."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        texts = [f"graph TD\n  A-->B{i % 5}" for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            images = list(
                pool.map(lambda t: orchestrator.render(DiagramRequest(t)), texts)
            )

        assert all(image.data == FAKE_PNG + b"\x01" for image in images)
        assert len(orchestrator.cache) == 5
        for text in set(texts):
            assert orchestrator.cache.get(text) is not None


class TestRenderSession:
    """Tests for caller-owned session state."""

    @pytest.mark.unit
    def test_default_theme(self):
        """Sessions start with the default preset."""
        session = RenderSession()
        assert session.theme == get_preset(DEFAULT_PRESET)
        assert session.use_theme is True
        assert session.last_backend is None

    @pytest.mark.unit
    def test_request_uses_theme(self, sample_mermaid):
        """Requests carry the session theme and unmodified text."""
        session = RenderSession()
        request = session.request(sample_mermaid)
        assert request.text == sample_mermaid
        assert request.theme == session.theme

    @pytest.mark.unit
    def test_disable_theme(self, sample_mermaid):
        """use_theme=False renders unthemed."""
        request = RenderSession(use_theme=False).request(sample_mermaid)
        assert request.render_key == sample_mermaid

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_rejected(self, text):
        """Empty or whitespace-only text is rejected."""
        with pytest.raises(ValueError, match="empty"):
            RenderSession().request(text)

    @pytest.mark.unit
    def test_sessions_are_independent(self):
        """Remembering a theme affects only that session."""
        first, second = RenderSession(), RenderSession()
        first.remember(get_preset("Vibrant"))
        assert first.theme.name == "Vibrant"
        assert second.theme.name == DEFAULT_PRESET

    @pytest.mark.unit
    def test_render_text_remembers_theme(self, working_chain, sample_mermaid):
        """An explicit theme is remembered for later renders."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        session = RenderSession(use_theme=False)
        vibrant = get_preset("Vibrant")

        orchestrator.render_text(sample_mermaid, vibrant, session=session)
        orchestrator.render_text("graph LR\n  X-->Y", session=session)

        assert session.theme == vibrant
        assert session.use_theme is True
        assert session.last_backend == "svc1"
        assert working_chain[0].calls[1].startswith("%%{init:")

    @pytest.mark.unit
    def test_render_text_without_session(self, working_chain, sample_mermaid):
        """Without a session the text is rendered as given."""
        orchestrator = RenderOrchestrator(backends=working_chain)
        orchestrator.render_text(sample_mermaid)
        assert working_chain[0].calls == [sample_mermaid]
