"""Render orchestration: cache lookup and ordered fallback across services.

The orchestrator runs a small state machine per render call:

    IDLE -> CACHE_CHECK -> DONE                       (cache hit)
    CACHE_CHECK -> ATTEMPTING(0) -> ... -> SUCCESS -> DONE
    ATTEMPTING(N-1) -> EXHAUSTED                      (every service failed)

Backends are tried one at a time, always in the same order. The first
validated image is cached and returned. Only total exhaustion reaches the
caller, as ExhaustedError.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Sequence

from mermaid_render.backends import RenderBackend, default_backends
from mermaid_render.cache import RenderCache
from mermaid_render.config import get_max_workers
from mermaid_render.errors import ExhaustedError, RenderError
from mermaid_render.theme import ThemeConfig, apply_theme

if TYPE_CHECKING:
    from .session import RenderSession

logger = logging.getLogger(__name__)


class RenderState(str, Enum):
    """States of a single render call."""

    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    DONE = "done"
    EXHAUSTED = "exhausted"


ProgressCallback = Callable[[RenderState, str], None]


@dataclass(frozen=True)
class DiagramRequest:
    """Diagram text plus optional theme for one render call.

    Attributes:
        text: Raw Mermaid diagram description, never modified.
        theme: Optional color theme prepended as an init block.
    """

    text: str
    theme: ThemeConfig | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError(f"Diagram text must be str, got {type(self.text).__name__}")

    @property
    def render_key(self) -> str:
        """Exact text submitted to the services; also the cache key."""
        return apply_theme(self.text, self.theme)


@dataclass(frozen=True)
class RenderedImage:
    """Rendered PNG bytes.

    Attributes:
        data: Raw image data.
        backend: Name of the service that produced it (diagnostic only).
    """

    data: bytes
    backend: str = field(default="", compare=False)

    @property
    def size_bytes(self) -> int:
        """Size of image in bytes."""
        return len(self.data)

    def save(self, path: str | Path) -> None:
        """Save image to file.

        Args:
            path: File path to save to.
        """
        with open(path, "wb") as f:
            f.write(self.data)


@dataclass(frozen=True)
class RenderAttempt:
    """Outcome of trying one backend.

    Attributes:
        backend: Backend name.
        error: Failure, or None if the backend produced the image.
        elapsed: Seconds spent on the attempt.
    """

    backend: str
    error: RenderError | None
    elapsed: float

    @property
    def succeeded(self) -> bool:
        return self.error is None


class RenderOrchestrator:
    """Renders diagrams through an ordered chain of remote services.

    Safe to share between threads: the cache synchronizes itself and the
    orchestrator keeps no per-call state on the instance.

    Example:
        >>> with RenderOrchestrator() as orchestrator:
        ...     image = orchestrator.render(DiagramRequest("graph TD\\n  A-->B"))
        ...     image.save("diagram.png")

        >>> future = orchestrator.submit(DiagramRequest(text, theme))
        >>> future.add_done_callback(on_rendered)

    Attributes:
        cache: Render cache shared by all calls.
    """

    def __init__(
        self,
        backends: Sequence[RenderBackend] | None = None,
        cache: RenderCache | None = None,
        max_workers: int | None = None,
        progress: ProgressCallback | None = None,
    ):
        """Initialize orchestrator.

        Args:
            backends: Fallback chain. Defaults to the four public services.
                Sorted by priority; ties keep the given order.
            cache: Cache to use. A fresh one is created when None.
            max_workers: Background threads for submit(). Defaults to
                MERMAID_RENDER_MAX_WORKERS.
            progress: Default progress callback for every render call.

        Raises:
            ValueError: If the chain is empty.
        """
        chain = default_backends() if backends is None else tuple(backends)
        if not chain:
            raise ValueError("At least one rendering backend is required")
        self._backends = tuple(sorted(chain, key=lambda backend: backend.priority))
        self.cache = cache if cache is not None else RenderCache()
        self._max_workers = get_max_workers(max_workers)
        self._progress = progress
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    @property
    def backends(self) -> tuple[RenderBackend, ...]:
        """The fallback chain in attempt order."""
        return self._backends

    # -------------------------------------------------------------------------
    # Synchronous rendering
    # -------------------------------------------------------------------------

    def render(
        self,
        request: DiagramRequest,
        progress: ProgressCallback | None = None,
    ) -> RenderedImage:
        """Render a diagram, consulting the cache first.

        Blocks for at most one timeout per backend. Call from a worker
        thread (or use submit()) when the caller must stay responsive.

        Args:
            request: Diagram text and optional theme.
            progress: Progress callback for this call, overriding the
                orchestrator default. Invoked on the calling thread.

        Returns:
            The first validated image.

        Raises:
            ExhaustedError: If every backend failed.
        """
        notify = progress or self._progress
        key = request.render_key

        self._notify(notify, RenderState.CACHE_CHECK, "Checking diagram cache...")
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit ({cached.size_bytes} bytes from {cached.backend})")
            self._notify(notify, RenderState.DONE, "Using cached diagram...")
            return cached

        attempts: list[RenderAttempt] = []
        last_error: RenderError | None = None
        total = len(self._backends)

        for index, backend in enumerate(self._backends):
            self._notify(
                notify,
                RenderState.ATTEMPTING,
                f"Trying rendering service {index + 1} ({backend.name})...",
            )
            started = time.monotonic()
            try:
                data = backend.render(key)
            except RenderError as e:
                attempts.append(RenderAttempt(backend.name, e, time.monotonic() - started))
                last_error = e
                logger.warning(f"Renderer {index + 1} ({backend.name}) failed: {e}")
                continue

            elapsed = time.monotonic() - started
            attempts.append(RenderAttempt(backend.name, None, elapsed))
            logger.info(
                f"Rendered with {backend.name} in {elapsed:.2f}s ({len(data)} bytes)"
            )
            self.cache.put(key, RenderedImage(data=data, backend=backend.name))
            self._notify(notify, RenderState.SUCCESS, f"Rendered with {backend.name}")
            self._notify(notify, RenderState.DONE, "Diagram ready")
            # First write wins if another call raced us to the same key
            return self.cache.get(key)

        logger.error(f"All {total} rendering services failed. Last error: {last_error}")
        self._notify(notify, RenderState.EXHAUSTED, "All rendering services failed")
        raise ExhaustedError(last_error, attempts)

    def render_text(
        self,
        text: str,
        theme: ThemeConfig | None = None,
        *,
        session: RenderSession | None = None,
        progress: ProgressCallback | None = None,
    ) -> RenderedImage:
        """Render raw text, optionally through caller-owned session state.

        Args:
            text: Mermaid diagram text.
            theme: Explicit theme. When a session is given, it is remembered.
            session: Caller-owned state supplying the last used theme.
            progress: Progress callback for this call.

        Returns:
            Rendered image.

        Raises:
            ExhaustedError: If every backend failed.
        """
        if session is None:
            request = DiagramRequest(text, theme)
        else:
            if theme is not None:
                session.remember(theme)
            request = session.request(text)

        image = self.render(request, progress=progress)
        if session is not None:
            session.last_backend = image.backend
        return image

    # -------------------------------------------------------------------------
    # Background rendering
    # -------------------------------------------------------------------------

    def submit(
        self,
        request: DiagramRequest,
        progress: ProgressCallback | None = None,
    ) -> Future[RenderedImage]:
        """Render on a background thread.

        Abandoning the future does not cancel an in-flight request; its
        result is simply ignored.

        Args:
            request: Diagram text and optional theme.
            progress: Progress callback, invoked on the worker thread.

        Returns:
            Future resolving to the image or raising ExhaustedError.
        """
        return self._get_executor().submit(self.render, request, progress)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="mermaid-render",
                )
            return self._executor

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background executor, if one was started."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def close(self) -> None:
        """Stop background work and release backend HTTP clients."""
        self.shutdown(wait=True)
        for backend in self._backends:
            backend.close()

    def __enter__(self) -> RenderOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _notify(
        callback: ProgressCallback | None, state: RenderState, message: str
    ) -> None:
        if callback is not None:
            callback(state, message)


__all__ = [
    "DiagramRequest",
    "ProgressCallback",
    "RenderAttempt",
    "RenderOrchestrator",
    "RenderState",
    "RenderedImage",
]
