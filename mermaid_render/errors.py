"""Exception hierarchy for the rendering pipeline.

Only ExhaustedError reaches callers of the orchestrator. EncodingError and
BackendError are raised per service and recovered by moving on to the next
service in the chain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from mermaid_render.render.lib import RenderAttempt


class RenderError(Exception):
    """Base exception for rendering pipeline errors."""


class EncodingError(RenderError):
    """Diagram text could not be encoded for a backend.

    Attributes:
        encoder: Name of the encoder that failed.
        cause: Underlying exception.
    """

    def __init__(self, encoder: str, cause: Exception):
        super().__init__(f"{encoder} encoding failed: {cause}")
        self.encoder = encoder
        self.cause = cause


class BackendError(RenderError):
    """A single rendering service failed.

    Raised on network errors, timeouts, non-success status codes and
    responses that are not plausibly an image.

    Attributes:
        name: Backend name.
        cause: Underlying exception or a description of the bad response.
        status_code: HTTP status code, when a response was received.
    """

    def __init__(
        self,
        name: str,
        cause: Exception | str,
        status_code: int | None = None,
    ):
        super().__init__(f"{name} failed: {cause}")
        self.name = name
        self.cause = cause
        self.status_code = status_code


class ExhaustedError(RenderError):
    """Every rendering service failed for one render call.

    The message names only the last failure. The full history is kept on
    ``attempts`` for debugging.

    Attributes:
        last_cause: Failure of the last service tried.
        attempts: One record per service tried, in order.
    """

    def __init__(
        self,
        last_cause: RenderError | None,
        attempts: Sequence[RenderAttempt] = (),
    ):
        detail = f" Last error: {last_cause}" if last_cause is not None else ""
        super().__init__(f"Diagram could not be rendered.{detail}")
        self.last_cause = last_cause
        self.attempts = tuple(attempts)


__all__ = ["BackendError", "EncodingError", "ExhaustedError", "RenderError"]
