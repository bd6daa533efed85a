"""Abstract base class for rendering backends.

Defines the interface every remote rendering service implements: encode a
render key into a request, then invoke the request to obtain image bytes.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal

import httpx

from mermaid_render.config import get_render_timeout
from mermaid_render.errors import BackendError

logger = logging.getLogger(__name__)

# Anything shorter cannot be a usable PNG
MIN_IMAGE_BYTES = 100

# Declared content types that mark an error page served with a 2xx status
_NON_IMAGE_CONTENT_TYPES = ("text/", "application/json")


@dataclass(frozen=True)
class EncodedRequest:
    """A fully encoded HTTP request for one backend.

    Attributes:
        method: HTTP method ("GET" or "POST").
        url: Absolute request URL.
        body: Request body for POST requests.
        headers: Extra request headers.
    """

    method: Literal["GET", "POST"]
    url: str
    body: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)


class RenderBackend(ABC):
    """Abstract interface for a remote diagram rendering service.

    Backends are tried by the orchestrator in ascending ``priority`` order.
    Implementations never retry internally.

    Example:
        >>> backend = KrokiBackend()
        >>> request = backend.encode("graph TD\\n  A-->B")
        >>> png = backend.invoke(request)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in logs and errors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Position in the fallback chain (1 = tried first)."""

    @property
    def description(self) -> str:
        """Human-readable summary for listings."""
        return self.name

    @abstractmethod
    def encode(self, render_key: str) -> EncodedRequest:
        """Encode a render key into a request.

        Raises:
            EncodingError: If the text cannot be represented for this backend.
        """

    @abstractmethod
    def invoke(self, request: EncodedRequest) -> bytes:
        """Send the request and return validated image bytes.

        Raises:
            BackendError: On network error, timeout, non-success status or
                a response that is not plausibly an image.
        """

    def render(self, render_key: str) -> bytes:
        """Encode and invoke in one step."""
        return self.invoke(self.encode(render_key))

    def close(self) -> None:
        """Release any held resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


def validate_response(
    name: str, response: httpx.Response, content: bytes | None = None
) -> bytes:
    """Check that a response is plausibly a rendered image.

    Args:
        name: Backend name for error reporting.
        response: HTTP response.
        content: Body already read from a streamed response. Defaults to
            ``response.content``.

    Returns:
        Response body.

    Raises:
        BackendError: On non-2xx status, a text/JSON content type, or a body
            shorter than MIN_IMAGE_BYTES.
    """
    status = response.status_code
    if not 200 <= status < 300:
        raise BackendError(name, f"HTTP {status}", status_code=status)

    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    if content_type.lower().startswith(_NON_IMAGE_CONTENT_TYPES):
        raise BackendError(
            name,
            f"expected an image but got {content_type}",
            status_code=status,
        )

    if content is None:
        content = response.content
    if len(content) < MIN_IMAGE_BYTES:
        raise BackendError(
            name,
            f"invalid image data received ({len(content)} bytes)",
            status_code=status,
        )
    return content


class HttpBackend(RenderBackend):
    """RenderBackend that talks HTTP through a reusable httpx client.

    Attributes:
        timeout: Request timeout in seconds.
    """

    def __init__(self, timeout: float | None = None):
        """Initialize the HTTP client.

        Args:
            timeout: Request timeout in seconds. Defaults to
                MERMAID_RENDER_TIMEOUT (30s).
        """
        self.timeout = get_render_timeout(timeout)
        self._client = httpx.Client(timeout=self.timeout, follow_redirects=True)

    def __del__(self) -> None:
        """Clean up HTTP client."""
        if hasattr(self, "_client"):
            self._client.close()

    def close(self) -> None:
        self._client.close()

    def invoke(self, request: EncodedRequest) -> bytes:
        """Send the request, reading the body against a wall-clock deadline.

        httpx applies ``timeout`` to each connect/read/write separately, so
        the body is streamed and the whole call is cut off once ``timeout``
        seconds have passed.

        Raises:
            BackendError: On network error, timeout or a rejected response.
        """
        deadline = time.monotonic() + self.timeout
        chunks: list[bytes] = []
        try:
            with self._client.stream(
                request.method,
                request.url,
                content=request.body,
                headers=request.headers,
            ) as response:
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        logger.debug(f"{self.name} exceeded {self.timeout}s deadline")
                        raise BackendError(
                            self.name, f"timed out after {self.timeout}s"
                        )
        except httpx.TimeoutException as e:
            logger.debug(f"{self.name} timed out after {self.timeout}s")
            raise BackendError(self.name, e) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise BackendError(self.name, e) from e

        return validate_response(self.name, response, b"".join(chunks))


__all__ = [
    "EncodedRequest",
    "HttpBackend",
    "MIN_IMAGE_BYTES",
    "RenderBackend",
    "validate_response",
]
