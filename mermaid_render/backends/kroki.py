"""Kroki rendering service backend.

Kroki accepts DEFLATE-compressed, base64url-encoded diagram source in the
URL path. It has no resolution controls.
"""

from mermaid_render.encoding import encode_deflate_base64url

from .base import EncodedRequest, HttpBackend

KROKI_URL = "https://kroki.io"


class KrokiBackend(HttpBackend):
    """Kroki ``/mermaid/png`` endpoint."""

    def __init__(self, priority: int = 3, timeout: float | None = None):
        super().__init__(timeout=timeout)
        self._priority = priority

    @property
    def name(self) -> str:
        return "kroki"

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def description(self) -> str:
        return f"Kroki GET, deflate + base64url ({KROKI_URL})"

    def encode(self, render_key: str) -> EncodedRequest:
        encoded = encode_deflate_base64url(render_key)
        return EncodedRequest(method="GET", url=f"{KROKI_URL}/mermaid/png/{encoded}")


__all__ = ["KROKI_URL", "KrokiBackend"]
