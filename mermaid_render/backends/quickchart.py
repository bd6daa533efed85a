"""QuickChart rendering service backend.

The only backend that takes a POST body: the diagram travels as the
``chart`` field of a JSON document.
"""

from mermaid_render.encoding import encode_json_body

from .base import EncodedRequest, HttpBackend

QUICKCHART_URL = "https://quickchart.io/chart"


class QuickChartBackend(HttpBackend):
    """QuickChart ``/chart`` endpoint (last resort)."""

    def __init__(self, priority: int = 4, timeout: float | None = None):
        super().__init__(timeout=timeout)
        self._priority = priority

    @property
    def name(self) -> str:
        return "quickchart"

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def description(self) -> str:
        return f"QuickChart POST, JSON body ({QUICKCHART_URL})"

    def encode(self, render_key: str) -> EncodedRequest:
        return EncodedRequest(
            method="POST",
            url=QUICKCHART_URL,
            body=encode_json_body(render_key),
            headers={"Content-Type": "application/json"},
        )


__all__ = ["QUICKCHART_URL", "QuickChartBackend"]
