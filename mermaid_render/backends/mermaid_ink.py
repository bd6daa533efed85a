"""mermaid.ink image service backend.

Renders PNGs from base64-encoded Mermaid text embedded in the URL path.
Output size is controlled by width, height and scale query parameters.
"""

from urllib.parse import urlencode

from mermaid_render.encoding import encode_base64

from .base import EncodedRequest, HttpBackend

MERMAID_INK_URL = "https://mermaid.ink/img"


class MermaidInkBackend(HttpBackend):
    """mermaid.ink ``/img`` endpoint at a fixed resolution.

    Example:
        >>> backend = MermaidInkBackend(width=1920, height=1440, scale=2)
        >>> backend.encode("graph TD\\n  A-->B").url
        'https://mermaid.ink/img/Z3JhcGggVEQKICBBLS0+Qg==?type=png&theme=base&width=1920&height=1440&scale=2'
    """

    def __init__(
        self,
        name: str = "mermaid-ink",
        priority: int = 2,
        width: int = 1920,
        height: int = 1440,
        scale: int = 2,
        timeout: float | None = None,
    ):
        """Initialize mermaid.ink backend.

        Args:
            name: Backend identifier.
            priority: Position in the fallback chain.
            width: Requested image width in pixels.
            height: Requested image height in pixels.
            scale: Requested scale factor.
            timeout: Request timeout in seconds.
        """
        if width < 1 or height < 1:
            raise ValueError(f"Size must be positive, got {width}x{height}")
        if not 1 <= scale <= 3:
            raise ValueError(f"Scale must be between 1 and 3, got {scale}")
        super().__init__(timeout=timeout)
        self._name = name
        self._priority = priority
        self.width = width
        self.height = height
        self.scale = scale

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def description(self) -> str:
        return (
            f"mermaid.ink GET {self.width}x{self.height} @ {self.scale}x "
            f"({MERMAID_INK_URL})"
        )

    def encode(self, render_key: str) -> EncodedRequest:
        query = urlencode(
            {
                "type": "png",
                "theme": "base",
                "width": self.width,
                "height": self.height,
                "scale": self.scale,
            }
        )
        return EncodedRequest(
            method="GET",
            url=f"{MERMAID_INK_URL}/{encode_base64(render_key)}?{query}",
        )


__all__ = ["MERMAID_INK_URL", "MermaidInkBackend"]
