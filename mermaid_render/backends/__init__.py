"""Remote rendering service backends.

Each backend knows its endpoint, its request shape (URL-embedded or POST
body) and how to tell a usable image from an error response.
"""

from mermaid_render.errors import BackendError

from .base import (
    MIN_IMAGE_BYTES,
    EncodedRequest,
    HttpBackend,
    RenderBackend,
    validate_response,
)
from .factory import BACKEND_NAMES, default_backends
from .kroki import KROKI_URL, KrokiBackend
from .mermaid_ink import MERMAID_INK_URL, MermaidInkBackend
from .quickchart import QUICKCHART_URL, QuickChartBackend

__all__ = [
    "BACKEND_NAMES",
    "BackendError",
    "EncodedRequest",
    "HttpBackend",
    "KROKI_URL",
    "KrokiBackend",
    "MERMAID_INK_URL",
    "MIN_IMAGE_BYTES",
    "MermaidInkBackend",
    "QUICKCHART_URL",
    "QuickChartBackend",
    "RenderBackend",
    "default_backends",
    "validate_response",
]
