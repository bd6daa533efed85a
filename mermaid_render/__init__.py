"""mermaid-render: themed PNG rendering of Mermaid diagrams.

Renders diagram text through an ordered chain of public rendering services
(mermaid.ink, Kroki, QuickChart), caching the first successful image.

Example:
    >>> from mermaid_render import DiagramRequest, RenderOrchestrator, get_preset
    >>>
    >>> with RenderOrchestrator() as orchestrator:
    ...     request = DiagramRequest("graph TD\\n  A-->B", get_preset("Vibrant"))
    ...     orchestrator.render(request).save("diagram.png")
"""

from .errors import BackendError, EncodingError, ExhaustedError, RenderError
from .theme import (
    DEFAULT_PRESET,
    RGBColor,
    ThemeConfig,
    apply_theme,
    format_theme_config,
    get_preset,
    list_presets,
)
from .cache import RenderCache
from .backends import RenderBackend, default_backends
from .render import (
    DiagramRequest,
    RenderAttempt,
    RenderedImage,
    RenderOrchestrator,
    RenderSession,
    RenderState,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "BackendError",
    "EncodingError",
    "ExhaustedError",
    "RenderError",
    # Theme
    "DEFAULT_PRESET",
    "RGBColor",
    "ThemeConfig",
    "apply_theme",
    "format_theme_config",
    "get_preset",
    "list_presets",
    # Pipeline
    "DiagramRequest",
    "RenderAttempt",
    "RenderBackend",
    "RenderCache",
    "RenderOrchestrator",
    "RenderSession",
    "RenderState",
    "RenderedImage",
    "default_backends",
]
