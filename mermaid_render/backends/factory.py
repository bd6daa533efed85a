"""Fallback chain construction.

The chain is fixed: highest-quality service first, different providers and
protocol shapes further down. There is no runtime registration.
"""

from .base import RenderBackend
from .kroki import KrokiBackend
from .mermaid_ink import MermaidInkBackend
from .quickchart import QuickChartBackend

BACKEND_NAMES = ("mermaid-ink-hires", "mermaid-ink", "kroki", "quickchart")


def default_backends(timeout: float | None = None) -> tuple[RenderBackend, ...]:
    """Create the four rendering backends in priority order.

    1. mermaid.ink at 2400x1800, scale 3
    2. mermaid.ink at 1920x1440, scale 2
    3. Kroki (no resolution control)
    4. QuickChart POST

    Args:
        timeout: Per-request timeout in seconds. Defaults to
            MERMAID_RENDER_TIMEOUT.

    Returns:
        Tuple of backends sorted by priority.
    """
    backends: list[RenderBackend] = [
        MermaidInkBackend(
            name="mermaid-ink-hires",
            priority=1,
            width=2400,
            height=1800,
            scale=3,
            timeout=timeout,
        ),
        MermaidInkBackend(
            name="mermaid-ink",
            priority=2,
            width=1920,
            height=1440,
            scale=2,
            timeout=timeout,
        ),
        KrokiBackend(priority=3, timeout=timeout),
        QuickChartBackend(priority=4, timeout=timeout),
    ]
    return tuple(sorted(backends, key=lambda backend: backend.priority))


__all__ = ["BACKEND_NAMES", "default_backends"]
