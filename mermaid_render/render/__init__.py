"""Render orchestration: cache, ordered fallback and background rendering."""

from .lib import (
    DiagramRequest,
    ProgressCallback,
    RenderAttempt,
    RenderedImage,
    RenderOrchestrator,
    RenderState,
)
from .session import RenderSession

__all__ = [
    "DiagramRequest",
    "ProgressCallback",
    "RenderAttempt",
    "RenderOrchestrator",
    "RenderSession",
    "RenderState",
    "RenderedImage",
]
