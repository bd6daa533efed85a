"""Thread-safe render cache."""

from .lib import RenderCache

__all__ = ["RenderCache"]
