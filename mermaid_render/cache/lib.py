"""In-memory render cache.

Maps an exact render key to the image first rendered for it. Shared by
concurrent render calls; callers never take a lock.
"""

import logging
import threading
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class RenderCache(Generic[V]):
    """Thread-safe, unbounded, first-write-wins mapping.

    Renders are assumed deterministic for identical input, so once a key is
    present its value never changes. There is no eviction and no TTL; entries
    live as long as the cache object.

    Example:
        >>> cache = RenderCache()
        >>> cache.put("graph TD\\n  A-->B", image)
        >>> cache.get("graph TD\\n  A-->B") is image
        True
    """

    def __init__(self) -> None:
        self._entries: dict[str, V] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        """Return the cached value for ``key``, or None."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        """Store ``value`` unless ``key`` is already present."""
        with self._lock:
            if key in self._entries:
                return
            self._entries[key] = value
        logger.debug(f"Cached render ({len(key)} chars of source)")

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["RenderCache"]
