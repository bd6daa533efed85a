"""Tests for the render cache."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from .lib import RenderCache


class TestRenderCache:
    """Tests for RenderCache semantics."""

    @pytest.mark.unit
    def test_miss_returns_none(self):
        """Unknown keys return None."""
        assert RenderCache().get("graph TD") is None

    @pytest.mark.unit
    def test_put_then_get(self):
        """Stored values are returned."""
        cache = RenderCache()
        cache.put("graph TD", b"png")
        assert cache.get("graph TD") == b"png"
        assert "graph TD" in cache
        assert len(cache) == 1

    @pytest.mark.unit
    def test_exact_key_match(self):
        """Keys must match byte for byte."""
        cache = RenderCache()
        cache.put("graph TD\n  A-->B", b"png")
        assert cache.get("graph TD\n  A-->B ") is None
        assert cache.get("graph TD\r\n  A-->B") is None

    @pytest.mark.unit
    def test_put_is_idempotent(self):
        """Putting the same key twice keeps one entry."""
        cache = RenderCache()
        cache.put("k", b"png")
        cache.put("k", b"png")
        assert len(cache) == 1

    @pytest.mark.unit
    def test_first_write_wins(self):
        """A present value never changes."""
        cache = RenderCache()
        cache.put("k", b"first")
        cache.put("k", b"second")
        assert cache.get("k") == b"first"


class TestRenderCacheConcurrency:
    """Tests for concurrent access."""

    @pytest.mark.unit
    def test_concurrent_puts_and_gets(self):
        """Many threads writing distinct keys lose nothing."""
        cache = RenderCache()

        def work(i: int) -> bytes | None:
            cache.put(f"key-{i % 50}", f"value-{i % 50}".encode())
            return cache.get(f"key-{i % 50}")

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(work, range(500)))

        assert len(cache) == 50
        assert all(result is not None for result in results)
        for i in range(50):
            assert cache.get(f"key-{i}") == f"value-{i}".encode()
