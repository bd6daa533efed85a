"""Root pytest configuration.

This module provides:
- Environment setup (loads .env)
- Auto-skipping of network tests when the rendering services are unreachable
"""

from __future__ import annotations

import httpx
import pytest
from dotenv import load_dotenv

from mermaid_render.backends import KROKI_URL, MERMAID_INK_URL

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Service Health (Private Functions)
# =============================================================================


def _is_reachable(url: str, timeout: float = 3.0) -> bool:
    """Check if a rendering service answers at all."""
    try:
        httpx.get(url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError:
        return False
    return True


def _services_reachable() -> bool:
    return any(_is_reachable(url) for url in (MERMAID_INK_URL, KROKI_URL))


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Auto-skip tests marked network when no rendering service is reachable."""
    network_items = [item for item in items if "network" in item.keywords]
    if not network_items or _services_reachable():
        return

    skip_network = pytest.mark.skip(reason="Rendering services not reachable")
    for item in network_items:
        item.add_marker(skip_network)
