"""Centralized environment configuration management for mermaid-render.

Provides a unified interface for the environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Rendering endpoints are compiled into the backends and are deliberately
not part of this configuration surface.

Example:
    >>> from mermaid_render.config import EnvVar, get_environment
    >>>
    >>> timeout = get_environment(EnvVar.MERMAID_RENDER_TIMEOUT)  # float
    >>> timeout = get_environment(EnvVar.MERMAID_RENDER_TIMEOUT, override=5.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "MERMAID_RENDER_TIMEOUT").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by mermaid-render.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - render: Rendering pipeline tuning
        - logging: Log output
        - cli: Command-line defaults
    """

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------
    MERMAID_RENDER_TIMEOUT = EnvConfig(
        name="MERMAID_RENDER_TIMEOUT",
        default=30.0,
        var_type=float,
        description="Per-request timeout in seconds for each rendering service",
        category="render",
    )
    MERMAID_RENDER_MAX_WORKERS = EnvConfig(
        name="MERMAID_RENDER_MAX_WORKERS",
        default=4,
        var_type=int,
        description="Background worker threads for concurrent render calls",
        category="render",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    MERMAID_RENDER_LOG_LEVEL = EnvConfig(
        name="MERMAID_RENDER_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level name (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )

    # -------------------------------------------------------------------------
    # CLI
    # -------------------------------------------------------------------------
    MERMAID_RENDER_OUTPUT_DIR = EnvConfig(
        name="MERMAID_RENDER_OUTPUT_DIR",
        default=None,  # Falls back to the working directory
        var_type=Path,
        description="Directory for rendered images when no output path is given",
        category="cli",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is float:
        try:
            return float(value)
        except ValueError:
            return default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type.

    Example:
        >>> get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS)
        4
        >>> get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS, override=8)
        8
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_render_timeout(override: float | None = None) -> float:
    """Get the per-request rendering timeout in seconds.

    Raises:
        ValueError: If the resolved timeout is not positive.
    """
    timeout = float(get_environment(EnvVar.MERMAID_RENDER_TIMEOUT, override))
    if timeout <= 0:
        raise ValueError(f"Render timeout must be positive, got {timeout}")
    return timeout


def get_max_workers(override: int | None = None) -> int:
    """Get the background worker count.

    Raises:
        ValueError: If the resolved count is below one.
    """
    workers = int(get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS, override))
    if workers < 1:
        raise ValueError(f"Max workers must be at least 1, got {workers}")
    return workers


def get_log_level(override: str | None = None) -> int:
    """Get the configured log level as a ``logging`` constant.

    Unknown level names fall back to INFO.
    """
    import logging

    name = str(get_environment(EnvVar.MERMAID_RENDER_LOG_LEVEL, override)).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_output_dir(override: Path | str | None = None) -> Path:
    """Get the CLI output directory.

    Resolution: override > MERMAID_RENDER_OUTPUT_DIR > current directory
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.MERMAID_RENDER_OUTPUT_DIR)
    if env_path:
        return env_path

    return Path.cwd()


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (render, logging, cli).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_render_timeout",
    "get_max_workers",
    "get_log_level",
    "get_output_dir",
    # Introspection
    "list_environment_variables",
]
