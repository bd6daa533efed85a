"""Centralized configuration management for mermaid-render.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from mermaid_render.config import EnvVar, get_environment
    >>>
    >>> timeout = get_environment(EnvVar.MERMAID_RENDER_TIMEOUT)  # 30.0
    >>> workers = get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS, override=8)
    >>>
    >>> for var in list_environment_variables("render"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    render: Timeout and worker pool sizing for the rendering pipeline
    logging: Log level
    cli: Command-line defaults (output directory)
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_environment,
    get_environment_info,
    get_log_level,
    get_max_workers,
    get_output_dir,
    get_render_timeout,
    # Introspection
    list_environment_variables,
)

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
