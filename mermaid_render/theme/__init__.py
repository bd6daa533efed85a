"""Theme configuration and Mermaid init-block formatting."""

from .lib import (
    RGBColor,
    ThemeConfig,
    apply_theme,
    format_theme_config,
    lighten_channel,
)
from .presets import DEFAULT_PRESET, get_preset, list_presets

__all__ = [
    "DEFAULT_PRESET",
    "RGBColor",
    "ThemeConfig",
    "apply_theme",
    "format_theme_config",
    "get_preset",
    "lighten_channel",
    "list_presets",
]
