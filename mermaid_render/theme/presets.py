"""Built-in color palettes.

Read-only presets shipped with the add-in. User-defined palettes and their
persistence belong to the caller.
"""

from .lib import RGBColor, ThemeConfig


def _rgb(r: int, g: int, b: int) -> RGBColor:
    return RGBColor(r=r, g=g, b=b)


_PRESETS: dict[str, ThemeConfig] = {
    "Corporate Blue": ThemeConfig(
        name="Corporate Blue",
        primary=_rgb(68, 114, 196),
        secondary=_rgb(91, 155, 213),
        tertiary=_rgb(165, 165, 165),
        quaternary=_rgb(112, 173, 71),
        primary_text=_rgb(0, 0, 0),
        secondary_text=_rgb(68, 68, 68),
        background=_rgb(255, 255, 255),
        border=_rgb(68, 114, 196),
        line=_rgb(68, 68, 68),
        accent=_rgb(237, 125, 49),
    ),
    "Vibrant": ThemeConfig(
        name="Vibrant",
        primary=_rgb(255, 87, 51),
        secondary=_rgb(25, 181, 254),
        tertiary=_rgb(255, 206, 84),
        quaternary=_rgb(129, 199, 132),
        primary_text=_rgb(33, 33, 33),
        secondary_text=_rgb(117, 117, 117),
        background=_rgb(255, 255, 255),
        border=_rgb(255, 87, 51),
        line=_rgb(66, 66, 66),
        accent=_rgb(156, 39, 176),
    ),
    "Dark Professional": ThemeConfig(
        name="Dark Professional",
        primary=_rgb(52, 73, 94),
        secondary=_rgb(149, 165, 166),
        tertiary=_rgb(52, 152, 219),
        quaternary=_rgb(39, 174, 96),
        primary_text=_rgb(255, 255, 255),
        secondary_text=_rgb(189, 195, 199),
        background=_rgb(44, 62, 80),
        border=_rgb(149, 165, 166),
        line=_rgb(189, 195, 199),
        accent=_rgb(231, 76, 60),
    ),
}

DEFAULT_PRESET = "Corporate Blue"


def list_presets() -> list[str]:
    """Names of the built-in palettes."""
    return list(_PRESETS)


def get_preset(name: str) -> ThemeConfig:
    """Look up a built-in palette by name (case-insensitive).

    Raises:
        KeyError: If no preset has that name.
    """
    for preset_name, preset in _PRESETS.items():
        if preset_name.lower() == name.strip().lower():
            return preset
    raise KeyError(f"Unknown preset: {name!r}. Available: {', '.join(_PRESETS)}")


__all__ = ["DEFAULT_PRESET", "get_preset", "list_presets"]
