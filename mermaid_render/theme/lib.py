"""Theme configuration models and Mermaid init-block formatting.

A ThemeConfig maps ten named color roles to RGB values. The formatter turns
it into a single Mermaid ``%%{init: ...}%%`` directive that is prepended to
the diagram text so every rendering service draws with the same palette.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

_HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6})$")


def lighten_channel(value: int, factor: float) -> int:
    """Blend a single 0-255 channel toward white.

    ``min(255, value + (255 - value) * factor)`` rounded down.

    Args:
        value: Channel value (0-255).
        factor: Blend factor, 0.0 (unchanged) to 1.0 (white).

    Returns:
        Lightened channel value.

    Raises:
        ValueError: If value or factor is out of range.
    """
    if not 0 <= value <= 255:
        raise ValueError(f"Channel must be between 0 and 255, got {value}")
    if not 0.0 <= factor <= 1.0:
        raise ValueError(f"Lighten factor must be between 0.0 and 1.0, got {factor}")
    return min(255, int(value + (255 - value) * factor))


class RGBColor(BaseModel):
    """Immutable 24-bit RGB color.

    Accepts ``"#RRGGBB"`` strings, ``[r, g, b]`` sequences or mappings with
    ``r``/``g``/``b`` keys when validated.

    Example:
        >>> RGBColor.model_validate("#4472c4").hex
        '#4472C4'
    """

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Any:
        if isinstance(data, str):
            match = _HEX_PATTERN.match(data.strip())
            if not match:
                raise ValueError(f"Invalid hex color: {data!r}")
            digits = match.group(1)
            return {
                "r": int(digits[0:2], 16),
                "g": int(digits[2:4], 16),
                "b": int(digits[4:6], 16),
            }
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise ValueError(f"RGB sequence needs 3 values, got {len(data)}")
            return {"r": data[0], "g": data[1], "b": data[2]}
        return data

    @classmethod
    def from_hex(cls, value: str) -> "RGBColor":
        """Parse a ``#RRGGBB`` (or ``RRGGBB``) string."""
        return cls.model_validate(value)

    @property
    def hex(self) -> str:
        """Uppercase ``#RRGGBB`` form, no alpha."""
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

    def lighten(self, factor: float) -> "RGBColor":
        """Return this color blended toward white by ``factor``."""
        return RGBColor(
            r=lighten_channel(self.r, factor),
            g=lighten_channel(self.g, factor),
            b=lighten_channel(self.b, factor),
        )

    def __str__(self) -> str:
        return self.hex


def _rgb(r: int, g: int, b: int) -> RGBColor:
    return RGBColor(r=r, g=g, b=b)


class ThemeConfig(BaseModel):
    """Ten-role color configuration for a rendered diagram.

    Owned by the caller; the pipeline only reads it. Defaults reproduce the
    stock Office palette.

    Attributes:
        name: Optional display name (not part of the formatted output).
        primary: Node fill color.
        secondary: Secondary fill and cluster border color.
        tertiary: Tertiary fill color.
        quaternary: Fourth fill color (pie/fill type 3).
        primary_text: Main label color.
        secondary_text: Secondary label color.
        background: Canvas background.
        border: Node border color.
        line: Edge color.
        accent: Highlight fill color.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    primary: RGBColor = _rgb(68, 114, 196)
    secondary: RGBColor = _rgb(237, 125, 49)
    tertiary: RGBColor = _rgb(165, 165, 165)
    quaternary: RGBColor = _rgb(255, 192, 0)
    primary_text: RGBColor = _rgb(0, 0, 0)
    secondary_text: RGBColor = _rgb(68, 68, 68)
    background: RGBColor = _rgb(255, 255, 255)
    border: RGBColor = _rgb(68, 114, 196)
    line: RGBColor = _rgb(0, 0, 0)
    accent: RGBColor = _rgb(91, 155, 213)

    @classmethod
    def roles(cls) -> list[str]:
        """Names of the ten color roles, in declaration order."""
        return [name for name in cls.model_fields if name != "name"]

    def colors(self) -> dict[str, RGBColor]:
        """Mapping of role name to color."""
        return {role: getattr(self, role) for role in self.roles()}


def _theme_variables(config: ThemeConfig) -> list[tuple[str, RGBColor]]:
    return [
        ("primaryColor", config.primary),
        ("primaryTextColor", config.primary_text),
        ("primaryBorderColor", config.border),
        ("lineColor", config.line),
        ("secondaryColor", config.secondary),
        ("tertiaryColor", config.tertiary),
        ("background", config.background),
        ("mainBkg", config.background),
        ("secondaryBkg", config.background.lighten(0.1)),
        ("tertiaryBkg", config.background.lighten(0.2)),
        ("primaryLabelColor", config.primary_text),
        ("secondaryLabelColor", config.secondary_text),
        ("tertiaryLabelColor", config.secondary_text),
        ("nodeBkg", config.primary),
        ("nodeTextColor", config.primary_text),
        ("edgeLabelBackground", config.background),
        ("clusterBkg", config.secondary.lighten(0.8)),
        ("clusterBorder", config.secondary),
        ("fillType0", config.primary),
        ("fillType1", config.secondary),
        ("fillType2", config.tertiary),
        ("fillType3", config.quaternary),
        ("fillType4", config.accent),
        ("cScale0", config.primary),
        ("cScale1", config.secondary),
        ("cScale2", config.tertiary),
    ]


def format_theme_config(config: ThemeConfig) -> str:
    """Format a theme as a Mermaid init directive.

    Pure: the same ten role colors always produce the same block.

    Args:
        config: Theme to format.

    Returns:
        A single ``%%{init: ...}%%`` block without a trailing newline.
    """
    variables = ",\n".join(
        f"        '{key}': '{color.hex}'" for key, color in _theme_variables(config)
    )
    return (
        "%%{init: {\n"
        "    'theme': 'base',\n"
        "    'themeVariables': {\n"
        f"{variables}\n"
        "    }\n"
        "}}%%"
    )


def apply_theme(text: str, config: ThemeConfig | None) -> str:
    """Build the exact text submitted for rendering.

    Args:
        text: Raw diagram description.
        config: Optional theme. None leaves the text unchanged.

    Returns:
        ``text`` itself when no theme is given, otherwise the formatted
        block, a newline, then ``text``.
    """
    if config is None:
        return text
    return f"{format_theme_config(config)}\n{text}"


__all__ = [
    "RGBColor",
    "ThemeConfig",
    "apply_theme",
    "format_theme_config",
    "lighten_channel",
]
