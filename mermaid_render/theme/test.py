"""Tests for theme formatting and presets."""

import re

import pytest
from pydantic import ValidationError

from .lib import (
    RGBColor,
    ThemeConfig,
    apply_theme,
    format_theme_config,
    lighten_channel,
)
from .presets import DEFAULT_PRESET, get_preset, list_presets

HEX_COLOR = re.compile(r"#[0-9A-F]{6}\b")


class TestLightenChannel:
    """Tests for the per-channel lightening formula."""

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0, 1, 68, 128, 254, 255])
    def test_factor_zero_is_identity(self, value):
        """Factor 0 leaves the channel unchanged."""
        assert lighten_channel(value, 0.0) == value

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0, 1, 68, 128, 254, 255])
    def test_factor_one_is_white(self, value):
        """Factor 1 always yields 255."""
        assert lighten_channel(value, 1.0) == 255

    @pytest.mark.unit
    def test_rounds_down(self):
        """Fractional results are truncated."""
        # 49 + 206 * 0.8 = 213.8
        assert lighten_channel(49, 0.8) == 213
        # 80 + 175 * 0.1 = 97.5
        assert lighten_channel(80, 0.1) == 97

    @pytest.mark.unit
    def test_rejects_bad_factor(self):
        """Factors outside [0, 1] are rejected."""
        with pytest.raises(ValueError, match="Lighten factor"):
            lighten_channel(10, 1.5)

    @pytest.mark.unit
    def test_rejects_bad_channel(self):
        """Channels outside [0, 255] are rejected."""
        with pytest.raises(ValueError, match="Channel"):
            lighten_channel(300, 0.5)


class TestRGBColor:
    """Tests for RGBColor parsing and formatting."""

    @pytest.mark.unit
    def test_hex_is_uppercase(self):
        """Hex output is #RRGGBB uppercase."""
        assert RGBColor(r=10, g=171, b=255).hex == "#0AABFF"

    @pytest.mark.unit
    def test_from_hex(self):
        """Parses hex strings with or without a leading #."""
        assert RGBColor.from_hex("#4472c4") == RGBColor(r=68, g=114, b=196)
        assert RGBColor.from_hex("4472C4") == RGBColor(r=68, g=114, b=196)

    @pytest.mark.unit
    def test_from_sequence(self):
        """Accepts an [r, g, b] triple."""
        assert RGBColor.model_validate([1, 2, 3]) == RGBColor(r=1, g=2, b=3)

    @pytest.mark.unit
    def test_invalid_hex(self):
        """Malformed hex strings fail validation."""
        with pytest.raises(ValidationError):
            RGBColor.from_hex("#12345")

    @pytest.mark.unit
    def test_out_of_range(self):
        """Channel values above 255 fail validation."""
        with pytest.raises(ValidationError):
            RGBColor(r=256, g=0, b=0)

    @pytest.mark.unit
    def test_lighten(self):
        """Lightening applies per channel."""
        assert RGBColor(r=237, g=125, b=49).lighten(0.8).hex == "#FBE5D5"

    @pytest.mark.unit
    def test_frozen(self):
        """Colors are immutable."""
        color = RGBColor(r=1, g=2, b=3)
        with pytest.raises(ValidationError):
            color.r = 5


class TestThemeConfig:
    """Tests for ThemeConfig model."""

    @pytest.mark.unit
    def test_ten_roles(self):
        """Exactly ten color roles are defined."""
        assert ThemeConfig.roles() == [
            "primary",
            "secondary",
            "tertiary",
            "quaternary",
            "primary_text",
            "secondary_text",
            "background",
            "border",
            "line",
            "accent",
        ]

    @pytest.mark.unit
    def test_load_from_json(self):
        """Theme loads from JSON with hex strings."""
        theme = ThemeConfig.model_validate_json(
            '{"name": "Mine", "primary": "#112233", "background": [0, 0, 0]}'
        )
        assert theme.primary.hex == "#112233"
        assert theme.background.hex == "#000000"
        assert theme.name == "Mine"

    @pytest.mark.unit
    def test_frozen(self):
        """Themes cannot be mutated."""
        theme = ThemeConfig()
        with pytest.raises(ValidationError):
            theme.primary = RGBColor(r=0, g=0, b=0)


class TestFormatThemeConfig:
    """Tests for the Mermaid init block formatter."""

    @pytest.mark.unit
    def test_single_init_block(self):
        """Output is one %%{init}%% directive."""
        block = format_theme_config(ThemeConfig())
        assert block.startswith("%%{init:")
        assert block.endswith("}%%")
        assert block.count("%%{init:") == 1
        assert "'theme': 'base'" in block

    @pytest.mark.unit
    def test_contains_all_role_colors(self):
        """Every role color appears as #RRGGBB."""
        theme = get_preset("Vibrant")
        found = set(HEX_COLOR.findall(format_theme_config(theme)))
        for color in theme.colors().values():
            assert color.hex in found

    @pytest.mark.unit
    def test_derived_tones(self):
        """Background and secondary derived tones use fixed blend factors."""
        block = format_theme_config(get_preset("Dark Professional"))
        assert "'secondaryBkg': '#415161'" in block
        assert "'tertiaryBkg': '#566473'" in block
        # 149,165,166 lightened by 0.8
        assert "'clusterBkg': '#E9EDED'" in block

    @pytest.mark.unit
    def test_deterministic(self):
        """Same colors always give the same block."""
        a = ThemeConfig(primary=RGBColor(r=1, g=2, b=3))
        b = ThemeConfig(primary=RGBColor(r=1, g=2, b=3), name="different")
        assert format_theme_config(a) == format_theme_config(b)

    @pytest.mark.unit
    def test_no_lowercase_hex(self):
        """Colors are never emitted in lowercase."""
        block = format_theme_config(get_preset("Vibrant"))
        colors = re.findall(r"#[0-9a-fA-F]{6}", block)
        assert colors
        assert all(color == color.upper() for color in colors)


class TestApplyTheme:
    """Tests for render key construction."""

    @pytest.mark.unit
    def test_no_theme_returns_text_unchanged(self):
        """Without a theme the text is returned as-is."""
        text = "graph TD\n  A-->B"
        assert apply_theme(text, None) is text

    @pytest.mark.unit
    def test_theme_prefix_and_newline(self):
        """The formatted block precedes the text, separated by a newline."""
        theme = ThemeConfig()
        text = "graph TD\n  A-->B"
        key = apply_theme(text, theme)
        assert key == format_theme_config(theme) + "\n" + text
        assert key.endswith(text)


class TestPresets:
    """Tests for built-in palettes."""

    @pytest.mark.unit
    def test_list(self):
        """Three built-in palettes are available."""
        assert list_presets() == ["Corporate Blue", "Vibrant", "Dark Professional"]
        assert DEFAULT_PRESET in list_presets()

    @pytest.mark.unit
    def test_case_insensitive_lookup(self):
        """Lookup ignores case and surrounding whitespace."""
        assert get_preset(" vibrant ").name == "Vibrant"

    @pytest.mark.unit
    def test_unknown_preset(self):
        """Unknown names raise KeyError listing alternatives."""
        with pytest.raises(KeyError, match="Corporate Blue"):
            get_preset("Neon")
