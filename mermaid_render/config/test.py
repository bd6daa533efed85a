"""Tests for configuration management."""

import logging
from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    _convert_value,
    get_environment,
    get_environment_info,
    get_log_level,
    get_max_workers,
    get_output_dir,
    get_render_timeout,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("MERMAID_RENDER_TIMEOUT", raising=False)
        result = get_environment(EnvVar.MERMAID_RENDER_TIMEOUT)
        assert result == 30.0

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("MERMAID_RENDER_MAX_WORKERS", "16")
        result = get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS, override=2)
        assert result == 2

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("MERMAID_RENDER_MAX_WORKERS", "12")
        result = get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS)
        assert result == 12
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float type conversion from string."""
        monkeypatch.setenv("MERMAID_RENDER_TIMEOUT", "2.5")
        result = get_environment(EnvVar.MERMAID_RENDER_TIMEOUT)
        assert result == 2.5
        assert isinstance(result, float)

    @pytest.mark.unit
    def test_invalid_float_returns_default(self, monkeypatch):
        """Invalid float value returns default."""
        monkeypatch.setenv("MERMAID_RENDER_TIMEOUT", "soon")
        result = get_environment(EnvVar.MERMAID_RENDER_TIMEOUT)
        assert result == 30.0

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("MERMAID_RENDER_MAX_WORKERS", "many")
        result = get_environment(EnvVar.MERMAID_RENDER_MAX_WORKERS)
        assert result == 4

    @pytest.mark.unit
    def test_path_default_is_none(self, monkeypatch):
        """Path variables default to None when not set."""
        monkeypatch.delenv("MERMAID_RENDER_OUTPUT_DIR", raising=False)
        assert get_environment(EnvVar.MERMAID_RENDER_OUTPUT_DIR) is None


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.MERMAID_RENDER_TIMEOUT)
        assert isinstance(info, EnvConfig)
        assert info.name == "MERMAID_RENDER_TIMEOUT"
        assert info.default == 30.0
        assert info.var_type is float
        assert info.category == "render"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.MERMAID_RENDER_MAX_WORKERS)
        assert "worker" in info.description.lower()

    @pytest.mark.unit
    def test_types_are_convertible(self):
        """Every variable uses a type the converter handles."""
        for var in EnvVar:
            assert get_environment_info(var).var_type in (str, int, float, Path)

    @pytest.mark.unit
    def test_unknown_type_passes_raw_value(self):
        """Values of types without a converter come back as the raw string."""
        assert _convert_value("yes", bool, None) == "yes"


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        result = list_environment_variables()
        assert len(result) == len(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        render_vars = list_environment_variables("render")
        assert EnvVar.MERMAID_RENDER_TIMEOUT in render_vars
        assert EnvVar.MERMAID_RENDER_MAX_WORKERS in render_vars
        assert EnvVar.MERMAID_RENDER_LOG_LEVEL not in render_vars

    @pytest.mark.unit
    def test_no_endpoint_variables(self):
        """Service endpoints are not exposed as configuration."""
        names = [var.value.name for var in EnvVar]
        assert not any("URL" in name for name in names)


# =============================================================================
# Tests for convenience accessors
# =============================================================================


class TestGetRenderTimeout:
    """Tests for render timeout resolution."""

    @pytest.mark.unit
    def test_default(self, monkeypatch):
        """Reference timeout is 30 seconds."""
        monkeypatch.delenv("MERMAID_RENDER_TIMEOUT", raising=False)
        assert get_render_timeout() == 30.0

    @pytest.mark.unit
    def test_override(self):
        """Override is returned as float."""
        assert get_render_timeout(5) == 5.0

    @pytest.mark.unit
    def test_rejects_non_positive(self):
        """Zero timeout is rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            get_render_timeout(0.0)


class TestGetMaxWorkers:
    """Tests for worker count resolution."""

    @pytest.mark.unit
    def test_env_value(self, monkeypatch):
        """Environment value is used."""
        monkeypatch.setenv("MERMAID_RENDER_MAX_WORKERS", "2")
        assert get_max_workers() == 2

    @pytest.mark.unit
    def test_rejects_zero(self):
        """Zero workers is rejected."""
        with pytest.raises(ValueError, match="at least 1"):
            get_max_workers(0)


class TestGetLogLevel:
    """Tests for log level resolution."""

    @pytest.mark.unit
    def test_named_level(self, monkeypatch):
        """Level names map to logging constants."""
        monkeypatch.setenv("MERMAID_RENDER_LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    @pytest.mark.unit
    def test_unknown_level_falls_back(self):
        """Unknown names fall back to INFO."""
        assert get_log_level("chatty") == logging.INFO


class TestGetOutputDir:
    """Tests for CLI output directory resolution."""

    @pytest.mark.unit
    def test_override_takes_priority(self, tmp_path, monkeypatch):
        """Override beats environment."""
        monkeypatch.setenv("MERMAID_RENDER_OUTPUT_DIR", str(tmp_path / "env"))
        assert get_output_dir(str(tmp_path / "cli")) == tmp_path / "cli"

    @pytest.mark.unit
    def test_env_var_used(self, tmp_path, monkeypatch):
        """Environment variable used when no override."""
        monkeypatch.setenv("MERMAID_RENDER_OUTPUT_DIR", str(tmp_path))
        assert get_output_dir() == tmp_path

    @pytest.mark.unit
    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        """Falls back to the working directory."""
        monkeypatch.delenv("MERMAID_RENDER_OUTPUT_DIR", raising=False)
        monkeypatch.chdir(tmp_path)
        assert get_output_dir() == tmp_path
