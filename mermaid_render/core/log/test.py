"""Tests for core logging module."""

import logging
from io import StringIO

import pytest

from .lib import LOG_FORMAT, get_logger, setup_logging


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_get_logger(self) -> None:
        """Verify logger instance creation."""
        logger = get_logger("test")
        assert logger.name == "test"
        assert isinstance(logger, logging.Logger)

    @pytest.mark.unit
    def test_get_logger_default_name(self) -> None:
        """Verify default logger name."""
        logger = get_logger()
        assert logger.name == "mermaid-render"

    @pytest.mark.unit
    def test_setup_logging_uses_format(self, monkeypatch) -> None:
        """setup_logging forwards level, format and stream to basicConfig."""
        captured = {}

        def fake_basic_config(**kwargs):
            captured.update(kwargs)

        monkeypatch.setattr(logging, "basicConfig", fake_basic_config)
        stream = StringIO()
        setup_logging(level=logging.DEBUG, stream=stream)

        assert captured == {
            "level": logging.DEBUG,
            "format": LOG_FORMAT,
            "stream": stream,
        }

    @pytest.mark.unit
    def test_setup_logging_reads_env_level(self, monkeypatch) -> None:
        """Level defaults to the configured MERMAID_RENDER_LOG_LEVEL."""
        captured = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: captured.update(kw))
        monkeypatch.setenv("MERMAID_RENDER_LOG_LEVEL", "WARNING")

        setup_logging(stream=StringIO())
        assert captured["level"] == logging.WARNING
