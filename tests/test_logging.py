"""Tests for structured logging configuration."""

import pytest
import structlog

from mozza_ledger.config import Settings, configure_logging


@pytest.fixture(autouse=True)
def restore_structlog():
    yield
    structlog.reset_defaults()


@pytest.mark.parametrize(
    "log_format, renderer",
    [("json", structlog.processors.JSONRenderer), ("console", structlog.dev.ConsoleRenderer)],
)
def test_renderer_follows_log_format(monkeypatch, log_format, renderer):
    """Test that LOG_FORMAT picks the final renderer."""
    monkeypatch.setenv("LOG_FORMAT", log_format)

    configure_logging(Settings(_env_file=None))

    assert isinstance(structlog.get_config()["processors"][-1], renderer)


def test_loggers_wrap_stdlib_logging(monkeypatch):
    """Test that events flow through the stdlib logger factory."""
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    configure_logging(Settings(_env_file=None), verbose=True)

    config = structlog.get_config()
    assert config["wrapper_class"] is structlog.stdlib.BoundLogger
    assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)
