"""Unit tests for logging configuration."""

from __future__ import annotations

from collections.abc import Iterator
import logging

import pytest

from artifact_cache.core.settings import LoggingSettings
from artifact_cache.infra.logging import config as logging_config
from artifact_cache.infra.logging import (
    JSONFormatter,
    configure_logging,
    enable_transport_debug,
    setup_logging,
)


@pytest.fixture
def restore_root_logger(monkeypatch) -> Iterator[logging.Logger]:
    """Restore root handlers and level changed by dictConfig."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(logging_config, "_LOGGING_INITIALIZED", False)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)


def _console_handler(root: logging.Logger) -> logging.Handler:
    return next(h for h in root.handlers if h.get_name() == "console")


class TestConfigureLogging:
    """Test configure_logging()."""

    def test_text_logging(self, restore_root_logger):
        """Test the default text formatter and level."""
        configure_logging(log_level="warning")

        handler = _console_handler(restore_root_logger)
        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(handler.formatter, JSONFormatter)

    def test_json_logging(self, restore_root_logger):
        """Test JSON formatter with the service field."""
        configure_logging(json_logs=True, service_name="ci-cache")

        formatter = _console_handler(restore_root_logger).formatter
        assert isinstance(formatter, JSONFormatter)
        assert formatter.static == {"service": "ci-cache"}


class TestSetupLogging:
    """Test setup_logging() initialization guard."""

    def test_uses_settings(self, restore_root_logger):
        """Test levels come from the given settings."""
        setup_logging(LoggingSettings(_env_file=None, level="ERROR"))

        assert restore_root_logger.level == logging.ERROR
        assert logging_config._LOGGING_INITIALIZED is True

    def test_runs_once_unless_forced(self, restore_root_logger):
        """Test repeated calls are ignored without force."""
        setup_logging(LoggingSettings(_env_file=None, level="ERROR"))
        setup_logging(LoggingSettings(_env_file=None, level="DEBUG"))
        assert restore_root_logger.level == logging.ERROR

        setup_logging(LoggingSettings(_env_file=None, level="DEBUG"), force=True)
        assert restore_root_logger.level == logging.DEBUG

    def test_overrides_take_precedence(self, restore_root_logger):
        """Test explicit keyword overrides win over settings."""
        setup_logging(
            LoggingSettings(_env_file=None, level="ERROR"), log_level="DEBUG"
        )

        assert restore_root_logger.level == logging.DEBUG


def test_enable_transport_debug(restore_transport_loggers):
    """Test every transport logger is raised to DEBUG."""
    for name in logging_config.TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    enable_transport_debug()

    for name in logging_config.TRANSPORT_LOGGERS:
        assert logging.getLogger(name).level == logging.DEBUG
