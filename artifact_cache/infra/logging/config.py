"""Logging configuration setup.

Uses logging.config.dictConfig with a single stderr handler on the root
logger; application loggers propagate up. stdout stays free for payloads
(``artifact-cache get`` streams object content there).
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

# Loggers of the S3 transport, raised to DEBUG by enable_transport_debug()
TRANSPORT_LOGGERS = ("botocore", "aiobotocore", "boto3", "aioboto3", "s3transfer")

if TYPE_CHECKING:
    from artifact_cache.core.settings.logs import LoggingSettings


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from artifact_cache.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = settings_obj.to_logging_kwargs()
    if configure_kwargs:
        log_config = {**log_config, **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = "artifact-cache",
    capture_warnings: bool = True,
) -> None:
    """Configure the root logger with dictConfig.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Enable JSONL (JSON Lines) structured logging.
        service_name: Static ``service`` field added to JSON records.
        capture_warnings: Forward Python warnings to logging system.
    """
    if capture_warnings:
        logging.captureWarnings(True)

    if json_logs:
        formatter: dict[str, Any] = {
            "()": "artifact_cache.infra.logging.formatters.JSONFormatter",
            "fmt_keys": {"level": "levelname", "logger": "name", "message": "message"},
            "static": {"service": service_name},
        }
    else:
        formatter = {
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "default",
                },
            },
            "root": {
                "level": log_level.upper(),
                "handlers": ["console"],
            },
        }
    )


def enable_transport_debug() -> None:
    """Turn on verbose request/response logging of the S3 transport."""
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG)
    logger.debug("S3 transport debug logging enabled")
