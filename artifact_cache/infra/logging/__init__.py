"""Logging infrastructure.

Basic usage:
    from artifact_cache.infra.logging import setup_logging
    import logging

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Object uploaded", extra={"key": "artifact/1.tar"})
"""

from artifact_cache.infra.logging.config import (
    configure_logging,
    enable_transport_debug,
    setup_logging,
)
from artifact_cache.infra.logging.formatters import JSONFormatter

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "enable_transport_debug",
    "setup_logging",
]
