"""CLI utilities for running async operations and formatting output."""

from artifact_cache.cli.utils.async_runner import coro
from artifact_cache.cli.utils.formatters import error, info, success, warning

__all__ = [
    "coro",
    "error",
    "info",
    "success",
    "warning",
]
