"""Backend factory for creating storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from artifact_cache.core.settings.storage import StorageSettings

    from .protocol import StorageBackend


def create_storage_backend(settings: StorageSettings) -> StorageBackend:
    """Factory function to create the storage backend.

    Args:
        settings: Storage configuration settings

    Returns:
        Storage backend implementing StorageBackend protocol. Call
        ``startup()`` (or use it as an async context manager) before use.

    Raises:
        StorageConfigurationError: If settings are invalid (e.g. bad TTL)

    Example:
        settings = get_storage_settings()
        async with create_storage_backend(settings) as backend:
            await backend.put("artifact/1.tar", source)
    """
    from .s3.backend import S3Backend

    return S3Backend(settings)
