"""Object storage for cached build artifacts.

Example:
    ```python
    from artifact_cache.core.settings import get_storage_settings
    from artifact_cache.infra.storage import create_storage_backend

    async with create_storage_backend(get_storage_settings()) as backend:
        with open("cache.tar", "rb") as source:
            await backend.put("artifact/1.tar", source)
    ```
"""

from .backends import ByteSink, ByteSource, StorageBackend, create_storage_backend
from .duration import compute_expiration, parse_duration
from .exceptions import (
    StorageConfigurationError,
    StorageCopyError,
    StorageError,
    StorageExistsCheckError,
    StorageLifecycleRegistrationError,
    StorageNotConfiguredError,
    StorageRetrievalError,
    StorageUploadError,
)

__all__ = [
    "ByteSink",
    "ByteSource",
    "StorageBackend",
    "StorageConfigurationError",
    "StorageCopyError",
    "StorageError",
    "StorageExistsCheckError",
    "StorageLifecycleRegistrationError",
    "StorageNotConfiguredError",
    "StorageRetrievalError",
    "StorageUploadError",
    "compute_expiration",
    "create_storage_backend",
    "parse_duration",
]
