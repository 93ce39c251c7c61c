"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Testing:
    In tests, clear the cache to force reload:
    get_storage_settings.cache_clear()

    Or construct settings directly:
    settings = StorageSettings(bucket="test-bucket", ttl="1h")
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .storage import StorageSettings


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached object storage settings.

    Returns:
        Validated and frozen StorageSettings instance.
    """
    return StorageSettings()
