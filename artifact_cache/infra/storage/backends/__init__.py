"""Storage backends package.

Provides protocol-based abstraction for cache storage backends.
"""

from .factory import create_storage_backend
from .protocol import ByteSink, ByteSource, StorageBackend

__all__ = [
    "ByteSink",
    "ByteSource",
    "StorageBackend",
    "create_storage_backend",
]
