"""Storage backend protocol.

This module defines:
- Protocol interface that cache storage backends implement
- Stream protocols for upload sources and download sinks
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

# ============================================================================
# Streams
# ============================================================================


@runtime_checkable
class ByteSink(Protocol):
    """Destination of a download.

    ``write`` may be a plain method (files, ``BytesIO``, ``sys.stdout.buffer``)
    or return an awaitable (async file wrappers); backends handle both.
    """

    def write(self, data: bytes, /) -> int | None | Awaitable[int | None]: ...


@runtime_checkable
class ByteSource(Protocol):
    """Source of an upload: a binary file-like object with sync or async ``read``."""

    def read(self, size: int = -1, /) -> bytes | Awaitable[bytes]: ...


# ============================================================================
# Storage Backend Protocol
# ============================================================================


class StorageBackend(Protocol):
    """Protocol interface for cache storage backends.

    This is the only interface the cache orchestrator uses. Uses structural
    typing (Protocol) rather than inheritance.

    Cancellation is asyncio-native: cancel the calling task or wrap the call in
    ``asyncio.timeout()``. Backends never retry; retry policy belongs to the
    caller.
    """

    @property
    def backend_name(self) -> str:
        """Name of the backend (e.g., 's3')."""
        ...

    @property
    def is_ready(self) -> bool:
        """Check if backend is initialized and ready for operations."""
        ...

    async def startup(self) -> None:
        """Initialize backend (create clients, connection pools, etc.)."""
        ...

    async def shutdown(self) -> None:
        """Gracefully shutdown backend (close connections, cleanup resources)."""
        ...

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    async def get(self, key: str, sink: ByteSink) -> None:
        """Stream the object stored at key into sink.

        Raises:
            StorageRetrievalError: If the object cannot be fetched
            StorageCopyError: If streaming into the sink fails
        """
        ...

    async def put(self, key: str, source: ByteSource) -> None:
        """Upload the full content of source to key.

        Raises:
            StorageUploadError: If the upload fails
            StorageLifecycleRegistrationError: If the expiration rule cannot be set
        """
        ...

    async def exists(self, key: str) -> bool:
        """Check whether an object is stored at key.

        Raises:
            StorageExistsCheckError: If the probe fails other than with not-found
        """
        ...
