"""Storage-specific exceptions for S3/MinIO operations.

Every exception raised by a storage backend derives from ``StorageError`` and
chains the transport failure that caused it (``raise ... from exc``), so the
original botocore error stays available through ``__cause__``.

Example:
    ```python
    from artifact_cache.infra.storage.exceptions import (
        StorageRetrievalError,
        StorageError,
    )

    try:
        await backend.get(key, sink)
    except StorageRetrievalError as e:
        logger.warning(f"Cache miss: {e.detail}", extra=e.extra)
    ```
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError

from artifact_cache.core.exceptions import CacheError

# Error codes S3 (and S3-compatible servers) use for a missing object.
# HEAD responses carry no body, so botocore reports the bare status code.
NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


class StorageError(CacheError):
    """Base exception for all storage-related errors.

    Attributes:
        code: Error code identifier for programmatic error handling.
        message: Human-readable error message.
        detail: Same as message (inherited).
        extra: Additional context (operation, key, bucket, AWS error data).

    Example:
        ```python
        raise StorageError(
            message="Failed to connect to storage backend",
            code="STORAGE_CONNECTION_ERROR",
            metadata={"endpoint": "http://localhost:9000"}
        )
        ```
    """

    def __init__(
        self,
        message: str,
        code: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize storage error.

        Args:
            message: Human-readable error message.
            code: Error code for programmatic handling.
            metadata: Additional error context.
        """
        self.code = code
        self.message = message
        super().__init__(
            detail=message,
            type=code.lower().replace("_", "-"),
            extra=metadata or {},
        )


class StorageConfigurationError(StorageError):
    """Raised when backend configuration is invalid (e.g. an unparsable TTL).

    Fatal at construction time: no backend is produced.
    """

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_CONFIGURATION_ERROR",
            metadata=metadata,
        )


class StorageNotConfiguredError(StorageError):
    """Raised when an operation runs on a backend whose client is not started."""

    def __init__(
        self,
        message: str = "Storage backend is not initialized",
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_NOT_CONFIGURED",
            metadata=metadata,
        )


class StorageRetrievalError(StorageError):
    """Raised when fetching an object from the store fails.

    Covers missing objects as well as auth, network, and server failures.
    Callers own any retry policy.
    """

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_RETRIEVAL_ERROR",
            metadata=metadata,
        )


class StorageCopyError(StorageError):
    """Raised when streaming a fetched object into the caller's sink fails.

    Typical causes are a failing sink write or a truncated response body.
    """

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_COPY_ERROR",
            metadata=metadata,
        )


class StorageUploadError(StorageError):
    """Raised when uploading an object fails."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_UPLOAD_ERROR",
            metadata=metadata,
        )


class StorageLifecycleRegistrationError(StorageError):
    """Raised when the expiration rule for an uploaded object cannot be registered.

    The object itself was stored and is not rolled back: it is present but
    may never expire. Compensating action is up to the caller.
    """

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_LIFECYCLE_ERROR",
            metadata=metadata,
        )


class StorageExistsCheckError(StorageError):
    """Raised when an existence probe fails for a reason other than not-found."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_EXISTS_CHECK_ERROR",
            metadata=metadata,
        )


def boto_error_code(error: BaseException) -> str:
    """Return the S3 error code carried by a botocore ClientError, or ''."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


def is_not_found_error(error: BaseException) -> bool:
    """Check whether a transport failure means "no such key"."""
    return boto_error_code(error) in NOT_FOUND_CODES


def error_metadata(
    error: BaseException,
    operation: str,
    key: str | None = None,
    bucket: str | None = None,
) -> dict[str, Any]:
    """Build error metadata describing a failed storage call.

    Args:
        error: The exception raised by the transport or the sink.
        operation: The storage operation being performed (e.g. "get", "put").
        key: Object key being operated on.
        bucket: Bucket being operated on.

    Returns:
        Metadata dict; botocore ClientErrors contribute their AWS error code,
        message and request id.
    """
    metadata: dict[str, Any] = {
        "operation": operation,
        "error": str(error),
        "error_type": type(error).__name__,
    }

    if key is not None:
        metadata["key"] = key
    if bucket is not None:
        metadata["bucket"] = bucket

    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        metadata["aws_error_code"] = err.get("Code", "Unknown")
        metadata["aws_error_message"] = err.get("Message", str(error))
        metadata["request_id"] = error.response.get("ResponseMetadata", {}).get(
            "RequestId"
        )

    return metadata
