"""S3-compatible storage backend implementation.

Implements the StorageBackend protocol for AWS S3, MinIO, and other
S3-compatible services using aioboto3.
"""

from __future__ import annotations

import asyncio
from functools import partial
import inspect
import logging
from typing import TYPE_CHECKING, Any

import aioboto3
from boto3.s3.transfer import TransferConfig
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import ClientError

from artifact_cache.infra.logging import enable_transport_debug
from artifact_cache.infra.storage.duration import compute_expiration
from artifact_cache.infra.storage.exceptions import (
    StorageCopyError,
    StorageError,
    StorageExistsCheckError,
    StorageLifecycleRegistrationError,
    StorageNotConfiguredError,
    StorageRetrievalError,
    StorageUploadError,
    boto_error_code,
    error_metadata,
    is_not_found_error,
)
from artifact_cache.infra.storage.lifecycle import build_expiration_rule, merge_rules

if TYPE_CHECKING:
    from datetime import datetime
    from types import TracebackType

    from artifact_cache.core.settings.storage import StorageSettings

    from ..protocol import ByteSink, ByteSource

logger = logging.getLogger(__name__)


class S3Backend:
    """S3-compatible storage backend.

    Implements StorageBackend protocol for AWS S3, MinIO, and other
    S3-compatible services.

    The expiration instant is computed once, when the backend is created,
    and every object stored through this instance gets that same absolute
    expiration date.

    Attributes:
        settings: Storage configuration settings
        bucket: Target bucket for all operations
        acl: Canned ACL applied to uploaded objects
        encryption: Server-side encryption value, empty for none
        expires_at: Absolute expiration date for stored objects, or None

    Example:
        async with S3Backend(settings) as backend:
            await backend.put("artifact/1.tar", source)
            if await backend.exists("artifact/1.tar"):
                await backend.get("artifact/1.tar", sink)
    """

    def __init__(self, settings: StorageSettings) -> None:
        """Initialize S3 backend.

        Args:
            settings: Storage settings with S3 configuration

        Raises:
            StorageConfigurationError: If the TTL is not a valid positive duration
        """
        self.settings = settings
        self.bucket = settings.bucket
        self.acl = settings.acl
        self.encryption = settings.encryption
        self.expires_at: datetime | None = compute_expiration(settings.ttl)

        if not settings.has_credentials:
            logger.warning(
                "S3 access key and/or secret not provided, "
                "falling back to anonymous credentials",
                extra={"bucket": self.bucket, "endpoint": settings.endpoint},
            )

        logger.debug("S3 backend configured", extra={"config": settings.masked()})

        if settings.debug:
            enable_transport_debug()

        self._session = aioboto3.Session()
        self._client: Any = None
        self._client_context: Any = None
        # Serializes lifecycle read-modify-write cycles issued by this instance
        self._lifecycle_lock = asyncio.Lock()
        self._transfer_config = TransferConfig(
            multipart_threshold=settings.multipart_threshold,
            multipart_chunksize=settings.multipart_chunksize,
            max_concurrency=settings.max_concurrency,
        )

    @property
    def backend_name(self) -> str:
        """Backend name identifier."""
        return "s3"

    @property
    def is_ready(self) -> bool:
        """Check if backend is initialized and ready."""
        return self._client is not None

    # ========================================================================
    # Lifecycle Management
    # ========================================================================

    async def startup(self) -> None:
        """Initialize S3 client and connection pool."""
        if self._client is not None:
            logger.debug("S3 backend already initialized")
            return

        logger.info(
            "Initializing S3 backend",
            extra={
                "bucket": self.bucket,
                "endpoint": self.settings.endpoint,
                "region": self.settings.region,
                "expires_at": self.expires_at,
            },
        )

        try:
            self._client_context = self._session.client(
                "s3",
                **self.settings.get_boto3_config(),
                config=self._build_boto_config(),
            )
            self._client = await self._client_context.__aenter__()
        except Exception as e:
            self._client_context = None
            logger.exception("Failed to initialize S3 backend", extra={"error": str(e)})
            raise StorageError(
                f"Failed to initialize S3 backend: {e}",
                code="STORAGE_INITIALIZATION_ERROR",
            ) from e

        logger.info("S3 backend initialized successfully")

    async def shutdown(self) -> None:
        """Shutdown S3 client gracefully."""
        if self._client_context is None:
            logger.debug("S3 backend not initialized, nothing to shutdown")
            return

        try:
            await self._client_context.__aexit__(None, None, None)
        except Exception as e:
            logger.warning(f"Error closing S3 client: {e}")
        finally:
            self._client = None
            self._client_context = None

        logger.info("S3 backend shutdown complete")

    async def __aenter__(self) -> S3Backend:
        await self.startup()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()

    def _build_boto_config(self) -> Config:
        """Build the botocore client config (addressing, retries, signing)."""
        options: dict[str, Any] = {
            "s3": {"addressing_style": "path" if self.settings.path_style else "auto"},
            "retries": {
                "max_attempts": self.settings.max_retries,
                "mode": self.settings.retry_mode,
            },
            "connect_timeout": self.settings.connect_timeout,
            "read_timeout": self.settings.read_timeout,
        }
        if not self.settings.has_credentials:
            options["signature_version"] = UNSIGNED
        return Config(**options)

    def _ensure_client(self) -> Any:
        """Ensure client is initialized.

        Returns:
            Initialized S3 client

        Raises:
            StorageNotConfiguredError: If client not initialized
        """
        if self._client is None:
            msg = "S3 backend not initialized. Call startup() first."
            raise StorageNotConfiguredError(msg)
        return self._client

    # ========================================================================
    # Get
    # ========================================================================

    async def get(self, key: str, sink: ByteSink) -> None:
        """Stream an object into the caller's sink.

        The transfer runs in its own task. The caller waits on it through a
        shield, so cancelling the caller returns immediately while the
        transfer is cancelled in the background.

        Args:
            key: S3 object key
            sink: Destination with a (sync or async) ``write`` method

        Raises:
            StorageRetrievalError: If the object cannot be fetched
            StorageCopyError: If streaming into the sink fails
            asyncio.CancelledError: If the caller is cancelled first
        """
        client = self._ensure_client()
        transfer = asyncio.create_task(
            self._download(client, key, sink),
            name=f"s3-get:{key}",
        )

        try:
            await asyncio.shield(transfer)
        except asyncio.CancelledError:
            transfer.cancel()
            transfer.add_done_callback(partial(self._on_abandoned_download, key))
            logger.info(
                "Object download cancelled by caller",
                extra={"key": key, "bucket": self.bucket},
            )
            raise

    async def _download(self, client: Any, key: str, sink: ByteSink) -> None:
        try:
            response = await client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            logger.warning(
                "Failed to get object from S3",
                extra={"key": key, "bucket": self.bucket, "error": str(e)},
            )
            raise StorageRetrievalError(
                f"Failed to get {key}: {e}",
                metadata=error_metadata(e, "get", key=key, bucket=self.bucket),
            ) from e
        except Exception as e:
            logger.exception(
                "Unexpected error during S3 get", extra={"key": key, "error": str(e)}
            )
            raise StorageRetrievalError(
                f"Failed to get {key}: {e}",
                metadata=error_metadata(e, "get", key=key, bucket=self.bucket),
            ) from e

        body = response["Body"]
        size_bytes = 0
        try:
            async for chunk in body.iter_chunks(self.settings.download_chunk_size):
                written = sink.write(chunk)
                if inspect.isawaitable(written):
                    await written
                size_bytes += len(chunk)
        except Exception as e:
            logger.warning(
                "Failed to copy object content",
                extra={
                    "key": key,
                    "bucket": self.bucket,
                    "bytes_copied": size_bytes,
                    "error": str(e),
                },
            )
            raise StorageCopyError(
                f"Failed to copy {key}: {e}",
                metadata={
                    **error_metadata(e, "copy", key=key, bucket=self.bucket),
                    "bytes_copied": size_bytes,
                },
            ) from e
        finally:
            await self._release(body, key)

        logger.info(
            "Object downloaded from S3",
            extra={"key": key, "bucket": self.bucket, "size_bytes": size_bytes},
        )

    async def _release(self, body: Any, key: str) -> None:
        """Close a response body; failures are logged, never raised."""
        try:
            closed = body.close()
            if inspect.isawaitable(closed):
                await closed
        except Exception as e:
            logger.warning(
                "Failed to close S3 response body",
                extra={"key": key, "error": str(e)},
            )

    def _on_abandoned_download(self, key: str, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            logger.debug("Abandoned download stopped", extra={"key": key})
            return
        error = task.exception()
        if error is not None:
            logger.debug(
                "Abandoned download failed",
                extra={"key": key, "error": str(error)},
            )

    # ========================================================================
    # Put
    # ========================================================================

    async def put(self, key: str, source: ByteSource) -> None:
        """Upload a stream and register its expiration rule.

        Uses the managed multipart transfer, so sources of any size are
        streamed rather than buffered.

        Args:
            key: S3 object key
            source: Binary file-like object with sync or async ``read``

        Raises:
            StorageUploadError: If upload fails
            StorageLifecycleRegistrationError: If the object was stored but its
                expiration rule could not be registered
        """
        client = self._ensure_client()

        extra_args: dict[str, Any] = {}
        if self.acl:
            extra_args["ACL"] = self.acl
        if self.encryption:
            extra_args["ServerSideEncryption"] = self.encryption

        try:
            await client.upload_fileobj(
                Fileobj=source,
                Bucket=self.bucket,
                Key=key,
                ExtraArgs=extra_args or None,
                Config=self._transfer_config,
            )
        except Exception as e:
            logger.exception(
                "Failed to upload object to S3", extra={"key": key, "error": str(e)}
            )
            raise StorageUploadError(
                f"Failed to upload {key}: {e}",
                metadata=error_metadata(e, "put", key=key, bucket=self.bucket),
            ) from e

        logger.info(
            "Object uploaded to S3",
            extra={
                "key": key,
                "bucket": self.bucket,
                "acl": self.acl,
                "encryption": self.encryption or None,
            },
        )

        if self.expires_at is None:
            return

        await self._register_expiration(client, key, self.expires_at)

    async def _register_expiration(
        self, client: Any, key: str, expires_at: datetime
    ) -> None:
        """Add or overwrite the bucket lifecycle rule expiring ``key``.

        The bucket's lifecycle configuration is a single document, so the
        update is a read-modify-write. Concurrent writers in other processes
        can still race; the last write wins.
        """
        rule = build_expiration_rule(key, expires_at)

        async with self._lifecycle_lock:
            try:
                current = await self._lifecycle_rules(client)
                rules = merge_rules(current, rule)
                await client.put_bucket_lifecycle_configuration(
                    Bucket=self.bucket,
                    LifecycleConfiguration={"Rules": rules},
                )
            except Exception as e:
                logger.exception(
                    "Failed to register expiration rule",
                    extra={"key": key, "bucket": self.bucket, "error": str(e)},
                )
                raise StorageLifecycleRegistrationError(
                    f"Stored {key} but failed to register its expiration: {e}",
                    metadata={
                        **error_metadata(e, "lifecycle", key=key, bucket=self.bucket),
                        "expires_at": expires_at.isoformat(),
                    },
                ) from e

        logger.info(
            "Expiration rule registered",
            extra={
                "key": key,
                "bucket": self.bucket,
                "rule_id": rule["ID"],
                "expires_at": expires_at.isoformat(),
                "rule_count": len(rules),
            },
        )

    async def _lifecycle_rules(self, client: Any) -> list[dict[str, Any]]:
        try:
            response = await client.get_bucket_lifecycle_configuration(
                Bucket=self.bucket
            )
        except ClientError as e:
            if boto_error_code(e) == "NoSuchLifecycleConfiguration":
                return []
            raise
        return list(response.get("Rules", []))

    # ========================================================================
    # Exists
    # ========================================================================

    async def exists(self, key: str) -> bool:
        """Check if an object exists in S3.

        Some S3-compatible servers answer HEAD for a missing object with a
        success status and no ETag; that is reported as absent.

        Args:
            key: S3 object key

        Returns:
            True if object exists

        Raises:
            StorageExistsCheckError: If the probe fails other than with not-found
        """
        client = self._ensure_client()

        try:
            response = await client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_not_found_error(e):
                return False
            logger.warning(
                "Error checking object existence",
                extra={"key": key, "bucket": self.bucket, "error": str(e)},
            )
            raise StorageExistsCheckError(
                f"Failed to check {key}: {e}",
                metadata=error_metadata(e, "exists", key=key, bucket=self.bucket),
            ) from e
        except Exception as e:
            logger.exception(
                "Unexpected error checking object existence",
                extra={"key": key, "error": str(e)},
            )
            raise StorageExistsCheckError(
                f"Failed to check {key}: {e}",
                metadata=error_metadata(e, "exists", key=key, bucket=self.bucket),
            ) from e

        etag = str(response.get("ETag") or "").strip('"')
        if not etag:
            logger.debug(
                "HEAD succeeded without ETag, treating object as absent",
                extra={"key": key, "bucket": self.bucket},
            )
        return etag != ""
