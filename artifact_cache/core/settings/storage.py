"""S3-compatible object storage configuration settings.

Environment variables use STORAGE_ prefix.
Example: STORAGE_ENDPOINT="http://localhost:9000"
         STORAGE_BUCKET="build-cache"
         STORAGE_TTL="24h"

Supports:
- AWS S3 (default, no endpoint needed)
- MinIO (set endpoint to MinIO server URL, usually with path_style=true)
- Any S3-compatible storage
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_ENCRYPTION = frozenset({"", "AES256", "aws:kms", "aws:kms:dsse"})


class StorageSettings(BaseSettings):
    """S3-compatible object storage settings for the artifact cache.

    Environment variables use STORAGE_ prefix.
    Example: STORAGE_ACL=bucket-owner-full-control
    """

    # ──────────────────────────────────────────────────────────────
    # S3 Connection Configuration
    # ──────────────────────────────────────────────────────────────

    endpoint: str | None = Field(
        default=None,
        description="S3-compatible endpoint URL (for MinIO). None for AWS S3.",
    )

    region: str = Field(
        default="us-east-1",
        description="AWS region (used for request signing)",
    )

    path_style: bool = Field(
        default=False,
        description="Force path-style addressing (bucket in path, not host)",
    )

    access_key: SecretStr | None = Field(
        default=None,
        description="S3 access key ID. Anonymous access when omitted.",
    )

    secret_key: SecretStr | None = Field(
        default=None,
        description="S3 secret access key. Anonymous access when omitted.",
    )

    bucket: str = Field(
        default="build-cache",
        min_length=3,
        max_length=63,
        description="Bucket holding cached artifacts",
    )

    # ──────────────────────────────────────────────────────────────
    # Object Policy
    # ──────────────────────────────────────────────────────────────

    acl: str = Field(
        default="private",
        description="Canned ACL applied to every uploaded object (empty to omit)",
    )

    encryption: str = Field(
        default="",
        description="Server-side encryption (AES256, aws:kms). Empty disables the header.",
    )

    ttl: str = Field(
        default="",
        description="Retention window such as '24h' or '90m'. Empty disables expiration.",
    )

    debug: bool = Field(
        default=False,
        description="Enable verbose transport-level logging",
    )

    # ──────────────────────────────────────────────────────────────
    # Transport Configuration
    # ──────────────────────────────────────────────────────────────

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum transport-level retry attempts (botocore)",
    )

    retry_mode: str = Field(
        default="standard",
        description="botocore retry mode: standard, adaptive, or legacy",
    )

    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Connection timeout in seconds",
    )

    read_timeout: float = Field(
        default=60.0,
        gt=0,
        le=3600,
        description="Socket read timeout in seconds",
    )

    # ──────────────────────────────────────────────────────────────
    # Transfer Configuration
    # ──────────────────────────────────────────────────────────────

    multipart_threshold: int = Field(
        default=8 * 1024 * 1024,
        ge=5 * 1024 * 1024,
        description="Size in bytes above which uploads switch to multipart",
    )

    multipart_chunksize: int = Field(
        default=8 * 1024 * 1024,
        ge=5 * 1024 * 1024,
        description="Part size in bytes for multipart uploads",
    )

    max_concurrency: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Concurrent part uploads per object",
    )

    download_chunk_size: int = Field(
        default=1024 * 1024,
        ge=4096,
        le=64 * 1024 * 1024,
        description="Chunk size in bytes when streaming downloads into a sink",
    )

    # ──────────────────────────────────────────────────────────────
    # Validators
    # ──────────────────────────────────────────────────────────────

    @field_validator("retry_mode")
    @classmethod
    def _validate_retry_mode(cls, value: str) -> str:
        """Validate retry_mode is one of the allowed values."""
        allowed_modes = {"standard", "adaptive", "legacy"}
        if value not in allowed_modes:
            raise ValueError(f"retry_mode must be one of {allowed_modes}, got {value}")
        return value

    @field_validator("encryption")
    @classmethod
    def _validate_encryption(cls, value: str) -> str:
        """Validate the server-side encryption algorithm name."""
        value = value.strip()
        if value not in ALLOWED_ENCRYPTION:
            allowed = ", ".join(sorted(v for v in ALLOWED_ENCRYPTION if v))
            raise ValueError(f"encryption must be empty or one of {allowed}, got {value}")
        return value

    @field_validator("ttl", "acl", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    # ──────────────────────────────────────────────────────────────
    # Computed Properties
    # ──────────────────────────────────────────────────────────────

    @computed_field  # type: ignore[prop-decorator]
    @property
    def use_ssl(self) -> bool:
        """Whether the transport uses TLS.

        A custom endpoint uses TLS only when its scheme is https. Without an
        endpoint the AWS default (TLS) applies.
        """
        if not self.endpoint:
            return True
        return self.endpoint.lower().startswith("https://")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_credentials(self) -> bool:
        """Whether a complete static credential pair is configured."""
        return bool(
            self.access_key
            and self.access_key.get_secret_value()
            and self.secret_key
            and self.secret_key.get_secret_value()
        )

    # ──────────────────────────────────────────────────────────────
    # Helper Methods
    # ──────────────────────────────────────────────────────────────

    def get_boto3_config(self) -> dict[str, Any]:
        """Get keyword arguments for creating an aioboto3 S3 client.

        Returns:
            Dictionary with region, endpoint, TLS flag and, for static auth,
            the credential pair. Anonymous signing is configured separately
            through the botocore ``Config``.
        """
        config: dict[str, Any] = {
            "region_name": self.region,
            "use_ssl": self.use_ssl,
        }

        if self.has_credentials:
            assert self.access_key is not None and self.secret_key is not None
            config["aws_access_key_id"] = self.access_key.get_secret_value()
            config["aws_secret_access_key"] = self.secret_key.get_secret_value()

        if self.endpoint:
            config["endpoint_url"] = self.endpoint

        return config

    def masked(self) -> dict[str, Any]:
        """Dump settings for logs and display with secrets hidden."""
        data = self.model_dump()
        for name in ("access_key", "secret_key"):
            if data.get(name) is not None:
                data[name] = "**********"
        return data

    # ──────────────────────────────────────────────────────────────
    # Model Configuration
    # ──────────────────────────────────────────────────────────────

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )
