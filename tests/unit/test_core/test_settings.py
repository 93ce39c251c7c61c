"""Unit tests for Pydantic Settings v2 models and loaders."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from artifact_cache.core.settings import (
    LoggingSettings,
    StorageSettings,
    get_logging_settings,
    get_storage_settings,
)


@pytest.mark.unit
class TestStorageSettings:
    """Test suite for StorageSettings."""

    def test_defaults(self):
        """Test StorageSettings default values."""
        settings = StorageSettings(_env_file=None)

        assert settings.endpoint is None
        assert settings.region == "us-east-1"
        assert settings.path_style is False
        assert settings.bucket == "build-cache"
        assert settings.acl == "private"
        assert settings.encryption == ""
        assert settings.ttl == ""
        assert settings.debug is False
        assert settings.has_credentials is False
        assert settings.use_ssl is True

    def test_loads_from_environment(self, monkeypatch):
        """Test STORAGE_ prefixed environment variables."""
        monkeypatch.setenv("STORAGE_ENDPOINT", "http://minio:9000")
        monkeypatch.setenv("STORAGE_BUCKET", "ci-cache")
        monkeypatch.setenv("STORAGE_PATH_STYLE", "true")
        monkeypatch.setenv("STORAGE_TTL", "24h")
        monkeypatch.setenv("STORAGE_ACCESS_KEY", "minioadmin")
        monkeypatch.setenv("STORAGE_SECRET_KEY", "minioadmin")

        settings = StorageSettings(_env_file=None)

        assert settings.endpoint == "http://minio:9000"
        assert settings.bucket == "ci-cache"
        assert settings.path_style is True
        assert settings.ttl == "24h"
        assert settings.has_credentials is True

    def test_empty_environment_values_use_defaults(self, monkeypatch):
        """Test that empty variables do not override defaults."""
        monkeypatch.setenv("STORAGE_BUCKET", "")

        assert StorageSettings(_env_file=None).bucket == "build-cache"

    def test_frozen(self):
        """Test that StorageSettings instances are immutable."""
        settings = StorageSettings(_env_file=None)

        with pytest.raises(ValidationError):
            settings.ttl = "1h"

    @pytest.mark.parametrize(
        ("endpoint", "use_ssl"),
        [
            (None, True),
            ("https://s3.example.com", True),
            ("HTTPS://s3.example.com", True),
            ("http://localhost:9000", False),
        ],
    )
    def test_use_ssl_follows_endpoint_scheme(self, endpoint, use_ssl):
        """Test TLS is derived from the endpoint scheme."""
        settings = StorageSettings(_env_file=None, endpoint=endpoint)

        assert settings.use_ssl is use_ssl
        assert settings.get_boto3_config()["use_ssl"] is use_ssl

    def test_has_credentials_requires_both_halves(self):
        """Test partial or empty credentials do not count."""
        assert not StorageSettings(_env_file=None, access_key="key").has_credentials
        assert not StorageSettings(_env_file=None, secret_key="secret").has_credentials
        assert not StorageSettings(
            _env_file=None, access_key="", secret_key="secret"
        ).has_credentials
        assert StorageSettings(
            _env_file=None, access_key="key", secret_key="secret"
        ).has_credentials

    def test_get_boto3_config_with_credentials(self):
        """Test client kwargs for static credentials and a custom endpoint."""
        settings = StorageSettings(
            _env_file=None,
            endpoint="http://localhost:9000",
            region="eu-west-1",
            access_key="key",
            secret_key="secret",
        )

        assert settings.get_boto3_config() == {
            "region_name": "eu-west-1",
            "use_ssl": False,
            "aws_access_key_id": "key",
            "aws_secret_access_key": "secret",
            "endpoint_url": "http://localhost:9000",
        }

    def test_get_boto3_config_anonymous(self):
        """Test client kwargs omit credentials and endpoint when unset."""
        assert StorageSettings(_env_file=None).get_boto3_config() == {
            "region_name": "us-east-1",
            "use_ssl": True,
        }

    def test_masked_hides_secrets(self):
        """Test secrets never appear in the display dump."""
        settings = StorageSettings(
            _env_file=None, access_key="AKIAEXAMPLE", secret_key="topsecret"
        )

        data = settings.masked()

        assert data["access_key"] == "**********"
        assert data["secret_key"] == "**********"
        assert "topsecret" not in str(data)
        assert data["bucket"] == "build-cache"

    def test_ttl_and_acl_are_stripped(self):
        """Test surrounding whitespace is ignored."""
        settings = StorageSettings(_env_file=None, ttl=" 24h ", acl=" private ")

        assert settings.ttl == "24h"
        assert settings.acl == "private"

    @pytest.mark.parametrize("encryption", ["", "AES256", "aws:kms", "aws:kms:dsse"])
    def test_valid_encryption(self, encryption):
        """Test accepted server-side encryption values."""
        settings = StorageSettings(_env_file=None, encryption=encryption)

        assert settings.encryption == encryption

    def test_invalid_encryption(self):
        """Test unknown encryption algorithms are rejected."""
        with pytest.raises(ValidationError, match="encryption"):
            StorageSettings(_env_file=None, encryption="ROT13")

    def test_invalid_retry_mode(self):
        """Test unknown retry modes are rejected."""
        with pytest.raises(ValidationError, match="retry_mode"):
            StorageSettings(_env_file=None, retry_mode="aggressive")

    @pytest.mark.parametrize("bucket", ["ab", "x" * 64])
    def test_bucket_length(self, bucket):
        """Test bucket names outside S3 length limits."""
        with pytest.raises(ValidationError):
            StorageSettings(_env_file=None, bucket=bucket)

    def test_multipart_chunksize_minimum(self):
        """Test part sizes below the S3 minimum are rejected."""
        with pytest.raises(ValidationError):
            StorageSettings(_env_file=None, multipart_chunksize=1024)


@pytest.mark.unit
class TestLoggingSettings:
    """Test suite for LoggingSettings."""

    def test_defaults(self):
        """Test LoggingSettings default values."""
        settings = LoggingSettings(_env_file=None)

        assert settings.level == "INFO"
        assert settings.json_logs is False
        assert settings.service_name == "artifact-cache"

    def test_level_normalized(self):
        """Test log level is upper-cased."""
        assert LoggingSettings(_env_file=None, level="debug").level == "DEBUG"

    def test_invalid_level(self):
        """Test unknown levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingSettings(_env_file=None, level="VERBOSE")

    def test_to_logging_kwargs(self, monkeypatch):
        """Test conversion to configure_logging() arguments."""
        monkeypatch.setenv("LOG_JSON_LOGS", "true")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        settings = LoggingSettings(_env_file=None)

        assert settings.to_logging_kwargs() == {
            "log_level": "WARNING",
            "json_logs": True,
            "service_name": "artifact-cache",
        }


@pytest.mark.unit
class TestSettingsLoaders:
    """Test LRU-cached settings loaders."""

    def test_storage_settings_cached(self):
        """Test get_storage_settings returns a cached instance."""
        assert get_storage_settings() is get_storage_settings()

    def test_logging_settings_cached(self):
        """Test get_logging_settings returns a cached instance."""
        assert get_logging_settings() is get_logging_settings()

    def test_cache_clear_reloads_environment(self, monkeypatch):
        """Test clearing the cache picks up new environment values."""
        monkeypatch.setenv("STORAGE_BUCKET", "first-bucket")
        first = get_storage_settings()

        monkeypatch.setenv("STORAGE_BUCKET", "second-bucket")
        get_storage_settings.cache_clear()
        second = get_storage_settings()

        assert first.bucket == "first-bucket"
        assert second.bucket == "second-bucket"
