"""S3-compatible object storage backend for build-artifact caches."""

__version__ = "0.1.0"
