"""Factory for building storage instances from application settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlparse

from minio import Minio

from app.storage.minio_impl import MinioStorage

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _normalize_endpoint(endpoint: str) -> tuple[str, bool]:
    """Extract host:port from endpoint URL and determine if secure (https).

    Returns:
        Tuple of (host:port, secure_flag)
    """
    parsed = urlparse(endpoint)
    secure = parsed.scheme == "https"
    host = parsed.netloc or parsed.path.rstrip("/")
    return host, secure


def build_client(settings: "Settings") -> Minio:
    host, secure = _normalize_endpoint(settings.S3_ENDPOINT)
    return Minio(
        host,
        access_key=settings.S3_ACCESS_KEY,
        secret_key=settings.S3_SECRET_KEY,
        secure=secure,
    )


def build_storage(settings: Optional["Settings"] = None) -> MinioStorage:
    """Build MinioStorage from settings and ensure the generated bucket exists.

    Settings used:
        S3_ENDPOINT: Full URL to MinIO/S3 endpoint (e.g., http://localhost:9000)
        S3_ACCESS_KEY / S3_SECRET_KEY: Credentials
        S3_BUCKET_GENERATED: Bucket for rendered documents (default: generated)
    """
    if settings is None:
        from app.core.config import settings as app_settings

        settings = app_settings

    storage = MinioStorage(build_client(settings))
    storage.ensure_bucket(settings.S3_BUCKET_GENERATED)
    logger.info("Object storage ready at %s (bucket=%s)", settings.S3_ENDPOINT, settings.S3_BUCKET_GENERATED)
    return storage


__all__ = ["build_client", "build_storage"]
