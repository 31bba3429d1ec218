"""Object storage client for published export artifacts.

MinIO client singleton configured from settings. Any S3-compatible store
works; the bucket is created on first use.
"""

import logging

from minio import Minio

from app.core.config import settings

logger = logging.getLogger(__name__)

_client: Minio | None = None
_ensured_buckets: set[str] = set()


def get_storage_client() -> Minio:
    """Return the MinIO client singleton."""
    global _client
    if _client is None:
        _client = Minio(
            endpoint=settings.storage_endpoint,
            access_key=settings.storage_access_key,
            secret_key=settings.storage_secret_key,
            secure=settings.storage_secure,
        )
    return _client


def ensure_bucket(client: Minio, bucket: str) -> None:
    """Create ``bucket`` if it does not exist yet.

    Storage errors propagate; a missing bucket is a publish failure.
    """
    if bucket in _ensured_buckets:
        return
    if not client.bucket_exists(bucket_name=bucket):
        client.make_bucket(bucket_name=bucket)
        logger.info(f"Created storage bucket: {bucket}")
    _ensured_buckets.add(bucket)


def reset_storage_client() -> None:
    """Drop the cached client (used by tests)."""
    global _client
    _client = None
    _ensured_buckets.clear()
