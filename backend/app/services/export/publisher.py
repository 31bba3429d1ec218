"""Artifact publication: upload a table's TSV and issue a signed URL.

Objects are written to ``<prefix>/<run_id>/<table>.tsv``. Earlier uploads
of a run that later fails stay in the bucket.
"""

import io
import logging
from abc import ABC, abstractmethod
from datetime import timedelta

from minio import Minio
from minio.error import S3Error

from app.core.config import settings
from app.core.storage import ensure_bucket, get_storage_client
from app.schemas.base import OmopTable
from app.services.export.errors import ArtifactPublishError

logger = logging.getLogger(__name__)

TSV_CONTENT_TYPE = "text/tab-separated-values"


def object_path(run_id: str, table: OmopTable, prefix: str | None = None) -> str:
    """Storage key of a run's table file."""
    prefix = settings.export_path_prefix if prefix is None else prefix
    return f"{prefix}/{run_id}/{table.value}.tsv"


class ArtifactPublisher(ABC):
    """Publishes one table buffer and returns a time-limited download URL."""

    @abstractmethod
    def publish(self, run_id: str, table: OmopTable, data: bytes) -> str:
        """Store ``data`` for ``table`` of run ``run_id``.

        Returns:
            Signed URL for the stored object.

        Raises:
            ArtifactPublishError: If upload or signing fails.
        """
        pass


class MinioArtifactPublisher(ArtifactPublisher):
    """Publisher backed by a MinIO / S3-compatible bucket."""

    def __init__(
        self,
        client: Minio | None = None,
        bucket: str | None = None,
        prefix: str | None = None,
        expiry: timedelta | None = None,
    ) -> None:
        self.client = client or get_storage_client()
        self.bucket = bucket or settings.export_bucket
        self.prefix = settings.export_path_prefix if prefix is None else prefix
        self.expiry = expiry or timedelta(hours=settings.signed_url_expiry_hours)

    def publish(self, run_id: str, table: OmopTable, data: bytes) -> str:
        path = object_path(run_id, table, self.prefix)
        try:
            ensure_bucket(self.client, self.bucket)
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=path,
                data=io.BytesIO(data),
                length=len(data),
                content_type=TSV_CONTENT_TYPE,
            )
            url = self.client.presigned_get_object(
                bucket_name=self.bucket,
                object_name=path,
                expires=self.expiry,
            )
        except S3Error as e:
            raise ArtifactPublishError(table.value, e.code) from e
        except Exception as e:
            raise ArtifactPublishError(table.value, str(e)) from e

        logger.info(f"Published {path} ({len(data)} bytes)")
        return url
