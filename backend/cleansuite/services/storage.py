"""Object storage with provider interface (GCS/S3).

Clients upload directly to the bucket with a presigned PUT URL and then hand the
resulting public URL back to the API (job photos, company logos).
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import NamedTuple, Optional
from uuid import UUID

from cleansuite.core.config import Settings, StorageProvider, get_settings
from cleansuite.core.errors import ValidationFailed

logger = logging.getLogger(__name__)


class PresignedUpload(NamedTuple):
    upload_url: str
    object_path: str
    public_url: str
    expires_at: datetime


class StorageProviderInterface(ABC):
    """Abstract interface for storage providers."""

    @abstractmethod
    async def generate_presigned_upload_url(
        self,
        object_path: str,
        mime_type: str,
        ttl_seconds: int,
    ) -> tuple[str, datetime]:
        """Generate a presigned PUT URL for direct upload.

        Returns:
            Tuple of (presigned_url, expires_at)
        """

    @abstractmethod
    async def delete_object(self, object_path: str) -> bool:
        """Delete an object from storage."""


class GCSStorageProvider(StorageProviderInterface):
    """Google Cloud Storage provider."""

    def __init__(self, bucket_name: str, project_id: Optional[str] = None):
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client(project=self.project_id)
        return self._client

    @property
    def bucket(self):
        return self.client.bucket(self.bucket_name)

    async def generate_presigned_upload_url(
        self,
        object_path: str,
        mime_type: str,
        ttl_seconds: int,
    ) -> tuple[str, datetime]:
        blob = self.bucket.blob(object_path)
        expires_at = datetime.utcnow() + timedelta(seconds=ttl_seconds)

        url = blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=ttl_seconds),
            method="PUT",
            content_type=mime_type,
        )
        return url, expires_at

    async def delete_object(self, object_path: str) -> bool:
        from google.api_core.exceptions import GoogleAPIError

        blob = self.bucket.blob(object_path)
        try:
            blob.delete()
        except GoogleAPIError as e:
            logger.warning("GCS delete of %s failed: %s", object_path, e)
            return False
        return True


class S3StorageProvider(StorageProviderInterface):
    """AWS S3 storage provider."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )
        return self._client

    async def generate_presigned_upload_url(
        self,
        object_path: str,
        mime_type: str,
        ttl_seconds: int,
    ) -> tuple[str, datetime]:
        expires_at = datetime.utcnow() + timedelta(seconds=ttl_seconds)

        url = self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket_name,
                "Key": object_path,
                "ContentType": mime_type,
            },
            ExpiresIn=ttl_seconds,
        )
        return url, expires_at

    async def delete_object(self, object_path: str) -> bool:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=object_path)
        except (BotoCoreError, ClientError) as e:
            logger.warning("S3 delete of %s failed: %s", object_path, e)
            return False
        return True


class StorageService:
    """High-level storage service wrapping a provider."""

    MIME_EXTENSIONS = {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
        "image/heic": "heic",
        "image/svg+xml": "svg",
    }

    def __init__(self, provider: StorageProviderInterface, settings: Optional[Settings] = None):
        self.provider = provider
        self.settings = settings or get_settings()

    @staticmethod
    def generate_object_path(
        company_id: UUID,
        entity: str,
        purpose: str,
        extension: str,
        timestamp_ms: Optional[int] = None,
    ) -> str:
        """Key layout: ``{company}/{entity}/{purpose}-{timestamp}.{ext}``."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"{company_id}/{entity}/{purpose}-{timestamp_ms}.{extension.lstrip('.')}"

    def public_url(self, object_path: str) -> str:
        return f"{self.settings.public_base_url}/{object_path}"

    def object_path_from_url(self, url: str) -> Optional[str]:
        """Reverse of ``public_url`` for objects in this bucket."""
        prefix = f"{self.settings.public_base_url}/"
        return url[len(prefix):] if url and url.startswith(prefix) else None

    async def create_presigned_upload(
        self,
        company_id: UUID,
        entity: str,
        purpose: str,
        mime_type: str,
        file_size_bytes: int,
    ) -> PresignedUpload:
        """Validate the upload and return where to PUT it and its eventual URL."""
        errors: dict[str, str] = {}
        extension = self.MIME_EXTENSIONS.get(mime_type)
        if extension is None:
            errors["mime_type"] = f"Unsupported mime type: {mime_type}"

        max_size = self.settings.max_upload_size_mb * 1024 * 1024
        if file_size_bytes <= 0:
            errors["file_size_bytes"] = "File is empty"
        elif file_size_bytes > max_size:
            errors["file_size_bytes"] = f"File size exceeds maximum of {self.settings.max_upload_size_mb}MB"

        if errors:
            raise ValidationFailed(errors, "Upload rejected")

        object_path = self.generate_object_path(company_id, entity, purpose, extension)
        url, expires_at = await self.provider.generate_presigned_upload_url(
            object_path=object_path,
            mime_type=mime_type,
            ttl_seconds=self.settings.presign_ttl_seconds,
        )
        return PresignedUpload(url, object_path, self.public_url(object_path), expires_at)

    async def delete_by_url(self, url: str) -> bool:
        object_path = self.object_path_from_url(url)
        if not object_path:
            return False
        return await self.provider.delete_object(object_path)


def get_storage_service() -> StorageService:
    """Factory function to get storage service based on config."""
    settings = get_settings()
    if settings.storage_provider == StorageProvider.GCS:
        provider = GCSStorageProvider(
            bucket_name=settings.bucket_name,
            project_id=settings.gcs_project_id,
        )
    else:
        provider = S3StorageProvider(
            bucket_name=settings.bucket_name,
            region=settings.aws_region or "us-east-1",
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )

    return StorageService(provider, settings)
