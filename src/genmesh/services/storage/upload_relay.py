"""Object storage relay for input images.

Writes an uploaded image to an S3-compatible bucket and hands back a signed,
time-limited URL the inference provider can read.
"""

import asyncio
import io
import re
import uuid
from datetime import timedelta

import structlog
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError as StorageHTTPError

from genmesh.core.config import Settings
from genmesh.models.asset import UploadedAsset
from genmesh.models.generation_request import ImageUpload
from genmesh.services.exceptions import ConfigurationError, MissingAssetError, UploadError

logger = structlog.get_logger()

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def build_object_key(filename: str) -> str:
    """Derive a unique storage key from a random id plus the original filename."""
    safe_name = _UNSAFE_KEY_CHARS.sub("_", filename.rsplit("/", 1)[-1]).strip("._") or "upload"
    return f"uploads/{uuid.uuid4().hex}/{safe_name}"


class UploadRelay:
    """Upload client for the configured object storage bucket."""

    def __init__(self, settings: Settings, client: Minio | None = None):
        """Initialize relay.

        Args:
            settings: Application settings (storage endpoint, credentials, bucket)
            client: Pre-built storage client (tests inject a fake)
        """
        self.bucket = settings.storage_bucket
        self.expiry = timedelta(seconds=settings.upload_url_expiry_seconds)
        self._settings = settings
        self._client = client

    def _get_client(self) -> Minio:
        if self._client is None:
            if not self._settings.storage_configured:
                raise ConfigurationError(
                    "Object storage is not configured "
                    "(STORAGE_BUCKET, STORAGE_ACCESS_KEY, STORAGE_SECRET_KEY)"
                )
            self._client = Minio(
                self._settings.storage_endpoint,
                access_key=self._settings.storage_access_key,
                secret_key=self._settings.storage_secret_key,
                region=self._settings.storage_region or None,
                secure=self._settings.storage_secure,
            )
        return self._client

    def _put_and_sign(self, client: Minio, key: str, image: ImageUpload) -> str:
        client.put_object(
            self.bucket,
            key,
            io.BytesIO(image.data),
            length=image.size,
            content_type=image.content_type,
        )
        return client.presigned_get_object(self.bucket, key, expires=self.expiry)

    async def upload(self, image: ImageUpload | None) -> UploadedAsset:
        """Store image bytes and return a signed URL for them.

        The URL expires after UPLOAD_URL_EXPIRY_SECONDS and is never renewed, so the
        provider has to read the image within that window.

        Args:
            image: Uploaded image blob

        Returns:
            UploadedAsset with the storage key and signed URL

        Raises:
            MissingAssetError: No image or an empty payload
            ConfigurationError: Storage bucket or credentials not configured
            UploadError: Storage write or signing failed
        """
        if image is None or image.size == 0:
            raise MissingAssetError()

        client = self._get_client()
        key = build_object_key(image.filename)

        try:
            url = await asyncio.to_thread(self._put_and_sign, client, key, image)
        except (S3Error, StorageHTTPError, OSError, ValueError) as e:
            logger.error(
                "upload.failed",
                bucket=self.bucket,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UploadError() from e

        logger.info(
            "upload.stored",
            bucket=self.bucket,
            key=key,
            size_bytes=image.size,
            content_type=image.content_type,
            expires_in_seconds=int(self.expiry.total_seconds()),
        )
        return UploadedAsset(key=key, url=url, content_type=image.content_type)
