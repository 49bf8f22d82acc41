"""
Object Store Client
===================
Async client for an S3-compatible object store (AWS S3, Cloudflare R2, MinIO).
"""

from typing import Optional

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from file_provider.core.config import Settings, settings as default_settings
from file_provider.core.exceptions import RemoteStorageError
from file_provider.core.logging_config import get_logger


logger = get_logger(__name__)


class BucketClient:
    """
    Bucket Client

    Thin wrapper over aioboto3 exposing upload, download, delete and
    presign. Every boto failure is re-raised as RemoteStorageError.
    """

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        self.bucket_name = config.BUCKET_NAME
        self.endpoint_url = config.BUCKET_ENDPOINT_URL
        self.region = config.BUCKET_REGION
        self.access_key_id = config.BUCKET_ACCESS_KEY_ID
        self.secret_access_key = config.BUCKET_SECRET_ACCESS_KEY
        self.default_expires_in = config.PRESIGN_EXPIRES_IN

        if not self.bucket_name:
            logger.warning("BUCKET_NAME is not set. Object store calls will fail.")
        else:
            logger.info(f"Using bucket: {self.bucket_name}")

        self.session = aioboto3.Session()

    def _client(self):
        """Open an S3 client context"""
        return self.session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            region_name=self.region,
            config=Config(signature_version="s3v4"),
        )

    async def upload_object(
        self,
        content: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> None:
        """
        Upload an object

        Args:
            content: Object content
            key: Object key
            content_type: MIME type
        """
        try:
            async with self._client() as s3_client:
                await s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=content,
                    ContentType=content_type or "application/octet-stream",
                )

            logger.bind(bucket=self.bucket_name, key=key).info(f"Object uploaded: {key}")

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Object upload failed: {e}")
            raise RemoteStorageError(f"Failed to upload {key}: {e}", path=key) from e

    async def download_object(self, key: str) -> bytes:
        """
        Download a whole object

        Args:
            key: Object key

        Returns:
            bytes: Object content
        """
        try:
            async with self._client() as s3_client:
                response = await s3_client.get_object(Bucket=self.bucket_name, Key=key)

                async with response["Body"] as stream:
                    return await stream.read()

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Object download failed: {e}")
            raise RemoteStorageError(f"Failed to download {key}: {e}", path=key) from e

    async def delete_object(self, key: str) -> None:
        """Delete an object (deleting a missing key is not an error)"""
        try:
            async with self._client() as s3_client:
                await s3_client.delete_object(Bucket=self.bucket_name, Key=key)

            logger.info(f"Object deleted: {key}")

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Object delete failed: {e}")
            raise RemoteStorageError(f"Failed to delete {key}: {e}", path=key) from e

    async def presign_url(self, key: str, expires_in: Optional[int] = None) -> str:
        """
        Generate a time-limited download URL

        Args:
            key: Object key
            expires_in: Lifetime in seconds

        Returns:
            str: Presigned URL
        """
        expires_in = expires_in or self.default_expires_in

        try:
            async with self._client() as s3_client:
                return await s3_client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.bucket_name, "Key": key},
                    ExpiresIn=expires_in,
                )

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Presign failed: {e}")
            raise RemoteStorageError(f"Failed to presign {key}: {e}", path=key) from e
