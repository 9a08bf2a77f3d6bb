"""
S3-compatible blob storage (AWS S3, MinIO, DigitalOcean Spaces).

Containers map to key prefixes inside a single bucket:
{bucket}/{container}/{blob_name}
"""

import logging
from collections.abc import AsyncIterator
from typing import BinaryIO
from urllib.parse import quote

import aioboto3
from botocore.exceptions import ClientError

from core.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StorageUploadError,
)
from services.storage.local_storage import validate_blob_name, validate_container_name

logger = logging.getLogger(__name__)


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound")


class S3BlobStorage:
    """
    S3-compatible blob storage.

    Security:
    - Server-side encryption (AES256)
    - Container and blob names validated before building object keys
    """

    CHUNK_SIZE = 64 * 1024  # 64KB chunks for streaming

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ):
        """
        Initialize S3 storage service.

        Args:
            bucket: S3 bucket name
            region: AWS region (default: us-east-1)
            endpoint_url: Custom endpoint for MinIO/DigitalOcean (optional)
            access_key: AWS access key (optional, uses IAM role if not provided)
            secret_key: AWS secret key (optional, uses IAM role if not provided)
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url

        self.session = aioboto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def _get_client_config(self):
        """Get boto3 client configuration"""
        config = {}
        if self.endpoint_url:
            config["endpoint_url"] = self.endpoint_url
        return config

    def _object_key(self, container: str, blob_name: str) -> str:
        validate_container_name(container)
        validate_blob_name(blob_name)
        return f"{container}/{blob_name}"

    def _object_url(self, key: str) -> str:
        quoted = quote(key)
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    async def upload(
        self,
        file_data: BinaryIO,
        container: str,
        blob_name: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """
        Upload blob to S3 with server-side encryption.

        Returns:
            str: Object URL

        Raises:
            StoragePermissionError: If names are invalid
            StorageUploadError: If upload fails
        """
        key = self._object_key(container, blob_name)
        s3_metadata = {}
        if metadata:
            # S3 metadata keys must be lowercase with hyphens
            for meta_key, value in metadata.items():
                s3_metadata[meta_key.lower().replace("_", "-")] = value

        try:
            file_content = file_data.read()
            async with self.session.client("s3", **self._get_client_config()) as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=file_content,
                    ContentType=content_type,
                    CacheControl="public, max-age=31536000",
                    ServerSideEncryption="AES256",
                    Metadata=s3_metadata,
                )
        except Exception as e:
            raise StorageUploadError(key, str(e)) from e

        logger.info(f"File uploaded successfully: {blob_name} ({len(file_content)} bytes) to container: {container}")
        return self._object_url(key)

    async def download(self, container: str, blob_name: str) -> AsyncIterator[bytes]:
        """
        Stream blob from S3.

        Raises:
            StorageNotFoundError: If object doesn't exist
            StorageDownloadError: If download fails
        """
        key = self._object_key(container, blob_name)
        try:
            async with self.session.client("s3", **self._get_client_config()) as s3:
                try:
                    response = await s3.get_object(Bucket=self.bucket, Key=key)
                except ClientError as e:
                    if _is_missing(e):
                        raise StorageNotFoundError(key) from e
                    raise

                async with response["Body"] as stream:
                    while True:
                        chunk = await stream.read(self.CHUNK_SIZE)
                        if not chunk:
                            break
                        yield chunk

        except StorageNotFoundError:
            raise
        except Exception as e:
            raise StorageDownloadError(key, str(e)) from e

    async def delete(self, container: str, blob_name: str) -> bool:
        """
        Delete object from S3.

        Returns:
            bool: True if deleted, False if didn't exist

        Raises:
            StorageDeleteError: If deletion fails
        """
        key = self._object_key(container, blob_name)
        try:
            async with self.session.client("s3", **self._get_client_config()) as s3:
                try:
                    await s3.head_object(Bucket=self.bucket, Key=key)
                except ClientError as e:
                    if _is_missing(e):
                        return False
                    raise

                await s3.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            raise StorageDeleteError(key, str(e)) from e

        logger.info(f"File deleted: {blob_name} from container: {container}")
        return True

    async def exists(self, container: str, blob_name: str) -> bool:
        key = self._object_key(container, blob_name)
        try:
            async with self.session.client("s3", **self._get_client_config()) as s3:
                await s3.head_object(Bucket=self.bucket, Key=key)
                return True
        except ClientError as e:
            if _is_missing(e):
                return False
            raise StorageDownloadError(key, str(e)) from e
