"""
Blob storage protocol for timeline attachments.

Blobs are addressed by container + blob name. Implementations:
- LocalBlobStorage: filesystem directories, one per container
- S3BlobStorage: one bucket, containers as key prefixes
"""
from collections.abc import AsyncIterator
from typing import BinaryIO, Optional, Protocol


class IBlobStorage(Protocol):
    """Protocol for blob storage backends"""

    async def upload(
        self,
        file_data: BinaryIO,
        container: str,
        blob_name: str,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """
        Upload a blob, creating the container if needed.

        Returns:
            str: Public URL of the stored blob

        Raises:
            StoragePermissionError: If container or blob name is unsafe
            StorageUploadError: If upload fails
        """
        ...

    def download(self, container: str, blob_name: str) -> AsyncIterator[bytes]:
        """
        Stream a blob in chunks.

        Raises:
            StorageNotFoundError: If the blob doesn't exist
            StorageDownloadError: If download fails
        """
        ...

    async def delete(self, container: str, blob_name: str) -> bool:
        """
        Delete a blob.

        Returns:
            bool: True if deleted, False if it didn't exist

        Raises:
            StorageDeleteError: If deletion fails
        """
        ...

    async def exists(self, container: str, blob_name: str) -> bool:
        """Check whether a blob exists"""
        ...
