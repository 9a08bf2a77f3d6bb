"""
Local filesystem blob storage.

Layout: {storage_root}/{container}/{blob_name}, with a JSON sidecar
({blob_name}.meta.json) holding content type and custom metadata.

Security Features:
- Path traversal protection (resolve + prefix validation)
- Atomic writes (temp file + atomic rename)
- File permissions (0o640 files, 0o750 dirs)
"""

import json
import logging
import os
import re
import tempfile
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, BinaryIO
from urllib.parse import quote

import aiofiles
import aiofiles.os

from core.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)

logger = logging.getLogger(__name__)

CONTAINER_NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])$")
METADATA_SUFFIX = ".meta.json"


def validate_container_name(container: str) -> str:
    """Container names follow blob-store rules: 3-63 chars, lowercase, digits, hyphens"""
    if not CONTAINER_NAME_PATTERN.match(container):
        raise StoragePermissionError(container, "invalid container name")
    return container


def validate_blob_name(blob_name: str) -> str:
    """Blob names are single path segments"""
    if (
        not blob_name
        or blob_name in (".", "..")
        or "/" in blob_name
        or "\\" in blob_name
        or "\x00" in blob_name
        or blob_name.endswith(METADATA_SUFFIX)
    ):
        raise StoragePermissionError(blob_name, "invalid blob name")
    return blob_name


class LocalBlobStorage:
    """
    Filesystem blob storage with atomic writes and path traversal protection.

    URLs point at the files router
    ({base_url}/api/files/download/{container}/{blob_name}).
    """

    CHUNK_SIZE = 64 * 1024  # 64KB chunks for streaming

    def __init__(self, storage_root: str, base_url: str | None = None) -> None:
        """
        Initialize local storage service.

        Args:
            storage_root: Base directory for all containers
            base_url: Public base URL of the API (e.g., "https://api.example.com").
                     If None, returned URLs are relative paths
        """
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None

        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, container: str, blob_name: str) -> Path:
        """
        Get full filesystem path with security validation.

        Raises:
            StoragePermissionError: If names are invalid or path escapes the root
        """
        validate_container_name(container)
        validate_blob_name(blob_name)
        full_path = (self.storage_root / container / blob_name).resolve()

        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(f"{container}/{blob_name}", "path_validation") from e

        return full_path

    def _blob_url(self, container: str, blob_name: str) -> str:
        path = f"/api/files/download/{container}/{quote(blob_name)}"
        if self.base_url:
            return f"{self.base_url}{path}"
        return path

    async def _write_metadata(self, file_path: Path, metadata: dict[str, Any]) -> None:
        """Write metadata to JSON sidecar file"""
        metadata_path = file_path.with_name(file_path.name + METADATA_SUFFIX)

        async with aiofiles.open(metadata_path, "w") as f:
            await f.write(json.dumps(metadata, indent=2))

        os.chmod(metadata_path, 0o640)

    async def upload(
        self,
        file_data: BinaryIO,
        container: str,
        blob_name: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """
        Upload blob with atomic write.

        Implementation:
        1. Validate names (no traversal)
        2. Write to temp file in the container directory
        3. Atomic rename to final location
        4. Write metadata sidecar

        Returns:
            str: URL of the stored blob

        Raises:
            StoragePermissionError: If names are invalid
            StorageUploadError: If upload fails
        """
        target_path = self._get_full_path(container, blob_name)
        blob_path = f"{container}/{blob_name}"

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)

            file_content = file_data.read()
            file_size = len(file_content)

            # Write to temp file first (atomic write pattern)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent, prefix=".tmp_", suffix=target_path.suffix
            )
            os.close(temp_fd)

            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(file_content)

                os.chmod(temp_path, 0o640)
                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)

            await self._write_metadata(
                target_path,
                {
                    "container": container,
                    "blob_name": blob_name,
                    "size": file_size,
                    "content_type": content_type,
                    "uploaded_at": datetime.now(UTC).isoformat(),
                    "custom": metadata or {},
                },
            )
        except Exception as e:
            raise StorageUploadError(blob_path, f"Upload failed: {str(e)}") from e

        logger.info(f"File uploaded successfully: {blob_name} ({file_size} bytes) to container: {container}")
        return self._blob_url(container, blob_name)

    async def download(self, container: str, blob_name: str) -> AsyncIterator[bytes]:
        """
        Stream blob from storage.

        Yields:
            bytes: File content chunks

        Raises:
            StorageNotFoundError: If blob doesn't exist
            StorageDownloadError: If download fails
        """
        file_path = self._get_full_path(container, blob_name)
        blob_path = f"{container}/{blob_name}"

        if not file_path.exists():
            raise StorageNotFoundError(blob_path)

        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    chunk = await f.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except Exception as e:
            raise StorageDownloadError(blob_path, f"Download failed: {str(e)}") from e

    async def delete(self, container: str, blob_name: str) -> bool:
        """
        Delete blob and its metadata sidecar.

        Returns:
            bool: True if deleted, False if didn't exist

        Raises:
            StorageDeleteError: If deletion fails
        """
        file_path = self._get_full_path(container, blob_name)

        if not file_path.exists():
            return False

        try:
            await aiofiles.os.remove(file_path)

            metadata_path = file_path.with_name(file_path.name + METADATA_SUFFIX)
            if metadata_path.exists():
                await aiofiles.os.remove(metadata_path)
        except Exception as e:
            raise StorageDeleteError(f"{container}/{blob_name}", f"Delete failed: {str(e)}") from e

        logger.info(f"File deleted: {blob_name} from container: {container}")
        return True

    async def exists(self, container: str, blob_name: str) -> bool:
        return self._get_full_path(container, blob_name).exists()
