"""Upload and cleanup of timeline attachments in the blob store."""
import logging
import mimetypes
from pathlib import PurePath
from typing import BinaryIO, Optional
from urllib.parse import unquote, urlparse

from core.enums import AttachmentKind
from core.exceptions import StorageException, StoragePermissionError
from core.storage_protocols import IBlobStorage
from schemas.timeline import Attachment
from utils.generators import generate_blob_name

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"})


def classify(filename: str) -> AttachmentKind:
    """Images by extension; everything else is stored as a text attachment"""
    if PurePath(filename).suffix.lower() in IMAGE_EXTENSIONS:
        return AttachmentKind.IMAGE
    return AttachmentKind.TEXT


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def blob_name_from_url(url: str) -> str:
    """Last path segment of a blob URL, as produced by every storage backend"""
    return unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])


class AttachmentService:
    """
    Routes uploads to the images or text container and removes replaced blobs.

    Blob names are "<uuid>_<original name>" so two uploads of the same file
    never collide.
    """

    def __init__(self, storage: IBlobStorage, images_container: str, text_files_container: str):
        self.storage = storage
        self.containers = {
            AttachmentKind.IMAGE: images_container,
            AttachmentKind.TEXT: text_files_container,
        }

    def container_for(self, kind: AttachmentKind) -> str:
        return self.containers[kind]

    async def upload(
        self,
        file_data: BinaryIO,
        filename: str,
        content_type: Optional[str] = None,
    ) -> Attachment:
        """Upload a timeline attachment, picking the container from the extension"""
        return await self.upload_to(file_data, filename, classify(_base_name(filename)), content_type)

    async def upload_to(
        self,
        file_data: BinaryIO,
        filename: str,
        kind: AttachmentKind,
        content_type: Optional[str] = None,
    ) -> Attachment:
        """Upload into the container for `kind` regardless of the extension"""
        original_name = _base_name(filename)
        if not original_name:
            raise StoragePermissionError(filename, "missing file name")

        url = await self.storage.upload(
            file_data,
            container=self.container_for(kind),
            blob_name=generate_blob_name(original_name),
            content_type=content_type or guess_content_type(original_name),
            metadata={"original_file_name": original_name},
        )
        return Attachment(url=url, name=original_name, kind=kind)

    async def remove(self, attachment: Attachment) -> bool:
        """
        Delete the blob behind an attachment.

        Failures are logged and reported as False: the record change that
        orphaned the blob has already been written.
        """
        container = self.container_for(attachment.kind)
        blob_name = blob_name_from_url(attachment.url)
        try:
            return await self.storage.delete(container, blob_name)
        except StorageException as e:
            logger.warning(f"Could not delete attachment {container}/{blob_name}: {e}")
            return False


def _base_name(filename: str) -> str:
    return PurePath(filename.replace("\\", "/")).name
