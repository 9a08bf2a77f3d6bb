"""Blob storage backends for timeline attachments."""

from services.storage.factory import create_blob_storage
from services.storage.local_storage import LocalBlobStorage

__all__ = ["LocalBlobStorage", "create_blob_storage"]
