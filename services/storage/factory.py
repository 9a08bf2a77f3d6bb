"""Pick the blob storage backend named in settings."""
import logging

from core.config import Settings
from core.storage_protocols import IBlobStorage
from services.storage.local_storage import LocalBlobStorage

logger = logging.getLogger(__name__)


def create_blob_storage(settings: Settings) -> IBlobStorage:
    """
    Build the configured backend.

    Settings validation already guarantees a known backend and an S3 bucket
    when the backend is "s3".
    """
    if settings.storage_backend.lower() == "s3":
        # Imported lazily so local deployments never load boto
        from services.storage.s3_storage import S3BlobStorage

        logger.info(f"Using S3 blob storage: bucket={settings.s3_bucket}")
        return S3BlobStorage(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
        )

    logger.info(f"Using local blob storage: root={settings.storage_root}")
    return LocalBlobStorage(
        storage_root=settings.storage_root,
        base_url=settings.storage_base_url,
    )
