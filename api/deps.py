from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.database import get_db, get_db_transactional
from core.storage_protocols import IBlobStorage
from repositories.message_repo import MessageRepository
from repositories.timeline_repo import TimelineRepository
from services.attachment_service import AttachmentService
from services.cache_service import CacheService
from services.message_service import MessageService
from services.timeline_service import TimelineService


# Process-wide components live on app.state (created in main.lifespan)
def get_cache_service(request: Request) -> CacheService:
    """Response cache owned by the running application"""
    return request.app.state.cache


def get_blob_storage(request: Request) -> IBlobStorage:
    """Blob storage backend owned by the running application"""
    return request.app.state.blob_storage


def get_attachment_service(
    storage: IBlobStorage = Depends(get_blob_storage),
) -> AttachmentService:
    settings = get_settings()
    return AttachmentService(
        storage,
        images_container=settings.images_container,
        text_files_container=settings.text_files_container,
    )


async def get_timeline_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
) -> TimelineService:
    """Timeline service for read endpoints"""
    return TimelineService(TimelineRepository(db), cache)


async def get_timeline_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    cache: CacheService = Depends(get_cache_service),
    attachments: AttachmentService = Depends(get_attachment_service),
) -> TimelineService:
    """Timeline service with transaction management for write endpoints"""
    return TimelineService(TimelineRepository(db), cache, attachments=attachments)


async def get_message_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
) -> MessageService:
    """Message service for read endpoints"""
    return MessageService(MessageRepository(db), cache)


async def get_message_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    cache: CacheService = Depends(get_cache_service),
) -> MessageService:
    """Message service with transaction management for write endpoints"""
    return MessageService(MessageRepository(db), cache)
