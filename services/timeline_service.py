"""Timeline reads through the response cache, writes with targeted invalidation"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from core.config import get_settings
from core.exceptions import RecordNotFoundError
from models.timeline_item import TimelineItem
from repositories.timeline_repo import TimelineRepository
from schemas.timeline import TimelineItemCreate, TimelineItemResponse
from schemas.validators import calendar_date
from services.cache_keys import CacheKey
from services.cache_service import CacheService

if TYPE_CHECKING:
    from services.attachment_service import AttachmentService

logger = logging.getLogger(__name__)


class TimelineService:
    """
    Cache policy for timeline items.

    Reads:
    - list_all: one fixed key for the whole ordered list
    - get_by_date: one key per calendar date, filled by scanning the list
    - get_by_id: straight to the store, never cached

    Writes go to the store first. Once the transaction commits, the list key
    and every per-date key the record could have populated are dropped, and
    replaced or deleted blobs are removed. The list cannot be patched in
    place, so any write discards all of it.
    """

    def __init__(
        self,
        repo: TimelineRepository,
        cache: CacheService,
        ttl: int | None = None,
        attachments: AttachmentService | None = None,
    ):
        self.repo = repo
        self.cache = cache
        self.ttl = ttl if ttl is not None else get_settings().cache_ttl_timeline
        self.attachments = attachments

    async def list_all(self) -> tuple[TimelineItemResponse, ...]:
        """All items, most recent date first"""
        key = CacheKey.timeline_all()
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        items = tuple(_snapshot(item) for item in await self.repo.list_ordered())
        self.cache.set(key, items, self.ttl)
        return items

    async def get_by_date(self, day: date | datetime) -> TimelineItemResponse:
        """
        First item whose calendar date equals `day` (time-of-day ignored).

        Raises:
            RecordNotFoundError: No item on that date. Misses are not cached.
        """
        target = calendar_date(day)
        key = CacheKey.timeline_by_date(target)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        for item in await self.list_all():
            if calendar_date(item.date) == target:
                self.cache.set(key, item, self.ttl)
                return item

        logger.info(f"No timeline item found for date: {target.isoformat()}")
        raise RecordNotFoundError("TimelineItem", f"date={target.isoformat()}")

    async def get_by_id(self, item_id: str) -> TimelineItemResponse:
        item = await self.repo.get_by_id(item_id)
        if item is None:
            raise RecordNotFoundError("TimelineItem", item_id)
        return _snapshot(item)

    async def create(self, data: TimelineItemCreate) -> TimelineItemResponse:
        item = await self.repo.create_from(data)
        created = _snapshot(item)
        # The per-date key cannot hold this record yet; dropped anyway
        self.repo.after_commit(lambda: self._invalidate(created.date))
        logger.info(
            f"Created timeline item: {created.title} for date: {calendar_date(created.date).isoformat()}"
        )
        return created

    async def update(self, item_id: str, data: TimelineItemCreate) -> TimelineItemResponse:
        """Full replace; the identifier never changes"""
        existing = await self.repo.get_by_id(item_id)
        if existing is None:
            raise RecordNotFoundError("TimelineItem", item_id)
        previous = _snapshot(existing)

        item = await self.repo.replace(item_id, data)
        if item is None:
            raise RecordNotFoundError("TimelineItem", item_id)
        updated = _snapshot(item)

        self.repo.after_commit(lambda: self._invalidate(updated.date, previous.date))

        old_attachment = previous.attachment
        if data.attachment is not None and old_attachment is not None and old_attachment != data.attachment:
            self.repo.after_commit(lambda: self._discard_attachment(old_attachment))
        return updated

    async def delete(self, item_id: str) -> None:
        existing = await self.repo.get_by_id(item_id)
        if existing is None:
            raise RecordNotFoundError("TimelineItem", item_id)
        previous = _snapshot(existing)

        if not await self.repo.delete_by_id(item_id):
            raise RecordNotFoundError("TimelineItem", item_id)

        self.repo.after_commit(lambda: self._invalidate(previous.date))
        if previous.attachment is not None:
            self.repo.after_commit(lambda: self._discard_attachment(previous.attachment))
        logger.info(f"Deleted timeline item: {item_id}")

    def _invalidate(self, *dates: date | datetime) -> None:
        self.cache.invalidate(CacheKey.timeline_all())
        for day in dates:
            self.cache.invalidate(CacheKey.timeline_by_date(day))

    async def _discard_attachment(self, attachment) -> None:
        if self.attachments is None:
            return
        await self.attachments.remove(attachment)


def _snapshot(item: TimelineItem) -> TimelineItemResponse:
    return TimelineItemResponse.model_validate(item)
