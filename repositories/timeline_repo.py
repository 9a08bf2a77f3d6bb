from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.timeline_item import TimelineItem
from repositories.base import BaseRepository
from schemas.timeline import TimelineItemCreate


class TimelineRepository(BaseRepository[TimelineItem]):
    """Document store access for timeline items"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, TimelineItem)

    async def list_ordered(self) -> list[TimelineItem]:
        """All timeline items, most recent date first"""
        async with self._store_call("list"):
            result = await self.db.execute(
                select(TimelineItem).order_by(desc(TimelineItem.date), desc(TimelineItem.created_at))
            )
            return list(result.scalars().all())

    async def create_from(self, data: TimelineItemCreate) -> TimelineItem:
        item = TimelineItem(
            date=data.date,
            title=data.title,
            description=data.description,
        )
        _apply_attachment(item, data)
        return await self.create(item)

    async def replace(self, item_id: str, data: TimelineItemCreate) -> TimelineItem | None:
        """
        Full replace of every mutable field.

        The attachment is only replaced when the new data carries one; an
        update without a file keeps the existing attachment.
        """
        item = await self.get_by_id(item_id)
        if item is None:
            return None

        async with self._store_call("update"):
            item.date = data.date
            item.title = data.title
            item.description = data.description
            _apply_attachment(item, data)
            await self.db.flush()
            await self.db.refresh(item)
            return item


def _apply_attachment(item: TimelineItem, data: TimelineItemCreate) -> None:
    if data.attachment is None:
        return
    item.file_url = data.attachment.url
    item.file_name = data.attachment.name
    item.file_type = data.attachment.kind.value
