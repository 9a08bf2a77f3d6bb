from datetime import UTC, datetime

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.visitor_message import VisitorMessage
from repositories.base import BaseRepository
from schemas.message import VisitorMessageCreate


class MessageRepository(BaseRepository[VisitorMessage]):
    """Document store access for visitor messages"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, VisitorMessage)

    async def list_ordered(self) -> list[VisitorMessage]:
        """All messages, newest first"""
        async with self._store_call("list"):
            result = await self.db.execute(
                select(VisitorMessage).order_by(desc(VisitorMessage.timestamp))
            )
            return list(result.scalars().all())

    async def create_from(self, data: VisitorMessageCreate) -> VisitorMessage:
        message = VisitorMessage(
            name=data.name,
            email=data.email,
            message=data.message,
            timestamp=datetime.now(UTC),
            is_read=False,
        )
        return await self.create(message)

    async def mark_read(self, message_id: str) -> VisitorMessage | None:
        """Partial update of the read flag only; other columns are never rewritten"""
        message = await self.get_by_id(message_id)
        if message is None:
            return None

        async with self._store_call("mark_read"):
            await self.db.execute(
                update(VisitorMessage)
                .where(VisitorMessage.id == message_id)
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
            await self.db.refresh(message)
        return message
