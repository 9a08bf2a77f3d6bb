"""Visitor message reads through the response cache, plus derived stats"""
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from core.config import get_settings
from core.exceptions import RecordNotFoundError
from models.visitor_message import VisitorMessage
from repositories.message_repo import MessageRepository
from schemas.message import MessageStats, VisitorMessageCreate, VisitorMessageResponse
from services.cache_keys import CacheKey
from services.cache_service import CacheService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MessageService:
    """
    Cache policy for visitor messages.

    The list is cached with a shorter TTL than the timeline (messages are
    written far more often than read). Stats are derived from the list and
    cached under their own key; every committed write drops both.
    """

    def __init__(
        self,
        repo: MessageRepository,
        cache: CacheService,
        list_ttl: int | None = None,
        stats_ttl: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        settings = get_settings()
        self.repo = repo
        self.cache = cache
        self.list_ttl = list_ttl if list_ttl is not None else settings.cache_ttl_messages
        self.stats_ttl = stats_ttl if stats_ttl is not None else settings.cache_ttl_message_stats
        self._clock = clock

    async def list_all(self) -> tuple[VisitorMessageResponse, ...]:
        """All messages, newest first"""
        key = CacheKey.messages_all()
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        messages = tuple(_snapshot(m) for m in await self.repo.list_ordered())
        self.cache.set(key, messages, self.list_ttl)
        return messages

    async def get_by_id(self, message_id: str) -> VisitorMessageResponse:
        message = await self.repo.get_by_id(message_id)
        if message is None:
            raise RecordNotFoundError("VisitorMessage", message_id)
        return _snapshot(message)

    async def create(self, data: VisitorMessageCreate) -> VisitorMessageResponse:
        message = _snapshot(await self.repo.create_from(data))
        self.repo.after_commit(self._invalidate)
        logger.info(f"New message received from {message.email}")
        return message

    async def delete(self, message_id: str) -> None:
        if not await self.repo.delete_by_id(message_id):
            raise RecordNotFoundError("VisitorMessage", message_id)
        self.repo.after_commit(self._invalidate)
        logger.info(f"Message deleted: {message_id}")

    async def mark_read(self, message_id: str) -> VisitorMessageResponse:
        """Persist Unread -> Read; already-read messages stay read"""
        message = await self.repo.mark_read(message_id)
        if message is None:
            raise RecordNotFoundError("VisitorMessage", message_id)
        self.repo.after_commit(self._invalidate)
        logger.info(f"Message marked as read: {message_id}")
        return _snapshot(message)

    async def stats(self) -> MessageStats:
        key = CacheKey.message_stats()
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        stats = compute_stats(await self.list_all(), self._clock())
        self.cache.set(key, stats, self.stats_ttl)
        return stats

    def _invalidate(self) -> None:
        self.cache.invalidate_many(CacheKey.messages_all(), CacheKey.message_stats())


def compute_stats(messages: tuple[VisitorMessageResponse, ...], now: datetime) -> MessageStats:
    """Totals and trailing-window counts over `messages` as of `now`"""
    if not messages:
        return MessageStats()

    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    return MessageStats(
        total=len(messages),
        unread=sum(1 for m in messages if not m.is_read),
        last_message_date=max(m.timestamp for m in messages),
        last_7_days=sum(1 for m in messages if m.timestamp >= week_ago),
        last_30_days=sum(1 for m in messages if m.timestamp >= month_ago),
    )


def _snapshot(message: VisitorMessage) -> VisitorMessageResponse:
    return VisitorMessageResponse.model_validate(message)
