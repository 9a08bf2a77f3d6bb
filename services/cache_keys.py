"""Structured cache keys for the response cache"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from core.enums import CacheNamespace
from schemas.validators import calendar_date


@dataclass(frozen=True)
class CacheKey:
    """
    Namespace tag plus parameters.

    Keys are hashable values compared structurally, so writer and reader build
    the same key from the same inputs without any string formatting step.
    """

    namespace: CacheNamespace
    params: tuple[str, ...] = ()

    def __str__(self) -> str:
        return ":".join((self.namespace.value, *self.params))

    @classmethod
    def timeline_all(cls) -> CacheKey:
        return cls(CacheNamespace.TIMELINE_ALL)

    @classmethod
    def timeline_by_date(cls, value: date | datetime) -> CacheKey:
        # Time-of-day never reaches the key
        return cls(CacheNamespace.TIMELINE_BY_DATE, (calendar_date(value).isoformat(),))

    @classmethod
    def messages_all(cls) -> CacheKey:
        return cls(CacheNamespace.MESSAGES_ALL)

    @classmethod
    def message_stats(cls) -> CacheKey:
        return cls(CacheNamespace.MESSAGE_STATS)
