"""In-process TTL cache for document store responses"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class CacheStats:
    entries: int
    hits: int
    misses: int


class CacheService:
    """
    Thread-safe in-memory cache with per-entry TTL

    Holds disposable copies of document store reads:
    - Timeline list and per-date lookups (5 min TTL)
    - Visitor message list (2 min TTL)
    - Visitor message stats (5 min TTL)

    The document store stays the source of truth, so the whole cache can be
    dropped at any moment. There is no eviction beyond TTL expiry and no
    sliding expiration: reads never extend an entry's lifetime.

    One instance is created per application (see main.lifespan) and handed to
    the services that need it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache service

        Args:
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> Any | None:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value, or None if absent or expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache MISS: {key}")
                return None
            if not entry.is_live(self._clock()):
                # Expired entries are treated as absent; drop them while here
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache EXPIRED: {key}")
                return None
            self._hits += 1
        logger.debug(f"Cache HIT: {key}")
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: float) -> None:
        """
        Set value in cache with TTL, replacing any existing entry

        Args:
            key: Cache key
            value: Value to cache (stored by reference, callers pass immutable snapshots)
            ttl: Time-to-live in seconds
        """
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")

    def invalidate(self, key: Hashable) -> None:
        """
        Remove key from cache; no-op when absent

        Args:
            key: Cache key to remove
        """
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug(f"Cache INVALIDATE: {key}")

    def invalidate_many(self, *keys: Hashable) -> None:
        """Remove several keys; absent keys are ignored"""
        for key in keys:
            self.invalidate(key)

    def purge_expired(self) -> int:
        """
        Physically remove expired entries

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if not e.is_live(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Cache PURGE: {len(expired)} expired entries removed")
        return len(expired)

    def clear_all(self) -> None:
        """Drop every entry (safe at any time, e.g. on shutdown)"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cache CLEARED: {count} entries dropped")

    def stats(self) -> CacheStats:
        with self._lock:
            now = self._clock()
            live = sum(1 for e in self._entries.values() if e.is_live(now))
            return CacheStats(entries=live, hits=self._hits, misses=self._misses)

    def __len__(self) -> int:
        return self.stats().entries


async def purge_periodically(cache: CacheService, interval_seconds: float) -> None:
    """
    Drop expired entries every `interval_seconds` until cancelled.

    Expired entries are already invisible to readers; this only bounds memory
    for keys that are never read again (per-date keys for one-off lookups).
    Run as a background task: `asyncio.create_task(purge_periodically(...))`
    """
    logger.info(f"Starting cache purge task (interval={interval_seconds}s)")
    while True:
        await asyncio.sleep(interval_seconds)
        cache.purge_expired()
