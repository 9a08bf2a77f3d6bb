"""Tests for the in-memory response cache"""
import asyncio
import contextlib
import threading
from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from core.enums import CacheNamespace
from services.cache_keys import CacheKey
from services.cache_service import CacheService, purge_periodically


def test_get_missing_key_returns_none(cache):
    """Test cache get when key doesn't exist"""
    assert cache.get("missing_key") is None
    assert cache.stats().misses == 1


def test_set_then_get_returns_value(cache):
    """Test cache hit within the TTL"""
    cache.set("user:456", ("a", "b"), ttl=300)

    assert cache.get("user:456") == ("a", "b")
    assert cache.stats().hits == 1


def test_entry_expires_after_ttl(cache, clock):
    """
    GIVEN an entry stored with a 300s TTL
    WHEN the clock passes the expiry instant
    THEN the entry reads as absent
    """
    cache.set("k", "v", ttl=300)

    clock.advance(299.9)
    assert cache.get("k") == "v"

    clock.advance(0.1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_reads_do_not_extend_lifetime(cache, clock):
    """Test there is no sliding expiration"""
    cache.set("k", "v", ttl=10)

    for _ in range(9):
        clock.advance(1)
        assert cache.get("k") == "v"

    clock.advance(1)
    assert cache.get("k") is None


def test_set_replaces_existing_entry_and_restarts_ttl(cache, clock):
    """Test last writer wins"""
    cache.set("k", "first", ttl=10)
    clock.advance(8)
    cache.set("k", "second", ttl=10)
    clock.advance(8)

    assert cache.get("k") == "second"


@pytest.mark.parametrize("ttl", [0, -1])
def test_set_rejects_non_positive_ttl(cache, ttl):
    with pytest.raises(ValueError):
        cache.set("k", "v", ttl=ttl)


def test_invalidate_removes_entry(cache):
    cache.set("k", "v", ttl=60)

    cache.invalidate("k")

    assert cache.get("k") is None


def test_invalidate_absent_key_is_noop(cache):
    cache.set("other", "v", ttl=60)

    cache.invalidate("never-set")

    assert cache.get("other") == "v"


def test_invalidate_many(cache):
    cache.set("a", 1, ttl=60)
    cache.set("b", 2, ttl=60)
    cache.set("c", 3, ttl=60)

    cache.invalidate_many("a", "b", "missing")

    assert cache.get("a") is None
    assert cache.get("b") is None
    assert cache.get("c") == 3


def test_purge_expired_only_drops_expired(cache, clock):
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=500)
    clock.advance(10)

    assert cache.purge_expired() == 1
    assert cache.get("long") == 2


@pytest.mark.asyncio
async def test_purge_task_sweeps_expired_entries(cache, clock):
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=500)
    clock.advance(10)

    task = asyncio.create_task(purge_periodically(cache, interval_seconds=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task

    # Already swept by the task
    assert cache.purge_expired() == 0
    assert cache.get("long") == 2


def test_clear_all(cache):
    cache.set("a", 1, ttl=60)
    cache.set("b", 2, ttl=60)

    cache.clear_all()

    assert len(cache) == 0
    assert cache.get("a") is None


def test_concurrent_access_from_threads():
    """Test the store stays consistent under parallel readers and writers"""
    cache = CacheService()
    errors = []

    def worker(n: int):
        try:
            for i in range(500):
                cache.set(f"key:{i % 10}", n, ttl=60)
                cache.get(f"key:{(i + n) % 10}")
                if i % 50 == 0:
                    cache.invalidate(f"key:{i % 10}")
        except Exception as e:  # noqa: BLE001
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(cache) <= 10
    for i in range(10):
        assert cache.get(f"key:{i}") in (None, *range(8))


class TestCacheKey:
    """Tests for structured cache keys"""

    def test_date_key_ignores_time_of_day(self):
        morning = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)
        evening = datetime(2024, 3, 1, 22, 45, tzinfo=UTC)

        assert CacheKey.timeline_by_date(morning) == CacheKey.timeline_by_date(evening)
        assert CacheKey.timeline_by_date(morning) == CacheKey.timeline_by_date(date(2024, 3, 1))

    def test_offset_timestamps_key_on_their_utc_date(self):
        late_evening_new_york = datetime(2024, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

        assert CacheKey.timeline_by_date(late_evening_new_york) == CacheKey.timeline_by_date(date(2024, 3, 2))

    def test_different_dates_give_different_keys(self):
        assert CacheKey.timeline_by_date(date(2024, 3, 1)) != CacheKey.timeline_by_date(date(2024, 3, 2))

    def test_string_form(self):
        assert str(CacheKey.timeline_by_date(date(2024, 3, 1))) == "timeline:date:2024-03-01"
        assert str(CacheKey.timeline_all()) == "timeline:all"
        assert CacheKey.message_stats().namespace is CacheNamespace.MESSAGE_STATS

    def test_keys_work_as_cache_keys(self, cache):
        cache.set(CacheKey.timeline_by_date(date(2024, 3, 1)), "item", ttl=60)

        assert cache.get(CacheKey.timeline_by_date(datetime(2024, 3, 1, 12, 0))) == "item"
        assert cache.get(CacheKey.timeline_all()) is None
