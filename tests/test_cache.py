"""Tests for the TTL cache."""

import threading
from datetime import timedelta
from unittest.mock import MagicMock

from conftest import MockClock

from ytmproxy.services.cache import TTLCache

TTL = timedelta(minutes=30)


class TestGetPut:
    """Tests for basic reads and writes."""

    def test_returns_stored_value(self, clock: MockClock) -> None:
        cache: TTLCache[str] = TTLCache("test", clock=clock)
        cache.put("key", "value", TTL)
        assert cache.get("key") == "value"

    def test_missing_key_returns_none(self, clock: MockClock) -> None:
        cache: TTLCache[str] = TTLCache("test", clock=clock)
        assert cache.get("missing") is None

    def test_expired_entry_not_returned(self, clock: MockClock) -> None:
        cache: TTLCache[str] = TTLCache("test", clock=clock)
        cache.put("key", "value", TTL)

        clock.advance(TTL.total_seconds())

        assert cache.get("key") is None
        assert len(cache) == 1  # only sweeps remove entries

    def test_put_replaces_and_refreshes(self, clock: MockClock) -> None:
        cache: TTLCache[str] = TTLCache("test", clock=clock)
        cache.put("key", "old", TTL)
        clock.advance(20 * 60)

        cache.put("key", "new", TTL)
        clock.advance(20 * 60)

        assert cache.get("key") == "new"


class TestSweepAndClear:
    """Tests for sweep_expired, clear and eviction callbacks."""

    def test_sweep_removes_only_expired(self, clock: MockClock) -> None:
        on_evict = MagicMock()
        cache: TTLCache[str] = TTLCache("test", clock=clock, on_evict=on_evict)
        cache.put("short", "a", timedelta(minutes=1))
        cache.put("long", "b", timedelta(hours=1))
        clock.advance(120)

        removed = cache.sweep_expired()

        assert removed == 1
        assert len(cache) == 1
        assert cache.get("long") == "b"
        on_evict.assert_called_once_with("a")

    def test_clear_disposes_everything(self, clock: MockClock) -> None:
        on_evict = MagicMock()
        cache: TTLCache[str] = TTLCache("test", clock=clock, on_evict=on_evict)
        cache.put("a", "1", TTL)
        cache.put("b", "2", TTL)

        assert cache.clear() == 2
        assert len(cache) == 0
        assert on_evict.call_count == 2

    def test_dispose_failure_does_not_stop_clear(self, clock: MockClock) -> None:
        on_evict = MagicMock(side_effect=[RuntimeError("boom"), None])
        cache: TTLCache[str] = TTLCache("test", clock=clock, on_evict=on_evict)
        cache.put("a", "1", TTL)
        cache.put("b", "2", TTL)

        assert cache.clear() == 2
        assert on_evict.call_count == 2


class TestStats:
    """Tests for stats."""

    def test_counts_valid_and_expired(self, clock: MockClock) -> None:
        cache: TTLCache[str] = TTLCache("test", clock=clock)
        cache.put("a", "1", timedelta(minutes=1))
        cache.put("b", "2", timedelta(hours=1))
        clock.advance(120)

        stats = cache.stats()

        assert stats.total_entries == 2
        assert stats.valid_entries == 1
        assert stats.expired_entries == 1


class TestConcurrency:
    """Tests for concurrent access."""

    def test_concurrent_puts_and_gets(self, clock: MockClock) -> None:
        cache: TTLCache[int] = TTLCache("test", clock=clock)

        def _worker(offset: int) -> None:
            for i in range(200):
                key = f"k{(offset + i) % 50}"
                cache.put(key, i, TTL)
                cache.get(key)
                if i % 25 == 0:
                    cache.sweep_expired()

        threads = [threading.Thread(target=_worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 50
