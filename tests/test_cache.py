"""Tests for search result caches."""

from __future__ import annotations

import pytest

from sfdocs.index.cache import NullResultCache, TTLResultCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestTTLResultCache:
    """Tests for TTLResultCache."""

    def test_miss_returns_none(self) -> None:
        cache: TTLResultCache[list] = TTLResultCache()
        assert cache.get("missing") is None

    def test_set_then_get(self) -> None:
        cache: TTLResultCache[list] = TTLResultCache()
        cache.set("key", [1, 2])
        assert cache.get("key") == [1, 2]
        assert len(cache) == 1

    def test_entry_expires(self) -> None:
        clock = FakeClock()
        cache: TTLResultCache[str] = TTLResultCache(ttl=300.0, clock=clock)
        cache.set("key", "value")

        clock.now += 299.0
        assert cache.get("key") == "value"

        clock.now += 1.0
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_set_refreshes_expiry(self) -> None:
        clock = FakeClock()
        cache: TTLResultCache[str] = TTLResultCache(ttl=10.0, clock=clock)
        cache.set("key", "old")
        clock.now += 8.0
        cache.set("key", "new")
        clock.now += 8.0
        assert cache.get("key") == "new"

    def test_evicts_least_recently_used(self) -> None:
        cache: TTLResultCache[int] = TTLResultCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.get("a") == 1
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert len(cache) == 2

    def test_clear(self) -> None:
        cache: TTLResultCache[int] = TTLResultCache()
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            TTLResultCache(max_entries=0)


class TestNullResultCache:
    """Tests for NullResultCache."""

    def test_never_stores(self) -> None:
        cache: NullResultCache[int] = NullResultCache()
        cache.set("a", 1)
        assert cache.get("a") is None
        assert len(cache) == 0
        cache.clear()
