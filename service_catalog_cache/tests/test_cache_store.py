"""
Unit tests for the TTL/version-aware cache store.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from service_catalog_cache.app.caching.cache_store import MISSING, CacheConfig, CacheStore
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeClock


class TestCacheStore:
    """Test cases for CacheStore."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        """Create a store with a short default TTL."""
        return CacheStore(
            CacheConfig(max_entries=3, default_ttl=60, schema_version="1"),
            name="test",
            clock=clock,
        )

    def test_set_then_get_returns_value(self, store):
        store.set("user-media:42", ["a", "b"], ttl=30)

        assert store.get("user-media:42") == ["a", "b"]
        assert store.has("user-media:42")

    def test_get_missing_key_returns_default(self, store):
        assert store.get("nope") is None
        assert store.get("nope", MISSING) is MISSING
        assert not store.has("nope")

    def test_none_is_a_cacheable_value(self, store):
        store.set("profile:7", None)

        assert store.has("profile:7")
        assert store.get("profile:7", MISSING) is None

    def test_entry_valid_until_ttl_elapses(self, store, clock):
        store.set("k", 1, ttl=10)

        clock.advance(10)
        assert store.get("k") == 1

        clock.advance(0.001)
        assert store.get("k") is None

    def test_expired_entry_removed_from_stats(self, store, clock):
        store.set("k", 1, ttl=5)
        clock.advance(6)

        assert [item["key"] for item in store.stats()["items"]] == ["k"]
        assert store.get("k") is None
        assert store.stats()["items"] == []
        assert store.stats()["size"] == 0

    def test_default_ttl_used_when_not_given(self, store, clock):
        store.set("k", 1)

        clock.advance(59)
        assert store.has("k")
        clock.advance(2)
        assert not store.has("k")

    def test_zero_ttl_is_honoured(self, store, clock):
        store.set("k", 1, ttl=0)

        assert store.has("k")
        clock.advance(0.5)
        assert not store.has("k")

    def test_version_change_invalidates_entries(self, store):
        store.set("k", "old-format")
        store.set_schema_version("2")

        assert store.get("k") is None
        assert "k" not in store.keys()

        store.set("k", "new-format")
        assert store.get("k") == "new-format"
        assert store.stats()["version"] == "2"

    def test_capacity_evicts_oldest_write(self, clock):
        store = CacheStore(CacheConfig(max_entries=2), clock=clock)

        store.set("a", 1)
        clock.advance(1)
        store.set("b", 2)
        clock.advance(1)
        store.set("c", 3)

        assert store.has("a") is False
        assert store.has("b") is True
        assert store.has("c") is True

    def test_capacity_eviction_with_identical_timestamps(self, clock):
        store = CacheStore(CacheConfig(max_entries=2), clock=clock)

        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)

        assert store.keys() == ["b", "c"]

    def test_reads_do_not_refresh_eviction_priority(self, clock):
        store = CacheStore(CacheConfig(max_entries=2), clock=clock)

        store.set("a", 1)
        clock.advance(1)
        store.set("b", 2)
        clock.advance(1)
        assert store.get("a") == 1
        store.set("c", 3)

        assert not store.has("a")
        assert store.has("b")

    def test_rewrite_moves_key_to_newest(self, clock):
        store = CacheStore(CacheConfig(max_entries=2), clock=clock)

        store.set("a", 1)
        clock.advance(1)
        store.set("b", 2)
        clock.advance(1)
        store.set("a", 10)
        clock.advance(1)
        store.set("c", 3)

        assert store.get("a") == 10
        assert not store.has("b")

    def test_rewrite_resets_written_at(self, store, clock):
        store.set("k", 1, ttl=10)
        clock.advance(8)
        store.set("k", 2, ttl=10)
        clock.advance(8)

        assert store.get("k") == 2

    def test_delete_and_clear(self, store):
        store.set("a", 1)
        store.set("b", 2)

        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.keys() == ["b"]

        store.clear()
        assert len(store) == 0

    def test_stats_reports_age_and_ttl(self, store, clock):
        store.set("a", 1, ttl=30)
        clock.advance(12)

        stats = store.stats()

        assert stats["size"] == 1
        assert stats["max_size"] == 3
        assert stats["version"] == "1"
        assert stats["items"] == [{"key": "a", "age": 12, "ttl": 30}]

    def test_metrics_record_evictions_and_size(self, clock):
        metrics = MetricsCollector("test")
        store = CacheStore(CacheConfig(max_entries=1), name="lists", clock=clock, metrics=metrics)

        store.set("a", 1)
        store.set("b", 2)

        assert metrics.sample("cache_evictions_total", cache="lists") == 1
        assert metrics.sample("cache_entries", cache="lists") == 1

    def test_config_validation(self):
        with pytest.raises(PydanticValidationError):
            CacheConfig(max_entries=0)

        with pytest.raises(PydanticValidationError):
            CacheConfig(schema_version="")
