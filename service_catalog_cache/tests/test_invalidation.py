"""
Unit tests for cross-store pattern invalidation.
"""

import pytest

from service_catalog_cache.app.caching.cache_store import CacheConfig, CacheStore
from service_catalog_cache.app.caching.invalidation import InvalidationIndex
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeClock


class TestInvalidationIndex:
    """Test cases for InvalidationIndex."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def stores(self, clock):
        return {
            "user_data": CacheStore(CacheConfig(max_entries=10), name="user_data", clock=clock),
            "lists": CacheStore(CacheConfig(max_entries=10), name="lists", clock=clock),
        }

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("test")

    @pytest.fixture
    def index(self, stores, metrics):
        return InvalidationIndex(stores, metrics=metrics)

    def test_removes_matching_keys_only(self, index, stores):
        stores["user_data"].set("user:42:lists", 1)
        stores["user_data"].set("user:42:items", 2)
        stores["user_data"].set("user:7:lists", 3)

        removed = index.invalidate_pattern("user:42")

        assert removed == 2
        assert not stores["user_data"].has("user:42:lists")
        assert not stores["user_data"].has("user:42:items")
        assert stores["user_data"].has("user:7:lists")

    def test_spans_every_store(self, index, stores, metrics):
        stores["user_data"].set("user-media:42", [])
        stores["lists"].set("user-lists:42", [])
        stores["lists"].set("list-items:9", [])

        assert index.invalidate_pattern(":42") == 2
        assert stores["lists"].keys() == ["list-items:9"]
        assert stores["user_data"].keys() == []
        assert metrics.sample("cache_invalidations_total", cache="lists") == 1
        assert metrics.sample("cache_invalidations_total", cache="user_data") == 1

    def test_pattern_is_literal_not_regex(self, index, stores):
        stores["lists"].set("api-search:books:dune", 1)
        stores["lists"].set("api-search:books:dun.", 2)

        assert index.invalidate_pattern("dun.") == 1
        assert stores["lists"].has("api-search:books:dune")

    def test_no_match_removes_nothing(self, index, stores):
        stores["lists"].set("list-items:1", 1)

        assert index.invalidate_pattern("user:99") == 0
        assert stores["lists"].has("list-items:1")

    def test_expired_entries_are_purged_too(self, index, stores, clock):
        stores["lists"].set("user-lists:42", 1, ttl=1)
        clock.advance(5)

        assert index.invalidate_pattern("user-lists") == 1
        assert stores["lists"].stats()["items"] == []

    def test_add_store(self, clock):
        index = InvalidationIndex()
        store = CacheStore(CacheConfig(), name="api", clock=clock)
        store.set("api:search:q=dune", 1)

        index.add_store("api", store)

        assert list(index.stores) == ["api"]
        assert index.invalidate_pattern("dune") == 1

    def test_invalidate_keys_matches_exact_keys(self, index, stores, metrics):
        stores["lists"].set("user-lists:4", 1)
        stores["lists"].set("user-lists:42", 2)
        stores["user_data"].set("user-media:4", 3)

        removed = index.invalidate_keys(["user-lists:4", "user-media:4"])

        assert removed == 2
        assert stores["lists"].keys() == ["user-lists:42"]
        assert stores["user_data"].keys() == []
        assert metrics.sample("cache_invalidations_total", cache="lists") == 1
