"""
Cross-store invalidation by key substring.
"""

from typing import Dict, Iterable, Mapping, Optional, TYPE_CHECKING

from shared.logging import get_logger
from .cache_store import CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class InvalidationIndex:
    """Purges entries across several stores after a write elsewhere.

    Matching is a literal substring test on the key, not a regex. Asset
    preloader state is never touched.
    """

    def __init__(
        self,
        stores: Optional[Mapping[str, CacheStore]] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.metrics = metrics
        self.logger = get_logger("catalog_cache.invalidation")
        self._stores: Dict[str, CacheStore] = dict(stores or {})

    def add_store(self, name: str, store: CacheStore) -> None:
        self._stores[name] = store

    @property
    def stores(self) -> Dict[str, CacheStore]:
        return dict(self._stores)

    def invalidate_keys(self, keys: Iterable[str]) -> int:
        """Delete exactly ``keys`` from every store; return how many went."""
        keys = list(keys)
        removed_total = 0
        for name, store in self._stores.items():
            removed = sum(1 for key in keys if store.delete(key))
            if removed and self.metrics:
                self.metrics.increment_counter("cache_invalidations_total", removed, cache=name)
            removed_total += removed

        self.logger.info("Invalidated cache keys", keys=keys, keys_count=removed_total)
        return removed_total

    def invalidate_pattern(self, substring: str) -> int:
        """Delete every key containing ``substring``; return how many went."""
        removed_total = 0
        for name, store in self._stores.items():
            removed = 0
            for item in store.stats()["items"]:
                if substring in item["key"] and store.delete(item["key"]):
                    removed += 1

            if removed and self.metrics:
                self.metrics.increment_counter("cache_invalidations_total", removed, cache=name)
            removed_total += removed

        self.logger.info("Invalidated cache pattern", pattern=substring, keys_count=removed_total)
        return removed_total
