"""
Explicit wiring of the cache layer.

The application builds one CacheContext at start-up and hands it to whoever
needs caching, instead of relying on module-level cache instances.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, TYPE_CHECKING

from shared.config import BaseConfig
from shared.errors import UnknownCacheError
from shared.logging import get_logger
from ..adapters.image_loader import HttpImageLoader
from .asset_preloader import AssetLoader, AssetPreloader
from .cache_store import CacheConfig, CacheStore
from .fetch_coordinator import FetchCoordinator
from .invalidation import InvalidationIndex
from . import keys

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


logger = get_logger("catalog_cache.context")


@dataclass
class CacheContext:
    """Every cache the application uses, constructed once."""

    api: FetchCoordinator
    user_data: FetchCoordinator
    lists: FetchCoordinator
    assets: AssetPreloader
    invalidation: InvalidationIndex

    @property
    def coordinators(self) -> Dict[str, FetchCoordinator]:
        return {
            "api": self.api,
            "user_data": self.user_data,
            "lists": self.lists,
        }

    def coordinator(self, name: str) -> FetchCoordinator:
        try:
            return self.coordinators[name]
        except KeyError:
            raise UnknownCacheError(name) from None

    def invalidate_pattern(self, substring: str) -> int:
        return self.invalidation.invalidate_pattern(substring)

    def invalidate_user(self, user_id: str) -> int:
        """Purge everything cached for ``user_id`` after one of their writes."""
        removed = self.invalidation.invalidate_keys(
            [keys.user_lists_key(user_id), keys.user_media_key(user_id)]
        )
        # "user:<id>:" ends in a delimiter, so the prefix cannot match other ids.
        removed += self.invalidation.invalidate_pattern(keys.user_key(user_id, ""))
        logger.info("Invalidated user cache", user_id=user_id, keys_count=removed)
        return removed

    async def aclose(self) -> None:
        await self.assets.aclose()

    def stats(self) -> Dict[str, object]:
        return {
            "caches": {name: c.stats() for name, c in self.coordinators.items()},
            "assets": self.assets.stats(),
        }


def build_cache_context(
    config: Optional[BaseConfig] = None,
    *,
    metrics: Optional["MetricsCollector"] = None,
    loader: Optional[AssetLoader] = None,
    clock: Callable[[], float] = time.monotonic,
) -> CacheContext:
    """Create the three named stores, the asset preloader and the invalidation index."""
    config = config or BaseConfig()

    store_configs = {
        "api": CacheConfig(
            max_entries=config.api_cache_max_entries,
            default_ttl=config.api_cache_ttl,
            schema_version=config.cache_schema_version,
        ),
        "user_data": CacheConfig(
            max_entries=config.user_cache_max_entries,
            default_ttl=config.user_cache_ttl,
            schema_version=config.cache_schema_version,
        ),
        "lists": CacheConfig(
            max_entries=config.list_cache_max_entries,
            default_ttl=config.list_cache_ttl,
            schema_version=config.cache_schema_version,
        ),
    }
    stores = {
        name: CacheStore(store_config, name=name, clock=clock, metrics=metrics)
        for name, store_config in store_configs.items()
    }

    if loader is None:
        loader = HttpImageLoader(timeout=config.asset_load_timeout)

    context = CacheContext(
        api=FetchCoordinator(stores["api"], metrics=metrics),
        user_data=FetchCoordinator(stores["user_data"], metrics=metrics),
        lists=FetchCoordinator(stores["lists"], metrics=metrics),
        assets=AssetPreloader(loader, metrics=metrics),
        invalidation=InvalidationIndex(stores, metrics=metrics),
    )
    logger.debug(
        "Cache context built",
        stores={name: c.max_entries for name, c in store_configs.items()},
        schema_version=config.cache_schema_version,
    )
    return context
