"""
Client-side caching package.

Provides the primitives data-access code uses to avoid repeated backend and
catalog API round trips: a TTL/version-aware store, a fetch coordinator that
coalesces concurrent requests per key, an asset preloader and cross-store
pattern invalidation. Prefer short TTLs for per-user data and explicit
invalidation after writes.
"""

from .asset_preloader import AssetPreloader
from .cache_store import MISSING, CacheConfig, CacheEntry, CacheStore
from .context import CacheContext, build_cache_context
from .fetch_coordinator import FetchCoordinator, FetchResult
from .invalidation import InvalidationIndex

__all__ = [
    "MISSING",
    "AssetPreloader",
    "CacheConfig",
    "CacheContext",
    "CacheEntry",
    "CacheStore",
    "FetchCoordinator",
    "FetchResult",
    "InvalidationIndex",
    "build_cache_context",
]
