"""
Fetch coordination on top of a CacheStore.

Callers ask for a key together with a producer. The coordinator answers from
the store when it can, otherwise makes sure at most one producer call per key
is running and hands its outcome to every caller waiting on that key.
"""

import asyncio
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    TYPE_CHECKING,
    TypeVar,
)

from shared.errors import CacheMissError
from shared.logging import get_logger
from .cache_store import MISSING, CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]
BatchFetcher = Callable[[List[str]], Awaitable[Mapping[str, Any]]]


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a fetch expressed as a value instead of an exception."""

    data: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FetchCoordinator:
    """Cache-or-coalesced-fetch access to a single store."""

    def __init__(
        self,
        store: CacheStore,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.metrics = metrics
        self.logger = get_logger(f"catalog_cache.fetch.{store.name}")
        self._in_flight: Dict[str, "asyncio.Task[Any]"] = {}
        self._hits = 0
        self._misses = 0
        self._joins = 0

    @property
    def name(self) -> str:
        return self.store.name

    async def get_data(
        self,
        key: str,
        fetcher: Fetcher[T],
        *,
        ttl: Optional[float] = None,
        force_refresh: bool = False,
        skip_fetch: bool = False,
    ) -> T:
        """Return the cached value for ``key`` or fetch it.

        With ``force_refresh`` the cache-hit check is skipped. With
        ``skip_fetch`` only the cache is consulted and a miss raises
        CacheMissError.
        """
        if not force_refresh:
            cached = self.store.get(key, MISSING)
            if cached is not MISSING:
                self._record("hit")
                return cached

        if skip_fetch:
            self._record("miss")
            raise CacheMissError(key)

        task = self._in_flight.get(key)
        if task is not None:
            self._record("join")
            self.logger.debug("Joining in-flight fetch", key=key)
        else:
            self._record("miss")
            task = asyncio.ensure_future(self._run_fetch(key, fetcher, ttl))
            task.add_done_callback(_consume_exception)
            self._in_flight[key] = task

        # A caller going away must not cancel the fetch other callers share.
        return await asyncio.shield(task)

    async def try_get_data(
        self,
        key: str,
        fetcher: Fetcher[T],
        *,
        ttl: Optional[float] = None,
        force_refresh: bool = False,
    ) -> FetchResult[T]:
        """Like get_data, but failures come back as a FetchResult."""
        try:
            data = await self.get_data(key, fetcher, ttl=ttl, force_refresh=force_refresh)
        except Exception as exc:
            return FetchResult(error=exc)
        return FetchResult(data=data)

    async def get_many(self, keys: Iterable[str], fetcher: BatchFetcher) -> Dict[str, Any]:
        """Return cached values for ``keys`` and fetch the rest in one call.

        ``fetcher`` receives the missing keys and returns a mapping of the
        values it found. Keys it omits are omitted from the result.
        """
        results: Dict[str, Any] = {}
        missing: List[str] = []

        for key in dict.fromkeys(keys):
            cached = self.store.get(key, MISSING)
            if cached is MISSING:
                missing.append(key)
            else:
                self._record("hit")
                results[key] = cached

        if not missing:
            return results

        for _ in missing:
            self._record("miss")

        fresh = await self._timed_fetch(lambda: fetcher(missing))
        for key, data in fresh.items():
            results[key] = data
            self.store.set(key, data)

        return results

    def set_optimistic(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Write ``data`` as though a fetch had just returned it.

        The value stays visible until a later fetch overwrites it or its TTL
        lapses, even if a fetch started afterwards fails.
        """
        self.store.set(key, data, ttl)
        self.logger.debug("Optimistic cache write", key=key)

    def invalidate(self, key: str) -> bool:
        return self.store.delete(key)

    def clear(self) -> None:
        """Empty the store. Fetches already running still write their result."""
        self.store.clear()

    def is_fetching(self, key: str) -> bool:
        return key in self._in_flight

    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        stats = self.store.stats()
        stats.update({
            "hits": self._hits,
            "misses": self._misses,
            "joins": self._joins,
            "hit_rate": f"{self._hits / total * 100:.1f}%" if total else "0%",
            "in_flight": len(self._in_flight),
        })
        return stats

    async def _run_fetch(self, key: str, fetcher: Fetcher[T], ttl: Optional[float]) -> T:
        try:
            result = await self._timed_fetch(fetcher)
        except Exception as exc:
            # No negative caching: the next call retries.
            self.logger.warning("Cache fetch failed", cache=self.name, key=key, error=str(exc))
            if self.metrics:
                self.metrics.increment_counter("cache_fetch_errors_total", cache=self.name)
            raise
        else:
            self.store.set(key, result, ttl)
            return result
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]

    async def _timed_fetch(self, fetcher: Callable[[], Awaitable[T]]) -> T:
        if not self.metrics:
            return await fetcher()
        with self.metrics.time_operation("cache_fetch_duration_seconds", cache=self.name):
            return await fetcher()

    def _record(self, result: str) -> None:
        if result == "hit":
            self._hits += 1
        elif result == "miss":
            self._misses += 1
        else:
            self._joins += 1

        if self.metrics:
            self.metrics.increment_counter("cache_requests_total", cache=self.name, result=result)


def _consume_exception(task: "asyncio.Task[Any]") -> None:
    """Mark a fetch failure as retrieved when every caller has gone away."""
    if not task.cancelled():
        task.exception()
