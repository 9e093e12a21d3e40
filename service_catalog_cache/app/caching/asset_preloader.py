"""
Asset (cover art, avatars, posters) preloading with in-flight coalescing.

Loaded URLs are remembered for the life of the process. Concurrent requests
for a URL that is still loading share one load and all see its outcome,
including failures.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

from shared.errors import AssetLoadError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

AssetLoader = Callable[[str], Awaitable[Any]]


class AssetPreloader:
    """Deduplicating, non-expiring cache of successfully loaded asset URLs."""

    def __init__(self, loader: AssetLoader, *, metrics: Optional["MetricsCollector"] = None):
        self._loader = loader
        self.metrics = metrics
        self.logger = get_logger("catalog_cache.assets")
        self._loaded: Dict[str, str] = {}
        self._loading: Dict[str, "asyncio.Task[str]"] = {}

    async def preload(self, url: str) -> str:
        """Load ``url`` once and return it; raises AssetLoadError on failure."""
        loaded = self._loaded.get(url)
        if loaded is not None:
            self._record("cached")
            return loaded

        task = self._loading.get(url)
        if task is None:
            task = asyncio.ensure_future(self._load(url))
            task.add_done_callback(_consume_exception)
            self._loading[url] = task
        else:
            self._record("joined")

        return await asyncio.shield(task)

    async def resolve(self, url: Optional[str], fallback: Optional[str] = None) -> Optional[str]:
        """Return the loaded URL, or ``fallback`` when it is empty or fails to load."""
        if not url:
            return fallback
        try:
            return await self.preload(url)
        except AssetLoadError:
            return fallback

    def is_loaded(self, url: str) -> bool:
        return url in self._loaded

    def is_loading(self, url: str) -> bool:
        return url in self._loading

    def clear(self) -> None:
        """Forget loaded and loading URLs. Loads already running are not cancelled."""
        self._loaded.clear()
        self._loading.clear()

    async def aclose(self) -> None:
        """Release resources held by the loader, if it holds any."""
        close = getattr(self._loader, "close", None)
        if close is not None:
            await close()

    def stats(self) -> Dict[str, Any]:
        return {
            "loaded": len(self._loaded),
            "loading": len(self._loading),
        }

    async def _load(self, url: str) -> str:
        try:
            await self._loader(url)
        except AssetLoadError:
            self._record("failed")
            raise
        except Exception as exc:
            self._record("failed")
            self.logger.warning("Asset load failed", url=url, error=str(exc))
            raise AssetLoadError(url, str(exc)) from exc
        finally:
            if self._loading.get(url) is asyncio.current_task():
                del self._loading[url]

        self._loaded[url] = url
        self._record("loaded")
        self.logger.debug("Asset loaded", url=url)
        return url

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("asset_loads_total", result=result)


def _consume_exception(task: "asyncio.Task[Any]") -> None:
    if not task.cancelled():
        task.exception()
