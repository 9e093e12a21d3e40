"""
Diagnostics service for the media catalog cache layer.

Exposes cache statistics and the invalidation/preload operations that write
paths and operators need, over the same CacheContext the application uses.
"""

import asyncio
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import AssetLoadError, ValidationError
from shared.logging import set_user_context
from shared.metrics import MetricsCollector, get_metrics_collector
from .caching.context import CacheContext, build_cache_context


SERVICE_NAME = "catalog_cache"
SERVICE_PORT = 8020


class InvalidatePatternRequest(BaseModel):
    pattern: str


class PreloadRequest(BaseModel):
    urls: List[str] = Field(default_factory=list)


class CatalogCacheService(BaseService):
    """Cache diagnostics and maintenance endpoints."""

    def __init__(
        self,
        context: Optional[CacheContext] = None,
        *,
        config: Optional[ServiceConfig] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        config = config or get_config(SERVICE_NAME, SERVICE_PORT)
        metrics = metrics or get_metrics_collector(SERVICE_NAME)
        super().__init__(SERVICE_NAME, config.port, config=config, metrics=metrics)
        self.context = context or build_cache_context(self.config, metrics=self.metrics)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.context.aclose()

        self._setup_cache_routes()
        self.app.state.catalog_cache_service = self

    async def _check_dependencies(self) -> Dict[str, str]:
        return {name: "ok" for name in self.context.coordinators}

    def _setup_cache_routes(self):
        """Set up cache routes."""

        @self.app.get("/api/v1/cache/stats")
        async def get_cache_stats():
            """Get per-store and asset cache statistics."""
            return self.context.stats()

        @self.app.post("/api/v1/cache/invalidate")
        async def invalidate_pattern(body: InvalidatePatternRequest):
            """Purge every entry whose key contains the pattern."""
            if not body.pattern:
                raise ValidationError("Pattern must not be empty", {"field": "pattern"})

            removed = self.context.invalidate_pattern(body.pattern)
            return {"pattern": body.pattern, "removed": removed}

        @self.app.delete("/api/v1/cache/users/{user_id}")
        async def invalidate_user(user_id: str):
            """Purge cached lists, library and profile data for a user."""
            set_user_context(user_id)
            removed = self.context.invalidate_user(user_id)
            return {"user_id": user_id, "removed": removed}

        @self.app.post("/api/v1/cache/{name}/clear")
        async def clear_cache(name: str):
            """Clear one named store."""
            coordinator = self.context.coordinator(name)
            cleared = len(coordinator.store)
            coordinator.clear()
            self.logger.info("Cleared cache", cache=name, keys_count=cleared)
            return {"cache": name, "cleared": cleared}

        @self.app.post("/api/v1/assets/preload")
        async def preload_assets(body: PreloadRequest):
            """Preload asset URLs and report each outcome."""
            outcomes = await asyncio.gather(
                *(self._preload_one(url) for url in body.urls)
            )
            return {
                "requested": len(body.urls),
                "loaded": sum(1 for outcome in outcomes if outcome["status"] == "loaded"),
                "results": outcomes,
            }

        @self.app.post("/api/v1/assets/clear")
        async def clear_assets():
            """Forget every loaded asset URL."""
            self.context.assets.clear()
            return {"status": "cleared"}

    async def _preload_one(self, url: str) -> Dict[str, Any]:
        try:
            resolved = await self.context.assets.preload(url)
        except AssetLoadError as exc:
            return {"url": url, "status": "failed", "error": exc.reason}
        return {"url": resolved, "status": "loaded", "error": None}


def create_app(context: Optional[CacheContext] = None):
    """Create FastAPI application."""
    service = CatalogCacheService(context)
    return service.app


if __name__ == "__main__":
    service = CatalogCacheService()
    service.run()
