"""
HTTP image loader used by the asset preloader.
"""

from typing import Optional

import httpx

from shared.errors import AssetLoadError
from shared.logging import get_logger


class HttpImageLoader:
    """Fetches an image URL and checks that an image actually came back."""

    def __init__(self, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self.logger = get_logger("catalog_cache.image_loader")
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def __call__(self, url: str) -> None:
        client = await self._get_client()
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("Image request failed", url=url, error=str(exc))
            raise AssetLoadError(url, "request failed", {"error": str(exc)}) from exc

        if response.status_code >= 400:
            self.logger.warning("Image request rejected", url=url, status_code=response.status_code)
            raise AssetLoadError(url, "bad status", {"status_code": response.status_code})

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("image/"):
            self.logger.warning("Asset is not an image", url=url, content_type=content_type)
            raise AssetLoadError(url, "not an image", {"content_type": content_type})

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
