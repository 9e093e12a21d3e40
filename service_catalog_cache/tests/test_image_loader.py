"""
Unit tests for the HTTP image loader.
"""

import httpx
import pytest

from service_catalog_cache.app.adapters.image_loader import HttpImageLoader
from shared.errors import AssetLoadError


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpImageLoader:
    """Test cases for HttpImageLoader."""

    @pytest.mark.asyncio
    async def test_image_response_loads(self):
        def handler(request):
            return httpx.Response(200, headers={"content-type": "image/jpeg"}, content=b"\xff\xd8")

        loader = HttpImageLoader(client=_client(handler))

        assert await loader("https://img.example/poster.jpg") is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(404)

        loader = HttpImageLoader(client=_client(handler))

        with pytest.raises(AssetLoadError) as exc_info:
            await loader("https://img.example/missing.jpg")

        assert exc_info.value.details["status_code"] == 404
        assert exc_info.value.reason == "bad status"

    @pytest.mark.asyncio
    async def test_non_image_content_raises(self):
        def handler(request):
            return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html>")

        loader = HttpImageLoader(client=_client(handler))

        with pytest.raises(AssetLoadError) as exc_info:
            await loader("https://img.example/login")

        assert exc_info.value.reason == "not an image"

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        loader = HttpImageLoader(client=_client(handler))

        with pytest.raises(AssetLoadError) as exc_info:
            await loader("https://img.example/poster.jpg")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        client = _client(lambda request: httpx.Response(200, headers={"content-type": "image/png"}))
        loader = HttpImageLoader(client=client)

        await loader.close()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        loader = HttpImageLoader(timeout=1.0)
        client = await loader._get_client()

        await loader.close()

        assert client.is_closed
