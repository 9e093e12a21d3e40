"""
Tests for the preload_assets operator script.
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

import preload_assets
from service_catalog_cache.app.caching.asset_preloader import AssetPreloader
from shared.errors import AssetLoadError


GOOD_URL = "https://img.example/poster.jpg"
BAD_URL = "https://img.example/broken.jpg"


async def _load(url):
    if url == BAD_URL:
        raise AssetLoadError(url, "not an image")


class TestPreloadAssetsScript:
    """Test cases for the preload script."""

    @pytest.mark.asyncio
    async def test_preload_summary(self):
        preloader = AssetPreloader(AsyncMock(side_effect=_load))

        summary = await preload_assets.preload(
            [GOOD_URL, BAD_URL, GOOD_URL],
            concurrency=2,
            timeout=1.0,
            preloader=preloader,
        )

        assert summary["requested"] == 2
        assert summary["loaded"] == 1
        assert summary["failed"] == 1
        assert summary["errors"] == [{"url": BAD_URL, "reason": "not an image"}]

    def test_main_reads_file_and_reports_failure(self, tmp_path, capsys):
        url_file = tmp_path / "urls.txt"
        url_file.write_text(f"# covers\n{GOOD_URL}\n\n{BAD_URL}\n")
        output = tmp_path / "summary.json"

        with patch.object(preload_assets, "HttpImageLoader", return_value=AsyncMock(side_effect=_load)):
            exit_code = preload_assets.main(["--file", str(url_file), "--output", str(output)])

        assert exit_code == 1
        written = json.loads(output.read_text())
        assert written["requested"] == 2
        assert written["failed"] == 1
        assert json.loads(capsys.readouterr().out) == written

    def test_main_without_urls(self, capsys):
        assert preload_assets.main([]) == 2
        assert "no URLs" in capsys.readouterr().err
