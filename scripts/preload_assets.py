#!/usr/bin/env python3
"""
Preload cover art and avatar URLs through the asset preloader.

Useful for checking that a batch of catalog image URLs resolve to real images
before they are shown to users. URLs come from the command line or a file
(one per line).
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Iterable, List, Optional
import os
import sys

from service_catalog_cache.app.adapters.image_loader import HttpImageLoader
from service_catalog_cache.app.caching.asset_preloader import AssetPreloader
from shared.errors import AssetLoadError
from shared.logging import configure_logging


async def preload(
    urls: Iterable[str],
    *,
    concurrency: int,
    timeout: float,
    preloader: Optional[AssetPreloader] = None,
) -> dict:
    """Preload every URL and return the summary."""
    own_preloader = preloader is None
    if preloader is None:
        preloader = AssetPreloader(HttpImageLoader(timeout=timeout))

    semaphore = asyncio.Semaphore(max(1, concurrency))
    url_list = list(dict.fromkeys(urls))
    summary = {"requested": len(url_list), "loaded": 0, "failed": 0, "errors": []}

    async def _one(url: str) -> None:
        async with semaphore:
            try:
                await preloader.preload(url)
            except AssetLoadError as exc:
                summary["failed"] += 1
                summary["errors"].append({"url": url, "reason": exc.reason})
            else:
                summary["loaded"] += 1

    try:
        await asyncio.gather(*(_one(url) for url in url_list))
    finally:
        if own_preloader:
            await preloader.aclose()

    return summary


def _read_urls(args: argparse.Namespace) -> List[str]:
    urls = list(args.urls)
    if args.file:
        for line in args.file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                urls.append(line)
    return urls


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preload catalog image URLs.")
    parser.add_argument("urls", nargs="*", help="Image URLs to preload")
    parser.add_argument("--file", type=Path, default=None, help="File with one URL per line")
    parser.add_argument("--concurrency", type=int, default=int(os.getenv("CATALOG_PRELOAD_CONCURRENCY", 5)), help="Concurrent loads")
    parser.add_argument("--timeout", type=float, default=float(os.getenv("CATALOG_ASSET_LOAD_TIMEOUT", 10.0)), help="Per-request timeout in seconds")
    parser.add_argument("--log-level", default=os.getenv("CATALOG_LOG_LEVEL", "warning"), help="Log level")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging("preload_assets", args.log_level)

    urls = _read_urls(args)
    if not urls:
        print("[preload] no URLs given", file=sys.stderr)
        return 2

    try:
        summary = asyncio.run(preload(urls, concurrency=args.concurrency, timeout=args.timeout))
    except KeyboardInterrupt:
        return 130

    print(json.dumps(summary, indent=2))

    if args.output:
        args.output.write_text(json.dumps(summary, indent=2))

    return 0 if summary["failed"] == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
