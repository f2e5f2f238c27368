"""Resolve a mixed list of paths and URLs into ordered image items."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from .downloader import fetch_image_items
from .items import ImageItem, load_image_items


def is_url(source: Path | str) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


@dataclass
class CollectedItems:
    """Items gathered from all sources, in the order the sources were given."""

    items: list[ImageItem] = field(default_factory=list)
    failures: int = 0
    failed_sources: list[str] = field(default_factory=list)


async def collect_items(
    sources: Sequence[Path | str],
    *,
    concurrency: int = 10,
    max_retries: int = 3,
    client: httpx.AsyncClient | None = None,
    on_item_done: Callable[[], None] | None = None,
) -> CollectedItems:
    """Load local files and fetch URLs, preserving source order.

    All URLs are fetched concurrently; a failed URL is reported in
    :attr:`CollectedItems.failed_sources` and contributes no item.

    Raises:
        FileNotFoundError: If a local path does not exist.
    """
    # Local files are read first so a bad path fails before any download.
    local = {
        index: load_image_items([source])
        for index, source in enumerate(sources)
        if not is_url(source)
    }
    urls = [str(s) for s in sources if is_url(s)]
    result = CollectedItems()
    fetched = iter(())

    if urls:
        fetch_result = await fetch_image_items(
            urls,
            concurrency=concurrency,
            max_retries=max_retries,
            client=client,
            on_item_done=on_item_done,
        )
        fetched = iter(fetch_result.items)
        result.failures = fetch_result.failures
        result.failed_sources = list(fetch_result.failed_urls)

    for index in range(len(sources)):
        if index in local:
            result.items.extend(local[index])
            continue
        item = next(fetched)
        if item is not None:
            result.items.append(item)
    return result
