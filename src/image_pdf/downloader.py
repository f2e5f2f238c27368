"""Parallel image fetching from HTTP(S) URLs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import unquote, urlsplit

import httpx

from .items import ImageItem

logger = logging.getLogger(__name__)

_DEFAULT_CONCURRENCY = 10
_DEFAULT_MAX_RETRIES = 3
_DEFAULT_TIMEOUT = 30.0


@dataclass
class FetchResult:
    """Images fetched from URLs, plus any failures.

    ``items`` lines up with the requested URLs; failed URLs leave ``None``.
    """

    items: list[ImageItem | None] = field(default_factory=list)
    failures: int = 0
    total_bytes: int = 0
    failed_urls: list[str] = field(default_factory=list)


def _name_from_url(url: str) -> str:
    path = urlsplit(url).path.rstrip("/")
    return unquote(path.rsplit("/", 1)[-1]) or url


def _mime_type(response: httpx.Response) -> str:
    return response.headers.get("content-type", "").split(";", 1)[0].strip().lower()


async def _fetch_one(
    client: httpx.AsyncClient,
    url: str,
    semaphore: asyncio.Semaphore,
    *,
    max_retries: int = _DEFAULT_MAX_RETRIES,
    timeout: float = _DEFAULT_TIMEOUT,
) -> ImageItem | None:
    """Fetch a single image with retries.

    Returns:
        The fetched :class:`ImageItem`, or ``None`` on failure.
    """
    async with semaphore:
        for attempt in range(1, max_retries + 1):
            try:
                response = await client.get(url, timeout=timeout)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                if attempt == max_retries:
                    logger.warning("Giving up on %s: %s", url, exc)
                    return None
                await asyncio.sleep(1.0 * attempt)
                continue

            mime_type = _mime_type(response)
            if not mime_type.startswith("image/"):
                logger.warning("Skipping %s: not an image (%s)", url, mime_type or "no type")
                return None
            return ImageItem(
                data=response.content,
                mime_type=mime_type,
                name=_name_from_url(url),
            )

    return None


async def fetch_image_items(
    urls: list[str],
    *,
    concurrency: int = _DEFAULT_CONCURRENCY,
    max_retries: int = _DEFAULT_MAX_RETRIES,
    client: httpx.AsyncClient | None = None,
    on_item_done: Callable[[], None] | None = None,
) -> FetchResult:
    """Download images in parallel, keeping the order of *urls*.

    Args:
        urls: Image URLs.
        concurrency: Maximum number of concurrent downloads.
        max_retries: Number of attempts per image.
        client: Client to use instead of a fresh :class:`httpx.AsyncClient`.
        on_item_done: Called after each URL finishes, successfully or not.

    Returns:
        A :class:`FetchResult` summarizing the outcome.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def _tracked(http: httpx.AsyncClient, url: str) -> ImageItem | None:
        item = await _fetch_one(
            client=http,
            url=url,
            semaphore=semaphore,
            max_retries=max_retries,
        )
        if on_item_done is not None:
            on_item_done()
        return item

    if client is not None:
        fetched = await asyncio.gather(*(_tracked(client, url) for url in urls))
    else:
        async with httpx.AsyncClient(follow_redirects=True) as own_client:
            fetched = await asyncio.gather(
                *(_tracked(own_client, url) for url in urls)
            )

    result = FetchResult()
    for url, item in zip(urls, fetched):
        result.items.append(item)
        if item is not None:
            result.total_bytes += len(item.data)
        else:
            result.failures += 1
            result.failed_urls.append(url)

    return result
