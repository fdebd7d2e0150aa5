"""
lotofiesta.fr scraper.

Fetches the tirage listing and product pages, and downloads prize list
images for OCR. Parsing lives in `lotoquine.parsers.tirage_listing`.

Network failures never raise to the caller: a listing that cannot be
fetched degrades to the last cached one (or an empty list), a prize
image that cannot be found or downloaded degrades to None.
"""

import logging
from datetime import UTC, datetime

import httpx

from lotoquine.config import settings
from lotoquine.models.prize import Tirage, TirageCache
from lotoquine.parsers.tirage_listing import find_prizes_image_url, parse_tirages

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# fetched_at of a cache entry that must be refetched on next use
NEVER_FETCHED = datetime.min.replace(tzinfo=UTC)


def create_client() -> httpx.Client:
    """HTTP client configured for lotofiesta.fr."""
    return httpx.Client(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=settings.http_timeout,
    )


def _get(url: str, client: httpx.Client | None) -> httpx.Response:
    if client:
        response = client.get(url)
    else:
        response = httpx.get(
            url,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=settings.http_timeout,
        )
    response.raise_for_status()
    return response


def fetch_listing_page(client: httpx.Client | None = None) -> str:
    """
    Fetch the listing page HTML.

    Raises:
        httpx.HTTPError: If request fails
    """
    return _get(f"{settings.lotofiesta_base_url.rstrip('/')}/", client).text


def fetch_tirages(
    cache: TirageCache[list[Tirage]] | None = None,
    client: httpx.Client | None = None,
    now: datetime | None = None,
) -> TirageCache[list[Tirage]]:
    """
    Tirages listed on the site, cached for `tirage_cache_ttl_seconds`.

    The cache belongs to the caller: pass back the entry returned by the
    previous call.

    Args:
        cache: Entry returned by a previous call
        client: Optional httpx client for connection reuse
        now: Current time, for tests

    Returns:
        Fresh cache entry, or the given one when still fresh. On HTTP
        failure the given entry is returned as is (stale data beats no
        data), or an empty never-fresh entry when there is none.
    """
    now = now or datetime.now(UTC)
    if cache is not None and cache.is_fresh(settings.tirage_cache_ttl_seconds, now):
        logger.debug("tirage_cache_hit", extra={"tirage_count": len(cache.value)})
        return cache

    try:
        html = fetch_listing_page(client)
    except httpx.HTTPError as e:
        logger.warning("tirage_listing_fetch_failed", extra={"error": str(e)})
        return cache if cache is not None else TirageCache(value=[], fetched_at=NEVER_FETCHED)

    tirages = parse_tirages(html, settings.lotofiesta_base_url)
    logger.info("tirage_listing_fetched", extra={"tirage_count": len(tirages)})
    return TirageCache(value=tirages, fetched_at=now)


def fetch_prizes_image_url(tirage_url: str, client: httpx.Client | None = None) -> str | None:
    """
    Locate the prize list image of a tirage.

    Returns:
        Image URL, None when the page has none or cannot be fetched
    """
    try:
        html = _get(tirage_url, client).text
    except httpx.HTTPError as e:
        logger.warning(
            "tirage_page_fetch_failed",
            extra={"url": tirage_url, "error": str(e)},
        )
        return None

    image_url = find_prizes_image_url(html)
    if image_url is None:
        logger.info("prizes_image_not_found", extra={"url": tirage_url})
    return image_url


def download_image(image_url: str, client: httpx.Client | None = None) -> bytes | None:
    """Raw bytes of an image, None on HTTP failure."""
    try:
        return _get(image_url, client).content
    except httpx.HTTPError as e:
        logger.warning(
            "image_download_failed",
            extra={"url": image_url, "error": str(e)},
        )
        return None
