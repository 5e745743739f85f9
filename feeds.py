"""Async RSS/Atom feed fetching and parsing.

This module retrieves one configured source at a time and converts its
entries into RawItem records for the ingestion pipeline.

Features:
    - Concurrent fetching with connection pooling
    - SSL certificate handling with fallback
    - RSS <item> and Atom <entry> documents (via feedparser)
    - RFC-822 and ISO-8601 publication dates
    - Image discovery: embedded media, enclosure link, inline <img>

Error Handling Strategy:
    - Network errors, timeouts, bad HTTP statuses and unparseable
      documents raise FetchError inside this module
    - fetch_source() catches FetchError, logs it and returns no items,
      so one broken feed never affects the others
"""

import asyncio
import logging
import re
import ssl
from datetime import datetime, timezone

import aiohttp
import certifi
import feedparser

from models.article import DEFAULT_IMAGE_URL
from models.source import RawItem, SourceDescriptor

logger = logging.getLogger(__name__)

# Browser-like User-Agent to avoid being blocked by some servers
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

_IMG_SRC_PATTERN = re.compile(r"""<img[^>]+src\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


class FetchError(Exception):
    """A feed could not be retrieved or parsed."""


def _ssl_context(verify: bool = True) -> ssl.SSLContext:
    """Create SSL context with optional certificate verification.

    Args:
        verify: If True, verify SSL certificates using certifi bundle.
                If False, disable verification (for problematic servers).

    Returns:
        Configured SSL context
    """
    if verify:
        return ssl.create_default_context(cafile=certifi.where())
    # Fallback: disable verification for servers with cert issues
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def _parse_date(entry: dict) -> datetime | None:
    """Extract publication date from feed entry.

    Tries published, updated, then created. feedparser has already
    normalized RFC-822 and ISO-8601 strings into UTC time tuples.

    Returns:
        Datetime in UTC, or None if no valid date found
    """
    for field in ("published_parsed", "updated_parsed", "created_parsed"):
        time_tuple = entry.get(field)
        if time_tuple:
            try:
                return datetime(*time_tuple[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    return None


def _entry_body(entry: dict) -> str:
    """Return the entry's description/summary, falling back to Atom content."""
    body = entry.get("description", "") or entry.get("summary", "")
    if body:
        return body
    for content in entry.get("content") or []:
        value = content.get("value", "")
        if value:
            return value
    return ""


def _is_image_link(link: dict) -> bool:
    if link.get("rel") != "enclosure":
        return False
    media_type = link.get("type", "")
    # Untyped enclosures are accepted; typed ones must be images
    return not media_type or media_type.startswith("image/")


def _extract_image(entry: dict, body: str) -> str:
    """Find an image for the entry.

    Preference order:
    1. Embedded media (media:content, then media:thumbnail)
    2. Link attachment (enclosure with an image type)
    3. First inline <img src> inside the body

    Returns:
        Image URL, or the placeholder image when none is found
    """
    for field in ("media_content", "media_thumbnail"):
        for media in entry.get(field) or []:
            url = media.get("url")
            if url:
                return url

    for link in entry.get("links") or []:
        if _is_image_link(link) and link.get("href"):
            return link["href"]

    match = _IMG_SRC_PATTERN.search(body or "")
    if match:
        return match.group(1)

    return DEFAULT_IMAGE_URL


async def _fetch_feed(
    session: aiohttp.ClientSession,
    url: str,
    timeout: int,
    verify_ssl: bool = True,
) -> str:
    """Fetch feed content from URL with SSL fallback.

    On SSL certificate errors, retries once without verification.

    Args:
        session: aiohttp client session
        url: Feed URL to fetch
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify SSL certificates

    Returns:
        Feed content as string

    Raises:
        FetchError: On any network, timeout or HTTP status failure
    """
    try:
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            headers={"User-Agent": USER_AGENT},
            ssl=_ssl_context(verify_ssl),
        ) as resp:
            if resp.status != 200:
                raise FetchError(f"HTTP {resp.status}")
            return await resp.text()
    except aiohttp.ClientSSLError as e:
        if verify_ssl:
            logger.debug("Feed %s: SSL error, retrying without verification", url)
            return await _fetch_feed(session, url, timeout, verify_ssl=False)
        raise FetchError(f"SSL verification failed after retry: {e}") from e
    except asyncio.TimeoutError as e:
        raise FetchError(f"request timed out after {timeout}s") from e
    except (aiohttp.ClientError, UnicodeDecodeError) as e:
        raise FetchError(f"{type(e).__name__}: {e}") from e


def parse_feed_content(content: str) -> list[RawItem]:
    """Parse feed content into RawItem records.

    Entries without a title or link are still returned; the pipeline
    decides what to skip.

    Args:
        content: Raw feed content (RSS or Atom XML)

    Returns:
        List of RawItem objects (may be empty for a valid empty feed)

    Raises:
        FetchError: If the document is not a feed at all
    """
    feed = feedparser.parse(content)
    if feed.bozo and not feed.entries:
        reason = feed.get("bozo_exception")
        raise FetchError(f"unparseable feed: {reason}")

    items = []
    for entry in feed.entries:
        body = _entry_body(entry)
        items.append(RawItem(
            title=entry.get("title", "").strip(),
            url=entry.get("link", "").strip(),
            body_text=body,
            published_at=_parse_date(entry),
            image_url=_extract_image(entry, body),
        ))
    return items


async def fetch_source(
    session: aiohttp.ClientSession,
    source: SourceDescriptor,
    timeout: int = 30,
) -> list[RawItem]:
    """Fetch and parse a single source.

    Never raises: failures are logged and yield an empty list.

    Args:
        session: aiohttp client session
        source: Source to fetch
        timeout: Request timeout in seconds

    Returns:
        List of RawItem objects from the feed
    """
    try:
        content = await _fetch_feed(session, source.feed_url, timeout)
        items = parse_feed_content(content)
    except FetchError as e:
        logger.warning("Feed failed | source=%s url=%s error=%s", source.name, source.feed_url, e)
        return []
    logger.debug("Feed fetched | source=%s items=%d", source.name, len(items))
    return items


async def fetch_all_sources(
    sources: list[SourceDescriptor],
    timeout: int = 30,
    max_concurrent: int = 10,
) -> list[tuple[SourceDescriptor, list[RawItem]]]:
    """Fetch and parse all sources concurrently.

    Uses connection pooling to fetch multiple feeds in parallel. Results
    keep the order of `sources`; a failed source contributes an empty list.

    Args:
        sources: Sources to fetch
        timeout: Request timeout per feed in seconds
        max_concurrent: Maximum concurrent TCP connections

    Returns:
        (source, items) pairs, one per source

    Example:
        >>> results = await fetch_all_sources(config.sources, timeout=30)
        >>> sum(len(items) for _, items in results)
        120
    """
    connector = aiohttp.TCPConnector(limit=max_concurrent)

    async with aiohttp.ClientSession(connector=connector) as session:
        tasks = [fetch_source(session, source, timeout) for source in sources]
        results = await asyncio.gather(*tasks, return_exceptions=True)

    pairs = []
    errors = 0
    for source, result in zip(sources, results):
        if isinstance(result, Exception):
            logger.warning("Feed error | url=%s type=%s error=%s", source.feed_url, type(result).__name__, result)
            errors += 1
            pairs.append((source, []))
        else:
            pairs.append((source, result))

    total = sum(len(items) for _, items in pairs)
    logger.info("Feeds fetched | items=%d feeds=%d errors=%d", total, len(sources), errors)
    return pairs
