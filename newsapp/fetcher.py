from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, List

import feedparser
import httpx

from .exceptions import FeedFetchError
from .models import Article
from .parser import parse_entry


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


async def fetch_feed_entries(client: httpx.AsyncClient, url: str) -> List[Any]:
    """
    Download a single feed URL and return its entries.

    Raises FeedFetchError on network/HTTP issues or when the feed is malformed
    (bozo) and yielded no entries at all.
    """
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise FeedFetchError(f"Failed to fetch feed: {url} ({e})") from e

    feed = feedparser.parse(response.content)
    entries = getattr(feed, "entries", None)

    if getattr(feed, "bozo", 0) and not entries:
        exc = getattr(feed, "bozo_exception", None)
        msg = f"Invalid RSS/Atom feed: {url}"
        if exc:
            msg += f" ({exc})"
        raise FeedFetchError(msg)

    if not isinstance(entries, list):
        raise FeedFetchError(f"Feed has no entries: {url}")
    return entries


async def fetch_feed(
    client: httpx.AsyncClient,
    url: str,
    category: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Article]:
    """
    Fetch one feed and normalize its entries into Articles.

    Never raises: a timeout, network error or unparseable feed is logged and
    yields an empty list so the source simply contributes nothing.
    """
    try:
        entries = await asyncio.wait_for(fetch_feed_entries(client, url), timeout)
    except asyncio.TimeoutError:
        logger.warning("Timed out after %.1fs loading %s", timeout, url)
        return []
    except FeedFetchError as e:
        logger.warning("%s", e)
        return []
    except Exception:
        logger.exception("Unexpected error loading %s", url)
        return []

    fetched_at = datetime.now(timezone.utc)
    articles: List[Article] = []
    for entry in entries:
        try:
            articles.append(parse_entry(entry, category, fetched_at))
        except Exception as e:
            logger.warning("Skipping malformed entry in %s: %s", url, e)
            continue

    logger.debug("Loaded %d articles from %s", len(articles), url)
    return articles
