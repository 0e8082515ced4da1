from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Iterable, List, Mapping, Optional, Sequence, Tuple

import httpx

from .config import RSS_FEEDS
from .dedup import deduplicate
from .exceptions import UnknownCategoryError
from .fetcher import DEFAULT_TIMEOUT, fetch_feed
from .models import Article


logger = logging.getLogger(__name__)


def sort_newest_first(articles: Iterable[Article]) -> List[Article]:
    # sorted() is stable with reverse=True, equal timestamps keep input order
    return sorted(articles, key=lambda a: a.published_at, reverse=True)


async def gather_settled(tasks: Sequence[Awaitable[List[Article]]]) -> List[Article]:
    """
    Wait for every fetch to settle and flatten the successful ones.

    A failing task never cancels the others; its exception is dropped here
    because the fetcher already reported it.
    """
    results = await asyncio.gather(*tasks, return_exceptions=True)
    merged: List[Article] = []
    for result in results:
        if isinstance(result, BaseException):
            logger.debug("Dropping failed fetch: %r", result)
            continue
        merged.extend(result)
    return merged


class Aggregator:
    """
    Fans out one fetch per configured (category, URL) pair and merges the results.

    Pipeline: fetch (concurrent) → merge → sort (newest first) → deduplicate
    """

    def __init__(
        self,
        feeds: Optional[Mapping[str, Sequence[str]]] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "NewsApp/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._feeds = feeds if feeds is not None else RSS_FEEDS
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    @property
    def categories(self) -> List[str]:
        return list(self._feeds)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": self._user_agent},
            follow_redirects=True,
            transport=self._transport,
        )

    async def _fetch_pairs(self, pairs: Sequence[Tuple[str, str]]) -> List[Article]:
        async with self._client() as client:
            tasks = [
                fetch_feed(client, url, category, timeout=self._timeout)
                for category, url in pairs
            ]
            return await gather_settled(tasks)

    async def fetch_all(self) -> List[Article]:
        """All configured feeds, newest first, one article per normalized title."""
        pairs = [
            (category, url)
            for category, urls in self._feeds.items()
            for url in urls
        ]
        merged = await self._fetch_pairs(pairs)
        articles = deduplicate(sort_newest_first(merged))
        logger.info(
            "Aggregated %d articles (%d before dedup) from %d feeds",
            len(articles), len(merged), len(pairs),
        )
        return articles

    async def fetch_category(self, category: str) -> List[Article]:
        """One category's feeds, newest first. No cross-feed deduplication."""
        urls = self._feeds.get(category)
        if urls is None:
            raise UnknownCategoryError(category)
        merged = await self._fetch_pairs([(category, url) for url in urls])
        return sort_newest_first(merged)
