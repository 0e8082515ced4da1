from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .aggregator import Aggregator
from .models import Article


logger = logging.getLogger(__name__)

DEFAULT_TTL = 5 * 60.0


@dataclass(frozen=True)
class CacheEntry:
    articles: Tuple[Article, ...]
    captured_at: float  # epoch seconds


@dataclass(frozen=True)
class CacheResult:
    articles: Tuple[Article, ...]
    cached: bool
    captured_at: float

    @property
    def timestamp(self) -> int:
        """Capture time in epoch milliseconds, as served by the API."""
        return int(self.captured_at * 1000)


class ResponseCache:
    """
    Time-bounded memoization of the aggregated article list.

    The entry is only ever replaced as a whole, after the aggregation has
    finished, so readers on the event loop never see a half-built list.
    There is no background refresh and no stale fallback: if aggregation
    raises, the exception propagates and the previous entry is kept.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        *,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._aggregator = aggregator
        self._ttl = ttl
        self._clock = clock
        self._entry: Optional[CacheEntry] = None

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def is_fresh(self, now: Optional[float] = None) -> bool:
        if self._entry is None:
            return False
        now = self._clock() if now is None else now
        return now - self._entry.captured_at < self._ttl

    def invalidate(self) -> None:
        self._entry = None

    async def get(self, force_refresh: bool = False) -> CacheResult:
        now = self._clock()
        entry = self._entry
        if not force_refresh and entry is not None and self.is_fresh(now):
            logger.debug("Serving %d cached articles", len(entry.articles))
            return CacheResult(entry.articles, True, entry.captured_at)

        articles = await self._aggregator.fetch_all()
        entry = CacheEntry(tuple(articles), now)
        self._entry = entry
        return CacheResult(entry.articles, False, entry.captured_at)
