from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import httpx

from ..exceptions import NewsUnavailableError
from ..models import Article
from .mirror import (
    BookmarkStore,
    ClientCacheMirror,
    ClientSettings,
    load_settings,
    save_settings,
)
from .storage import KeyValueStorage


logger = logging.getLogger(__name__)

API_PATH = "/api/news"
AUTO_REFRESH_INTERVAL = 5 * 60.0
ALL = "all"
BOOKMARKS = "bookmarks"


@dataclass(frozen=True)
class LoadResult:
    articles: Tuple[Article, ...]
    from_mirror: bool
    captured_at: Optional[float]
    cached_on_server: bool = False


@dataclass
class ViewState:
    category: str = ALL
    search_query: str = ""


def filter_articles(
    articles: List[Article],
    view: ViewState,
    *,
    bookmarks: BookmarkStore,
    images_only: bool = False,
) -> List[Article]:
    """Apply category/bookmarks, search and images-only filters in that order."""
    if view.category == BOOKMARKS:
        filtered = [a for a in articles if a.id in bookmarks]
    elif view.category != ALL:
        filtered = [a for a in articles if a.category == view.category]
    else:
        filtered = list(articles)

    query = view.search_query.strip().lower()
    if query:
        filtered = [
            a for a in filtered
            if query in a.title.lower() or query in a.description.lower()
        ]

    if images_only:
        filtered = [a for a in filtered if a.image_url]
    return filtered


class NewsClient:
    """
    Client side of the news app: loads from the server, mirrors locally, filters.

    Manual and timer-triggered refreshes go through `load_news`; overlapping
    loads are allowed and the one that completes last wins.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http
        self._storage = storage
        self._clock = clock
        self.mirror = ClientCacheMirror(storage)
        self.bookmarks = BookmarkStore(storage)
        self.settings = load_settings(storage)
        self.view = ViewState()
        self.articles: List[Article] = []

    async def _fetch_live(self, force_refresh: bool) -> Tuple[List[Article], bool]:
        params = {"refresh": "true"} if force_refresh else None
        response = await self._http.get(API_PATH, params=params)
        response.raise_for_status()
        data = response.json()
        articles = [Article.from_dict(item) for item in data["articles"]]
        return articles, bool(data.get("cached", False))

    async def load_news(self, force_refresh: bool = False) -> LoadResult:
        """
        Load the aggregated list from the server.

        On success the in-memory list and the mirror are replaced. On any
        failure the mirror is served as-is (no age check); without a mirror
        NewsUnavailableError is raised.
        """
        try:
            articles, cached = await self._fetch_live(force_refresh)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Error loading news: %s", e)
            snapshot = self.mirror.load()
            if snapshot is None:
                raise NewsUnavailableError("Server nicht erreichbar") from e
            self.articles = list(snapshot.articles)
            return LoadResult(snapshot.articles, True, snapshot.captured_at)

        now = self._clock()
        self.articles = articles
        self.mirror.save(articles, now)
        return LoadResult(tuple(articles), False, now, cached_on_server=cached)

    # view state

    def select_category(self, category: str) -> None:
        self.view.category = category

    def search(self, query: str) -> None:
        self.view.search_query = query

    def visible_articles(self) -> List[Article]:
        return filter_articles(
            self.articles,
            self.view,
            bookmarks=self.bookmarks,
            images_only=self.settings.images_only,
        )

    def trending(self, limit: int = 10) -> List[Article]:
        return self.articles[:limit]

    def find(self, article_id: str) -> Optional[Article]:
        for article in self.articles:
            if article.id == article_id:
                return article
        return None

    # bookmarks and settings

    def toggle_bookmark(self, article_id: str) -> bool:
        return self.bookmarks.toggle(article_id)

    def clear_bookmarks(self) -> None:
        self.bookmarks.clear()

    def update_settings(self, **changes: bool) -> ClientSettings:
        for name, value in changes.items():
            if not hasattr(self.settings, name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(self.settings, name, bool(value))
        save_settings(self._storage, self.settings)
        return self.settings

    async def clear_cache(self) -> LoadResult:
        self.mirror.clear()
        return await self.load_news(force_refresh=True)

    # auto refresh

    def should_refresh_on_visible(self, now: Optional[float] = None) -> bool:
        """True when the page becomes visible with a mirror older than the interval."""
        if not self.settings.auto_refresh:
            return False
        age = self.mirror.age(self._clock() if now is None else now)
        return age is not None and age > AUTO_REFRESH_INTERVAL

    async def auto_refresh(
        self,
        is_visible: Callable[[], bool],
        *,
        interval: float = AUTO_REFRESH_INTERVAL,
    ) -> None:
        """Reload every `interval` seconds while visible and enabled. Runs until cancelled."""
        while True:
            await asyncio.sleep(interval)
            if not (self.settings.auto_refresh and is_visible()):
                continue
            try:
                await self.load_news()
            except NewsUnavailableError as e:
                logger.warning("Auto refresh failed: %s", e)
