"""
Client-side persistence: the last-known-good article list, bookmarks and settings.

All three live in the same string-keyed storage under fixed keys.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import List, Optional, Sequence, Tuple

from ..models import Article
from .storage import KeyValueStorage


logger = logging.getLogger(__name__)

BOOKMARKS_KEY = "bookmarks"
SETTINGS_KEY = "settings"
CACHED_ARTICLES_KEY = "cachedArticles"
CACHE_TIME_KEY = "cacheTime"


def _load_json(storage: KeyValueStorage, key: str):
    raw = storage.get_item(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable value for %r", key)
        return None


@dataclass(frozen=True)
class MirrorSnapshot:
    articles: Tuple[Article, ...]
    captured_at: Optional[float]  # epoch seconds; None if the timestamp was lost


class ClientCacheMirror:
    """
    Last successful article list plus its capture time.

    Overwritten on every successful live fetch and read only when a live
    fetch fails. It has no expiry of its own.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def save(self, articles: Sequence[Article], now: float) -> None:
        payload = json.dumps([a.to_dict() for a in articles], ensure_ascii=False)
        self._storage.set_item(CACHED_ARTICLES_KEY, payload)
        self._storage.set_item(CACHE_TIME_KEY, str(int(now * 1000)))

    def load(self) -> Optional[MirrorSnapshot]:
        raw = _load_json(self._storage, CACHED_ARTICLES_KEY)
        if not isinstance(raw, list):
            return None

        articles: List[Article] = []
        for item in raw:
            try:
                articles.append(Article.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable mirrored article: %s", e)
        return MirrorSnapshot(tuple(articles), self.captured_at())

    def captured_at(self) -> Optional[float]:
        raw = self._storage.get_item(CACHE_TIME_KEY)
        if raw is None:
            return None
        try:
            return int(raw) / 1000
        except ValueError:
            return None

    def age(self, now: float) -> Optional[float]:
        captured_at = self.captured_at()
        if captured_at is None:
            return None
        return now - captured_at

    def clear(self) -> None:
        self._storage.remove_item(CACHED_ARTICLES_KEY)
        self._storage.remove_item(CACHE_TIME_KEY)


class BookmarkStore:
    """Ordered list of bookmarked article ids."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        raw = _load_json(storage, BOOKMARKS_KEY)
        self._ids: List[str] = [str(i) for i in raw] if isinstance(raw, list) else []

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._ids)

    def __contains__(self, article_id: str) -> bool:
        return article_id in self._ids

    def toggle(self, article_id: str) -> bool:
        """Add or remove `article_id`. Returns True if it is bookmarked afterwards."""
        if article_id in self._ids:
            self._ids.remove(article_id)
            bookmarked = False
        else:
            self._ids.append(article_id)
            bookmarked = True
        self._save()
        return bookmarked

    def clear(self) -> None:
        self._ids = []
        self._save()

    def _save(self) -> None:
        self._storage.set_item(BOOKMARKS_KEY, json.dumps(self._ids))


@dataclass
class ClientSettings:
    dark_mode: bool = False
    compact_mode: bool = False
    auto_refresh: bool = True
    images_only: bool = False


# storage uses the browser-era camelCase keys
_SETTINGS_KEYS = {
    "dark_mode": "darkMode",
    "compact_mode": "compactMode",
    "auto_refresh": "autoRefresh",
    "images_only": "imagesOnly",
}


def load_settings(storage: KeyValueStorage) -> ClientSettings:
    """Stored settings merged over the defaults; unknown keys are ignored."""
    raw = _load_json(storage, SETTINGS_KEY)
    settings = ClientSettings()
    if not isinstance(raw, dict):
        return settings
    for f in fields(ClientSettings):
        key = _SETTINGS_KEYS[f.name]
        if key in raw:
            setattr(settings, f.name, bool(raw[key]))
    return settings


def save_settings(storage: KeyValueStorage, settings: ClientSettings) -> None:
    payload = {_SETTINGS_KEYS[name]: value for name, value in asdict(settings).items()}
    storage.set_item(SETTINGS_KEY, json.dumps(payload))
