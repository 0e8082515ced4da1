"""Client half: local mirror, offline HTTP cache and the load/filter logic."""
from .app import LoadResult, NewsClient, ViewState
from .mirror import BookmarkStore, ClientCacheMirror, ClientSettings
from .notifications import Notification, build_notification, resolve_click
from .offline import CacheStorage, OfflineCacheController
from .storage import JsonFileStorage, MemoryStorage

__all__ = [
    "BookmarkStore",
    "CacheStorage",
    "ClientCacheMirror",
    "ClientSettings",
    "JsonFileStorage",
    "LoadResult",
    "MemoryStorage",
    "NewsClient",
    "Notification",
    "OfflineCacheController",
    "ViewState",
    "build_notification",
    "resolve_click",
]
