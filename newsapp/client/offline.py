"""
Offline cache controller: versioned HTTP response caching for the client.

Two retrieval strategies are picked per request:

- cache-first for static assets: stored copy, else network (stored on success),
  else the offline placeholder.
- network-first for feed/API-like URLs: network (stored on success), else the
  stored copy, else the offline placeholder.

Stores are named by version. Activating a new version deletes every other
store, so exactly one generation survives.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from ..exceptions import CacheInstallError


logger = logging.getLogger(__name__)

CACHE_NAME = "newsapp-v1"

STATIC_ASSETS = (
    "/",
    "/index.html",
    "/css/style.css",
    "/js/app.js",
    "/manifest.json",
    "/images/icon-192.png",
    "/images/icon-512.png",
)

NETWORK_FIRST_PATTERNS = ("/api/", "allorigins.win", ".rss", "/xml/")

OFFLINE_STATUS = 503
OFFLINE_BODY = "Offline"

Network = Callable[[httpx.Request], Awaitable[httpx.Response]]

# the body is stored decoded, so the original transfer headers no longer apply
_DROPPED_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


def offline_response(request: Optional[httpx.Request] = None) -> httpx.Response:
    return httpx.Response(OFFLINE_STATUS, text=OFFLINE_BODY, request=request)


def copy_response(response: httpx.Response) -> httpx.Response:
    headers = [
        (k, v) for k, v in response.headers.multi_items()
        if k.lower() not in _DROPPED_HEADERS
    ]
    try:
        request = response.request
    except RuntimeError:
        request = None
    return httpx.Response(
        response.status_code,
        headers=headers,
        content=response.content,
        request=request,
    )


def is_network_first(url: str) -> bool:
    return any(pattern in url for pattern in NETWORK_FIRST_PATTERNS)


class CacheStore:
    """One named generation: request URL → response copy."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: Dict[str, httpx.Response] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def match(self, request: httpx.Request) -> Optional[httpx.Response]:
        stored = self._entries.get(str(request.url))
        return copy_response(stored) if stored is not None else None

    def put(self, request: httpx.Request, response: httpx.Response) -> None:
        self._entries[str(request.url)] = copy_response(response)

    def delete(self, request: httpx.Request) -> bool:
        return self._entries.pop(str(request.url), None) is not None


class CacheStorage:
    """All named stores, in creation order."""

    def __init__(self) -> None:
        self._stores: Dict[str, CacheStore] = {}

    def open(self, name: str) -> CacheStore:
        store = self._stores.get(name)
        if store is None:
            store = self._stores[name] = CacheStore(name)
        return store

    def has(self, name: str) -> bool:
        return name in self._stores

    def keys(self) -> List[str]:
        return list(self._stores)

    def delete(self, name: str) -> bool:
        return self._stores.pop(name, None) is not None

    def match(self, request: httpx.Request) -> Optional[httpx.Response]:
        for store in self._stores.values():
            response = store.match(request)
            if response is not None:
                return response
        return None


class OfflineCacheController:
    """
    Intercepts client requests and answers them from the network or the cache.

    `network` is any coroutine function taking an httpx.Request and returning
    an httpx.Response; request errors it raises (connection failures,
    redirect loops, undecodable bodies) count as "offline".
    """

    def __init__(
        self,
        storage: CacheStorage,
        network: Network,
        *,
        version: str = CACHE_NAME,
        origin: str = "http://localhost:8080",
        static_assets: Sequence[str] = STATIC_ASSETS,
    ) -> None:
        self.storage = storage
        self.version = version
        self._network = network
        self._origin = httpx.URL(origin)
        self._static_assets = tuple(static_assets)
        self._clients: Dict[str, Optional[str]] = {}
        self.active = False

    @classmethod
    def with_client(cls, storage: CacheStorage, client: httpx.AsyncClient, **kwargs) -> "OfflineCacheController":
        return cls(storage, client.send, **kwargs)

    # lifecycle

    async def install(self) -> None:
        """
        Pre-cache the static asset manifest into the current generation.

        All or nothing: if any asset fails, nothing is stored.
        """
        fetched = []
        for path in self._static_assets:
            request = httpx.Request("GET", self._origin.join(path))
            try:
                response = await self._network(request)
                if response.is_success:
                    await response.aread()
            except httpx.RequestError as e:
                raise CacheInstallError(f"Failed to pre-cache {path}: {e}") from e
            if not response.is_success:
                raise CacheInstallError(
                    f"Failed to pre-cache {path}: HTTP {response.status_code}"
                )
            fetched.append((request, response))

        store = self.storage.open(self.version)
        for request, response in fetched:
            store.put(request, response)
        logger.info("Installed %s with %d assets", self.version, len(fetched))

    def activate(self) -> List[str]:
        """Delete every other generation and take control of all open clients."""
        stale = [name for name in self.storage.keys() if name != self.version]
        for name in stale:
            self.storage.delete(name)
        self.active = True
        self.claim()
        if stale:
            logger.info("Activated %s, deleted %s", self.version, ", ".join(stale))
        return stale

    def register_client(self, client_id: str) -> None:
        self._clients[client_id] = self.version if self.active else None

    def claim(self) -> None:
        for client_id in self._clients:
            self._clients[client_id] = self.version

    def controller_of(self, client_id: str) -> Optional[str]:
        return self._clients.get(client_id)

    @property
    def controlled_clients(self) -> List[str]:
        return [cid for cid, version in self._clients.items() if version == self.version]

    # fetch handling

    async def handle(self, request: httpx.Request) -> httpx.Response:
        if request.method != "GET":
            return await self._network(request)
        if is_network_first(str(request.url)):
            return await self.network_first(request)
        return await self.cache_first(request)

    async def _fetch_and_store(self, request: httpx.Request) -> httpx.Response:
        response = await self._network(request)
        if response.is_success:
            await response.aread()
            self.storage.open(self.version).put(request, response)
        return response

    async def cache_first(self, request: httpx.Request) -> httpx.Response:
        cached = self.storage.match(request)
        if cached is not None:
            return cached
        try:
            return await self._fetch_and_store(request)
        except httpx.RequestError as e:
            logger.debug("Offline, no cached copy of %s: %s", request.url, e)
            return offline_response(request)

    async def network_first(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self._fetch_and_store(request)
        except httpx.RequestError as e:
            logger.debug("Network failed for %s, trying cache: %s", request.url, e)
        cached = self.storage.match(request)
        if cached is not None:
            return cached
        return offline_response(request)
