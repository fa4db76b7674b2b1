"""HTTP client module for skolschema.

Provides the asynchronous transport and the cache-aware fetcher built on it.

Classes:
    :class:`AsyncClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.
    :class:`CachedFetcher` -- returns cached response bodies or performs
    exactly one network call per cache miss.

Example::

    from skolschema.client import AsyncClient, CachedFetcher

    async with AsyncClient() as client:
        fetcher = CachedFetcher(client, cache)
        raw = await fetcher.fetch(key, body, "/get/timetable/selection", use_post=False)
"""

from skolschema.client.async_client import AsyncClient
from skolschema.client.fetcher import CachedFetcher

__all__ = ["AsyncClient", "CachedFetcher"]
