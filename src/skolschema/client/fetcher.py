"""Cache-keyed fetching of raw API responses.

:class:`CachedFetcher` puts a :class:`~skolschema.cache.ResponseCache` in
front of an :class:`~skolschema.client.async_client.AsyncClient` so that a
cacheable query costs at most one network call per cache key:

1. With caching on, a stored body for the key is returned verbatim.
2. Otherwise a fresh render key is obtained, injected into the JSON body as
   ``renderKey``, and the request is sent.
3. A successful network body is written under the key *before* it is
   returned, whether or not it later parses.

Store reads and writes run in a worker thread (:func:`asyncio.to_thread`) so
the event loop never waits on disk. With caching off the store is neither
read nor written. Cache-store errors, transport errors and status errors
propagate as distinct exceptions; none of them is ever treated as a miss.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from skolschema.cache import ResponseCache
from skolschema.client.async_client import AsyncClient
from skolschema.output import get_output

RenderKeyProvider = Callable[[], Awaitable[str]]
"""Async callable returning a fresh render key."""

RENDER_KEY_FIELD = "renderKey"


class CachedFetcher:
    """Fetch raw response bodies through an optional disk cache.

    Args:
        client: An opened :class:`AsyncClient`.
        cache: The response store, or ``None`` to disable caching entirely
            (every call then behaves as ``should_cache=False``).
        render_key_provider: Async callable returning a render key. Defaults
            to :meth:`AsyncClient.fetch_render_key`.

    Example::

        async with AsyncClient() as client:
            fetcher = CachedFetcher(client, ResponseCache(get_cache_dir()))
            body = await fetcher.fetch(key, payload, "/render/timetable", use_post=False)
    """

    def __init__(
        self,
        client: AsyncClient,
        cache: Optional[ResponseCache] = None,
        render_key_provider: Optional[RenderKeyProvider] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._render_key_provider = render_key_provider or client.fetch_render_key

    async def fetch(
        self,
        cache_key: str,
        request_body: dict[str, Any],
        endpoint_path: str,
        use_post: bool,
        should_cache: bool = True,
    ) -> bytes:
        """Return the response body for a request, from cache or network.

        Args:
            cache_key: Opaque key identifying the query.
            request_body: JSON body; a copy receives the render key.
            endpoint_path: Path below the service base URL.
            use_post: Send a POST instead of a GET.
            should_cache: Read and write the cache for this call.

        Returns:
            The raw UTF-8 response body.

        Raises:
            CacheError: If the store cannot be read or written.
            ConnectionError_: On network-level failure.
            ResponseStatusError: On a non-2xx status.
        """
        output = get_output()
        use_cache = should_cache and self._cache is not None

        if use_cache:
            cached = await asyncio.to_thread(self._cache.get, cache_key)
            if cached is not None:
                output.debug(f"Cache hit: {cache_key}")
                return cached
            output.debug(f"Cache miss: {cache_key}")

        body = dict(request_body)
        body[RENDER_KEY_FIELD] = await self._render_key_provider()

        method = "POST" if use_post else "GET"
        response = await self._client.request(method, endpoint_path, json_body=body)
        raw = response.text.encode("utf-8")

        if use_cache:
            await asyncio.to_thread(self._cache.set, cache_key, raw)
        return raw
