"""Tests for the cache-keyed fetcher."""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from skolschema.cache import ResponseCache
from skolschema.client import AsyncClient, CachedFetcher
from skolschema.exceptions import CacheError, ConnectionError_, ResponseStatusError
from skolschema.models import RequestConfig

PATH = "/get/timetable/selection"


@pytest.fixture()
def cache(tmp_path):
    c = ResponseCache(tmp_path)
    yield c
    c.close()


def _client(fake_api) -> AsyncClient:
    return AsyncClient(RequestConfig(), transport=fake_api.transport)


class TestCacheHit:
    @pytest.mark.asyncio
    async def test_hit_makes_no_network_call(
        self, fake_api, cache, render_key_provider, render_key_calls
    ) -> None:
        cache.set("k", b'{"cached": true}')
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            first = await fetcher.fetch("k", {}, PATH, use_post=False, should_cache=True)
            second = await fetcher.fetch("k", {}, PATH, use_post=False, should_cache=True)

        assert first == second == b'{"cached": true}'
        assert fake_api.requests == []
        assert render_key_calls == []

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, fake_api, cache, render_key_provider) -> None:
        fake_api.routes[PATH] = {"data": {"classes": []}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            first = await fetcher.fetch("k", {"a": 1}, PATH, use_post=False)
            second = await fetcher.fetch("k", {"a": 1}, PATH, use_post=False)

        assert first == second
        assert len(fake_api.requests) == 1
        assert cache.get("k") == first


class TestNetworkPath:
    @pytest.mark.asyncio
    async def test_render_key_injected(self, fake_api, cache, render_key_provider) -> None:
        fake_api.routes[PATH] = {"data": {}}
        body = {"hostName": "example.skola24.se"}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            await fetcher.fetch("k", body, PATH, use_post=False)

        sent = json.loads(fake_api.requests[0].content)
        assert sent == {"hostName": "example.skola24.se", "renderKey": "key-1"}
        assert "renderKey" not in body

    @pytest.mark.asyncio
    async def test_fresh_render_key_per_call(
        self, fake_api, render_key_provider, render_key_calls
    ) -> None:
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, None, render_key_provider)
            await fetcher.fetch("k", {}, PATH, use_post=False)
            await fetcher.fetch("k", {}, PATH, use_post=False)

        assert render_key_calls == ["key-1", "key-2"]
        keys = [json.loads(r.content)["renderKey"] for r in fake_api.requests]
        assert keys == ["key-1", "key-2"]

    @pytest.mark.parametrize("use_post,method", [(True, "POST"), (False, "GET")])
    @pytest.mark.asyncio
    async def test_method(self, fake_api, render_key_provider, use_post, method) -> None:
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, None, render_key_provider)
            await fetcher.fetch("k", {}, PATH, use_post=use_post)
        assert fake_api.requests[0].method == method

    @pytest.mark.asyncio
    async def test_body_cached_even_if_unparsable(self, fake_api, cache, render_key_provider) -> None:
        fake_api.routes[PATH] = httpx.Response(200, text="<html>not json</html>")
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            raw = await fetcher.fetch("k", {}, PATH, use_post=False)

        assert raw == b"<html>not json</html>"
        assert cache.get("k") == raw

    @pytest.mark.asyncio
    async def test_default_render_key_provider(self, fake_api) -> None:
        fake_api.routes["/get/timetable/render/key"] = {"data": {"key": "from-service"}}
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client)
            await fetcher.fetch("k", {}, PATH, use_post=True)

        assert [r.url.path for r in fake_api.requests] == [
            "/api/get/timetable/render/key",
            "/api" + PATH,
        ]
        assert json.loads(fake_api.requests[1].content)["renderKey"] == "from-service"


class TestBypass:
    @pytest.mark.asyncio
    async def test_should_cache_false_ignores_existing_entry(
        self, fake_api, cache, render_key_provider
    ) -> None:
        cache.set("k", b"stale")
        fake_api.routes[PATH] = {"data": "fresh"}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            raw = await fetcher.fetch("k", {}, PATH, use_post=False, should_cache=False)

        assert json.loads(raw) == {"data": "fresh"}
        assert cache.get("k") == b"stale"
        assert len(fake_api.requests) == 1

    @pytest.mark.asyncio
    async def test_should_cache_false_never_touches_store(
        self, fake_api, cache, render_key_provider, monkeypatch
    ) -> None:
        def _forbidden(*args, **kwargs):
            raise AssertionError("cache store accessed")

        monkeypatch.setattr(cache, "get", _forbidden)
        monkeypatch.setattr(cache, "set", _forbidden)
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            await fetcher.fetch("k", {}, PATH, use_post=False, should_cache=False)

    @pytest.mark.asyncio
    async def test_no_cache_configured(self, fake_api, render_key_provider) -> None:
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, None, render_key_provider)
            await fetcher.fetch("k", {}, PATH, use_post=False, should_cache=True)
            await fetcher.fetch("k", {}, PATH, use_post=False, should_cache=True)
        assert len(fake_api.requests) == 2


class TestFailures:
    @pytest.mark.asyncio
    async def test_status_error_not_cached(self, fake_api, cache, render_key_provider) -> None:
        fake_api.routes[PATH] = httpx.Response(500, text="boom")
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            with pytest.raises(ResponseStatusError):
                await fetcher.fetch("k", {}, PATH, use_post=False)
        assert cache.get("k") is None

    @pytest.mark.asyncio
    async def test_transport_error(self, cache, render_key_provider) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client = AsyncClient(RequestConfig(), transport=httpx.MockTransport(handler))
        async with client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            with pytest.raises(ConnectionError_):
                await fetcher.fetch("k", {}, PATH, use_post=False)

    @pytest.mark.asyncio
    async def test_cache_read_error_is_not_a_miss(
        self, fake_api, cache, render_key_provider, monkeypatch
    ) -> None:
        def _broken(key):
            raise CacheError("Cannot read cache entry")

        monkeypatch.setattr(cache, "get", _broken)
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            with pytest.raises(CacheError):
                await fetcher.fetch("k", {}, PATH, use_post=False)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_cache_write_error_propagates(
        self, fake_api, cache, render_key_provider, monkeypatch
    ) -> None:
        def _broken(key, value):
            raise CacheError("Cannot write cache entry")

        monkeypatch.setattr(cache, "set", _broken)
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            with pytest.raises(CacheError):
                await fetcher.fetch("k", {}, PATH, use_post=False)

    @pytest.mark.asyncio
    async def test_undecodable_body_not_cached(self, cache, render_key_provider) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip")
            )

        client = AsyncClient(RequestConfig(), transport=httpx.MockTransport(handler))
        async with client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            with pytest.raises(ConnectionError_):
                await fetcher.fetch("k", {}, PATH, use_post=False)
        assert cache.get("k") is None


class TestStoreOffLoop:
    @pytest.mark.asyncio
    async def test_store_calls_run_off_the_event_loop_thread(
        self, fake_api, cache, render_key_provider, monkeypatch
    ) -> None:
        loop_thread = threading.get_ident()
        threads: list[tuple[str, int]] = []
        real_get, real_set = cache.get, cache.set

        def _get(key):
            threads.append(("get", threading.get_ident()))
            return real_get(key)

        def _set(key, value):
            threads.append(("set", threading.get_ident()))
            real_set(key, value)

        monkeypatch.setattr(cache, "get", _get)
        monkeypatch.setattr(cache, "set", _set)
        fake_api.routes[PATH] = {"data": {}}
        async with _client(fake_api) as client:
            fetcher = CachedFetcher(client, cache, render_key_provider)
            await fetcher.fetch("k", {}, PATH, use_post=False)
            await fetcher.fetch("k", {}, PATH, use_post=False)

        assert [name for name, _ in threads] == ["get", "set", "get"]
        assert all(ident != loop_thread for _, ident in threads)
