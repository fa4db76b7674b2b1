"""Asynchronous HTTP transport for the Skola24 API.

This module provides :class:`AsyncClient`, a thin wrapper around
:class:`httpx.AsyncClient` that knows the service's base URL and the two
headers every call must carry (``Content-Type`` and ``X-Scope``). It maps
failures onto the project's exception hierarchy:

* request errors (network, timeouts, redirect loops, undecodable bodies) ->
  :class:`~skolschema.exceptions.ConnectionError_`
* non-2xx statuses -> :class:`~skolschema.exceptions.ResponseStatusError`

Nothing is retried: a failure is surfaced to the caller exactly once.

See Also:
    :class:`~skolschema.client.fetcher.CachedFetcher` for the cache-aware
    layer built on top of this client.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from skolschema.exceptions import ConnectionError_, MalformedResponseError, ResponseStatusError
from skolschema.models import RequestConfig
from skolschema.output import get_output

RENDER_KEY_PATH = "/get/timetable/render/key"


class AsyncClient:
    """Asynchronous HTTP client for Skola24 calls.

    Must be used as an async context manager so that the underlying
    connection pool is opened and closed.

    Args:
        config: Base URL, scope identifier and timeout.
        transport: Optional custom :mod:`httpx` transport (tests pass an
            :class:`httpx.MockTransport`).

    Example::

        async with AsyncClient(RequestConfig()) as client:
            key = await client.fetch_render_key()
            response = await client.request("GET", "/render/timetable", json_body=body)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            headers=self.default_headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {
            "Content-Type": "application/json",
            "X-Scope": self._config.scope,
        }

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a request and require a success status.

        A JSON body is sent for GET requests as well; the service reads its
        parameters from the body regardless of method.

        Args:
            method: ``GET`` or ``POST``.
            path: URL path appended to the configured base URL.
            json_body: JSON-serialisable request body.

        Returns:
            The :class:`httpx.Response` from the server.

        Raises:
            ConnectionError_: On any :class:`httpx.RequestError`, including
                a body that cannot be decoded per its ``Content-Encoding``.
            ResponseStatusError: On any non-2xx status.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        get_output().debug(f"{method.upper()} {self._config.base_url}{path}")
        try:
            response = await self._client.request(method.upper(), path, json=json_body)
        except httpx.RequestError as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc

        self._map_response_error(response)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request. See :meth:`request`."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a POST request. See :meth:`request`."""
        return await self.request("POST", path, **kwargs)

    async def fetch_render_key(self) -> str:
        """Obtain a fresh render key.

        The service requires a short-lived key in the body of every data
        call. Keys are not reused between calls.

        Raises:
            MalformedResponseError: If the response carries no ``data.key``.
        """
        response = await self.get(RENDER_KEY_PATH)
        try:
            key = response.json()["data"]["key"]
        except (ValueError, KeyError, TypeError) as exc:
            raise MalformedResponseError(f"Render key response is malformed: {exc}") from exc
        if not isinstance(key, str):
            raise MalformedResponseError("Render key response is malformed: key is not a string")
        return key

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise :class:`ResponseStatusError` for non-2xx responses."""
        status = response.status_code
        if 200 <= status < 300:
            return

        msg = response.text[:200] if response.text else ""
        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix
        raise ResponseStatusError(full_msg, status)
