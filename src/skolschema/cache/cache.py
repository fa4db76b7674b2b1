"""Disk-based storage of raw API responses.

Uses :mod:`diskcache` to persist response bodies on the filesystem. Unlike a
general HTTP cache this store performs no freshness check and imposes no TTL:
staleness is bounded by the callers, which fold the current date into the
keys of data that changes daily (see :mod:`skolschema.service`).

Keys are opaque caller-derived strings and are stored as given -- no hashing
or normalisation happens here. Values are the raw UTF-8 response bytes.

Any I/O problem in the underlying store surfaces as
:class:`~skolschema.exceptions.CacheError`; a missing key is not an error and
returns ``None``.

See Also:
    :class:`~skolschema.models.CacheConfig` -- the Pydantic model with the
    ``enabled`` switch.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Optional

import diskcache

from skolschema.exceptions import CacheError

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class ResponseCache:
    """Disk-backed store for raw response bodies.

    Args:
        cache_dir: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.

    Raises:
        CacheError: If the cache directory cannot be opened.

    Example::

        from skolschema.cache import ResponseCache

        cache = ResponseCache("/tmp/skolschema-cache")
        cache.set("20260101example.skola24.se", b'{"data": {}}')
        hit = cache.get("20260101example.skola24.se")
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        try:
            self._cache = diskcache.Cache(str(self._cache_dir / "responses"))
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cannot open response cache at {self.directory}: {exc}") from exc

    @property
    def directory(self) -> Path:
        """Directory holding the cache database."""
        return self._cache_dir / "responses"

    def get(self, key: str) -> Optional[bytes]:
        """Look up a stored response body.

        Args:
            key: The caller-derived cache key.

        Returns:
            The stored bytes on a hit, ``None`` on a miss.

        Raises:
            CacheError: If the store cannot be read.
        """
        try:
            value = self._cache.get(key)
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cannot read cache entry '{key}': {exc}") from exc
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def set(self, key: str, value: bytes) -> None:
        """Store a response body under *key*, replacing any previous entry.

        Raises:
            CacheError: If the store cannot be written.
        """
        try:
            self._cache.set(key, value)
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cannot write cache entry '{key}': {exc}") from exc

    def clear(self) -> None:
        """Remove all entries from the cache (``skolschema cache clear``)."""
        try:
            self._cache.clear()
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cannot clear cache: {exc}") from exc

    def stats(self) -> dict[str, Any]:
        """Return cache statistics (``skolschema cache info``).

        Returns:
            A ``dict`` with ``size`` (number of entries) and ``directory``
            (str path).
        """
        try:
            size = len(self._cache)
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cannot read cache size: {exc}") from exc
        return {"size": size, "directory": str(self.directory)}

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __enter__(self) -> ResponseCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
