"""Disk-based response caching for skolschema.

This package provides :class:`ResponseCache`, a thin wrapper around
:mod:`diskcache` that stores raw response bodies under caller-derived keys.

The cache is consumed by :class:`~skolschema.client.fetcher.CachedFetcher`
and is switched on or off by the ``cache`` section of the global
configuration (:class:`~skolschema.models.CacheConfig`) or ``--no-cache``.
"""

from skolschema.cache.cache import ResponseCache

__all__ = ["ResponseCache"]
