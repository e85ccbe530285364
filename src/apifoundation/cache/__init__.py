"""Token caching for apifoundation.

This package defines :class:`CachePort`, the minimal ``save``/``fetch``
contract the credential manager relies on, together with two
implementations: :class:`FilesystemCache`, a :mod:`diskcache` store rooted
in the system temp directory, and :class:`MemoryCache`, a process-local
store.

Any object exposing compatible ``save(key, value, ttl)`` and
``fetch(key)`` methods can be injected instead.
"""

from apifoundation.cache.cache import CachePort, FilesystemCache, MemoryCache

__all__ = ["CachePort", "FilesystemCache", "MemoryCache"]
