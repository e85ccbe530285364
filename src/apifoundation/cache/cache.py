"""Token cache port and its stock implementations.

:class:`CachePort` is the two-method contract the credential manager needs
from a key/value store with per-entry expiry.  Any object with matching
``save`` and ``fetch`` methods satisfies it.

Implementations:

- :class:`FilesystemCache` -- persists entries with :mod:`diskcache` so a
  token survives process restarts.  This is the lazy default of
  :class:`~apifoundation.auth.AccessToken`.
- :class:`MemoryCache` -- process-local dictionary with monotonic-clock
  expiry, handy for tests and short-lived scripts.

A TTL of ``None`` stores the entry without expiry.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

import diskcache

from apifoundation.config import get_cache_dir
from apifoundation.models import CacheConfig


@runtime_checkable
class CachePort(Protocol):
    """Key/value store with per-entry TTL."""

    def save(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds (``None`` = never)."""
        ...

    def fetch(self, key: str) -> Optional[str]:
        """Return the live value stored under *key*, or ``None``."""
        ...


class FilesystemCache:
    """Disk-backed token cache.

    Entries are stored in a :class:`diskcache.Cache` directory under
    ``tokens/`` inside the configured cache directory, which defaults to a
    folder in the system temp dir (see
    :func:`~apifoundation.config.get_cache_dir`).

    Args:
        cache_dir: Root directory for the cache.  When ``None`` it is
            resolved from *config*.
        config: Cache configuration (directory and default TTL).

    Example::

        cache = FilesystemCache("/tmp/tokens")
        cache.save("wechat.access_token.app1", "XYZ", 7200)
        assert cache.fetch("wechat.access_token.app1") == "XYZ"
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        config: Optional[CacheConfig] = None,
    ) -> None:
        self._config = config or CacheConfig()
        root = Path(cache_dir) if cache_dir is not None else get_cache_dir(self._config)
        self._directory = root / "tokens"
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        """The diskcache directory backing this cache."""
        return self._directory

    def save(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store *value* under *key*.

        Args:
            key: Cache key.
            value: Token string.
            ttl: Lifetime in seconds.  ``None`` falls back to
                ``config.default_ttl``, which itself defaults to no expiry.
        """
        expire = ttl if ttl is not None else self._config.default_ttl
        self._cache.set(key, value, expire=expire)

    def fetch(self, key: str) -> Optional[str]:
        """Return the cached value for *key*, or ``None`` on a miss or after expiry."""
        return self._cache.get(key)

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        self._cache.delete(key)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return the entry count and directory of the cache."""
        return {"size": len(self._cache), "directory": str(self._directory)}

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()


class MemoryCache:
    """In-process token cache with TTL expiry.

    Thread-safe.  Expiry uses :func:`time.monotonic`, so it is unaffected by
    wall-clock changes.  Nothing is persisted across processes.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def save(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ttl if ttl is not None else None
        with self._lock:
            self._entries[key] = (value, expires_at)

    def fetch(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
