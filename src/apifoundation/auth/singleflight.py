"""Single-flight coordination of token refreshes.

When several threads find the same token missing at once, only the first
one contacts the authority; the others wait for its result.  Each in-flight
refresh is tracked as a :class:`concurrent.futures.Future` keyed by cache
key.  Waiters receive the leader's token, or its exception.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Generic, Optional, TypeVar

from apifoundation.exceptions import CredentialError, RefreshTimeout

T = TypeVar("T")


class RefreshCoordinator(Generic[T]):
    """Registry of in-flight refreshes, at most one per key.

    Thread-safe.  One coordinator can be shared by many
    :class:`~apifoundation.auth.access_token.AccessToken` instances so that
    managers using the same cache key also coalesce.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._inflight: dict[str, tuple[Future[T], int]] = {}

    def in_flight(self, key: str) -> bool:
        """Return whether a refresh for *key* is currently running."""
        with self._lock:
            return key in self._inflight

    def run(
        self,
        key: str,
        refresh: Callable[[], T],
        timeout: Optional[float] = None,
    ) -> T:
        """Run *refresh* for *key*, or wait for the run already in progress.

        Args:
            key: Cache key identifying the token.
            refresh: Fetches and stores a new token, returning the result
                every caller receives.
            timeout: Maximum seconds to wait on another caller's refresh.
                ``None`` waits indefinitely.  The leader itself is bounded
                only by its transport timeout.

        Returns:
            The result produced by whichever caller led the refresh.

        Raises:
            RefreshTimeout: If *timeout* elapses while waiting.
            CredentialError: If *refresh* re-enters the coordinator for the
                key it is already refreshing.
        """
        me = threading.get_ident()
        with self._lock:
            entry = self._inflight.get(key)
            if entry is None:
                future: Future[T] = Future()
                self._inflight[key] = (future, me)
                leader = True
            else:
                future, owner = entry
                if owner == me:
                    raise CredentialError(
                        f"Token refresh for '{key}' re-entered itself; the token "
                        "request must not go through a middleware that needs the token"
                    )
                leader = False

        if not leader:
            try:
                return future.result(timeout)
            except FutureTimeoutError as exc:
                raise RefreshTimeout(
                    f"Timed out after {timeout}s waiting for token refresh of '{key}'"
                ) from exc

        try:
            result = refresh()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._inflight.pop(key, None)


_default_coordinator: RefreshCoordinator[Any] = RefreshCoordinator()


def get_default_coordinator() -> RefreshCoordinator[Any]:
    """Return the process-wide coordinator used when none is injected."""
    return _default_coordinator
