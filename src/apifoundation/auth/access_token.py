"""Access token lifecycle: cache lookup, refresh and storage.

:class:`AccessToken` owns an application identity (app id and secret), a
cache key policy and a :class:`~apifoundation.auth.base.CredentialSource`.
:meth:`AccessToken.get_token` resolves a token in this order:

1. unless a refresh is forced, the cache port entry for :attr:`cache_key`,
   then the last token this instance stored under the same key;
2. otherwise the source is asked for a new token, the response is checked,
   the token and lifetime are extracted from the configured fields and
   stored with :meth:`AccessToken.set_token`.

A cache miss and a forced refresh share the same path.  Concurrent refreshes
for one cache key are coalesced by a
:class:`~apifoundation.auth.singleflight.RefreshCoordinator`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from apifoundation.auth.base import CredentialSource
from apifoundation.auth.singleflight import RefreshCoordinator, get_default_coordinator
from apifoundation.cache import CachePort, FilesystemCache
from apifoundation.client import Http
from apifoundation.exceptions import InvalidCredentialResponse, MissingFieldError
from apifoundation.models import DEFAULT_TOKEN_TTL, Credential, TokenConfig

logger = logging.getLogger(__name__)


class AccessToken:
    """Fetch, cache and refresh the access token of one application.

    The cache and the HTTP pipeline are built lazily on first use when not
    injected: a :class:`~apifoundation.cache.FilesystemCache` under the system
    temp directory and a default :class:`~apifoundation.client.Http`.

    Args:
        source: Vendor adapter that talks to the token endpoint.
        app_id: Application identifier; part of the default cache key.
        secret: Application secret, available to *source* and never logged.
        config: Cache key prefix or explicit key, and response field names.
        cache: Cache port to store tokens in.
        http: Request pipeline handed to *source*.
        coordinator: Single-flight registry; defaults to the process-wide one.

    Example::

        token = AccessToken(
            WeChatTokenSource(),
            app_id="wx123",
            secret=resolve_credential("env:WECHAT_SECRET"),
            config=TokenConfig(prefix="wechat.access_token."),
        )
        token.get_token()                    # cached after the first call
        token.get_token(force_refresh=True)  # always hits the server
    """

    def __init__(
        self,
        source: CredentialSource,
        *,
        app_id: Optional[str] = None,
        secret: Optional[str] = None,
        config: Optional[TokenConfig] = None,
        cache: Optional[CachePort] = None,
        http: Optional[Http] = None,
        coordinator: Optional[RefreshCoordinator] = None,
    ) -> None:
        self._source = source
        self._app_id = app_id
        self._secret = secret
        self._config = config or TokenConfig()
        self._cache_key = self._config.cache_key
        self._cache = cache
        self._owns_cache = False
        self._http = http
        self._owns_http = False
        self._coordinator = coordinator or get_default_coordinator()
        self._last_credential: Optional[Credential] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(app_id={self._app_id!r}, cache_key={self.cache_key!r})"

    def __enter__(self) -> AccessToken:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the cache and pipeline this instance built; injected ones are left open."""
        if self._owns_cache and isinstance(self._cache, FilesystemCache):
            self._cache.close()
            self._cache = None
            self._owns_cache = False
        if self._owns_http and self._http is not None:
            self._http.close()
            self._http = None
            self._owns_http = False

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    @property
    def app_id(self) -> Optional[str]:
        return self._app_id

    @app_id.setter
    def app_id(self, app_id: Optional[str]) -> None:
        self._app_id = app_id

    @property
    def secret(self) -> Optional[str]:
        return self._secret

    @secret.setter
    def secret(self, secret: Optional[str]) -> None:
        self._secret = secret

    @property
    def source(self) -> CredentialSource:
        return self._source

    @property
    def config(self) -> TokenConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Collaborators
    # ------------------------------------------------------------------ #

    @property
    def cache_key(self) -> str:
        """The explicit cache key if one was set, otherwise prefix + app id.

        Derived on every access so that a later change of :attr:`app_id` is
        picked up.
        """
        if self._cache_key is not None:
            return self._cache_key
        return f"{self._config.prefix}{self._app_id or ''}"

    @cache_key.setter
    def cache_key(self, cache_key: Optional[str]) -> None:
        self._cache_key = cache_key

    @property
    def cache(self) -> CachePort:
        """The cache port, created once on first access if none was injected."""
        if self._cache is None:
            self._cache = FilesystemCache()
            self._owns_cache = True
        return self._cache

    @cache.setter
    def cache(self, cache: CachePort) -> None:
        self._cache = cache
        self._owns_cache = False

    @property
    def http(self) -> Http:
        """The request pipeline for *source*, created once on first access."""
        if self._http is None:
            self._http = Http()
            self._owns_http = True
        return self._http

    @http.setter
    def http(self, http: Http) -> None:
        self._http = http
        self._owns_http = False

    @property
    def last_credential(self) -> Optional[Credential]:
        """The token most recently stored by this instance, if any."""
        return self._last_credential

    # ------------------------------------------------------------------ #
    # Token lifecycle
    # ------------------------------------------------------------------ #

    def get_token(self, force_refresh: bool = False, timeout: Optional[float] = None) -> str:
        """Return a usable access token.

        Args:
            force_refresh: Skip the cache and fetch a new token.
            timeout: Maximum seconds to wait when another thread is already
                refreshing the same cache key.

        Returns:
            The token string.

        Raises:
            TransportError: If the token server cannot be reached.
            InvalidCredentialResponse: If the source rejects the response.
            MissingFieldError: If a configured response field is absent.
            RefreshTimeout: If *timeout* elapses while waiting on a refresh.
        """
        key = self.cache_key
        if not force_refresh:
            cached = self.cache.fetch(key) or self._fallback_token(key)
            if cached:
                return cached
        credential = self._coordinator.run(key, self._refresh, timeout=timeout)
        if credential is not self._last_credential:
            self._adopt(credential)
        return credential.token

    def set_token(self, token: str, ttl: Optional[int] = DEFAULT_TOKEN_TTL) -> AccessToken:
        """Store *token* under the current cache key.

        Only a positive *ttl* is saved to the cache port.  With ``0``, a
        negative value or ``None`` the token is kept in this instance alone,
        as the fallback for :meth:`get_token`.

        Args:
            token: The token string.
            ttl: Lifetime in seconds.

        Returns:
            ``self``, for chaining.
        """
        key = self.cache_key
        if ttl is not None and ttl > 0:
            self.cache.save(key, token, ttl)
        self._last_credential = Credential(token=token, cache_key=key, ttl=ttl)
        return self

    def _fallback_token(self, key: str) -> Optional[str]:
        credential = self._last_credential
        if credential is not None and credential.cache_key == key:
            return credential.token
        return None

    def _adopt(self, credential: Credential) -> None:
        """Keep a token that another manager refreshed for the same cache key."""
        if credential.ttl is not None and credential.ttl > 0:
            if self.cache.fetch(credential.cache_key) != credential.token:
                self.cache.save(credential.cache_key, credential.token, credential.ttl)
        self._last_credential = credential

    def _refresh(self) -> Credential:
        logger.debug("Requesting new access token for '%s'", self.cache_key)
        response = self._source.get_token_from_server(self)
        self._source.check_token_response(response)
        token, ttl = self._extract(response)
        self.set_token(token, ttl)
        logger.debug("Stored access token for '%s' (ttl=%s)", self.cache_key, ttl)
        return self._last_credential

    def _extract(self, response: Mapping[str, Any]) -> tuple[str, Optional[int]]:
        """Read the token and its lifetime from the configured response fields."""
        token_field = self._config.token_field
        if token_field not in response:
            raise MissingFieldError(token_field)
        token = response[token_field]
        if not token:
            raise InvalidCredentialResponse(
                f"Token response contains an empty '{token_field}' field", response
            )

        expires_field = self._config.expires_field
        if expires_field is None:
            return str(token), None
        if expires_field not in response:
            raise MissingFieldError(expires_field)
        try:
            ttl = int(response[expires_field])
        except (TypeError, ValueError) as exc:
            raise InvalidCredentialResponse(
                f"Token response field '{expires_field}' is not a number of seconds",
                response,
            ) from exc
        return str(token), ttl
