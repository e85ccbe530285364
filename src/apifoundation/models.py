"""Pydantic models shared across apifoundation modules.

**Configuration models** are passed to constructors:
    :class:`RequestConfig` (HTTP executor), :class:`CacheConfig` (default
    filesystem cache) and :class:`TokenConfig` (cache key derivation and
    token response field names).

**Data models** describe values produced at runtime:
    :class:`Credential`, the token most recently stored by an
    :class:`~apifoundation.auth.AccessToken`.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_TOKEN_TTL = 86400
"""Default lifetime, in seconds, used by ``AccessToken.set_token``."""


class RequestConfig(BaseModel):
    """Settings for the default :class:`~apifoundation.client.HttpxExecutor`."""

    base_url: str = Field(default="", description="Base URL prepended to relative request URLs")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    ipv4_only: bool = Field(
        default=True, description="Bind outgoing connections to IPv4 only"
    )


class CacheConfig(BaseModel):
    """Settings for the default :class:`~apifoundation.cache.FilesystemCache`."""

    directory: Optional[str] = Field(
        default=None,
        description="Cache directory (None = a folder under the system temp dir)",
    )
    default_ttl: Optional[int] = Field(
        default=None, description="TTL applied when save() is called without one"
    )


class TokenConfig(BaseModel):
    """How an :class:`~apifoundation.auth.AccessToken` names and reads its token.

    Example::

        TokenConfig(prefix="wechat.access_token.", expires_field="expires_in")
    """

    prefix: str = Field(
        default="apifoundation.access_token.",
        description="Cache key prefix; the app id is appended to it",
    )
    cache_key: Optional[str] = Field(
        default=None, description="Explicit cache key overriding prefix + app id"
    )
    token_field: str = Field(
        default="access_token", description="Token field in the server response"
    )
    expires_field: Optional[str] = Field(
        default="expires_in",
        description="Lifetime field in the server response (None = no expiry)",
    )


class Credential(BaseModel):
    """A token together with the cache key it is stored under."""

    token: str
    cache_key: str
    ttl: Optional[int] = None
