"""Exception hierarchy for apifoundation.

All exceptions inherit from :class:`FoundationError` so that embedding
applications can catch everything raised by this package with one clause.
Nothing here is retried or swallowed by the package itself; every error
surfaces synchronously to the caller of
:meth:`~apifoundation.auth.AccessToken.get_token` or
:meth:`~apifoundation.client.Http.request`.

Subclass hierarchy::

    FoundationError
    +-- ConfigError
    +-- TransportError
    +-- CredentialError
        +-- InvalidCredentialResponse
        +-- MissingFieldError
        +-- RefreshTimeout
"""

from __future__ import annotations


class FoundationError(Exception):
    """Base exception for all apifoundation errors."""


class ConfigError(FoundationError):
    """Raised for configuration problems (bad credential sources, unusable cache directory)."""


class TransportError(FoundationError):
    """Raised by the request executor on network or protocol failure.

    The underlying :class:`httpx.TransportError` is kept as ``__cause__``.
    """


class CredentialError(FoundationError):
    """Base class for failures while acquiring an access token."""


class InvalidCredentialResponse(CredentialError):
    """Raised by a credential source when the token server reports an error.

    Args:
        message: Human-readable description of the failure.
        response: The server response that signalled the error, if any.
    """

    def __init__(self, message: str, response: object = None):
        super().__init__(message)
        self.response = response


class MissingFieldError(CredentialError):
    """Raised when a configured token or expiry field is absent from a token response."""

    def __init__(self, field: str):
        super().__init__(f"Token response missing '{field}' field")
        self.field = field


class RefreshTimeout(CredentialError):
    """Raised when waiting on another caller's in-flight refresh exceeds the deadline."""
