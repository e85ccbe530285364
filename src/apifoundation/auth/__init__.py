"""Access token management for apifoundation.

The main entry points are:

- :class:`CredentialSource` -- abstract base class a vendor adapter implements
  to fetch a token from its authority and validate the response.
- :class:`AccessToken` -- caches the token under a derived key, returns it
  while valid and refreshes it through the source when missing or forced.
- :class:`RefreshCoordinator` -- coalesces concurrent refreshes of one key.
- :func:`access_token_middleware` -- attaches the token to outgoing API
  calls and refreshes it once on ``401``.

Typical usage::

    from apifoundation.auth import AccessToken

    token = AccessToken(MyVendorSource(), app_id="app1", secret="s3cret")
    bearer = token.get_token()
"""

from apifoundation.auth.access_token import AccessToken
from apifoundation.auth.base import CredentialSource
from apifoundation.auth.middleware import access_token_middleware
from apifoundation.auth.singleflight import RefreshCoordinator, get_default_coordinator

__all__ = [
    "AccessToken",
    "CredentialSource",
    "RefreshCoordinator",
    "access_token_middleware",
    "get_default_coordinator",
]
