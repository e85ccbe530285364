"""Abstract base class for credential sources.

A credential source is the vendor-specific half of token management: it
knows how to ask one particular authority for a token and how to recognise
that authority's error payloads.  Everything else (cache lookup, key
derivation, refresh coordination, storing the result) is handled by
:class:`~apifoundation.auth.access_token.AccessToken`.

To support a new API, subclass :class:`CredentialSource` and implement
:meth:`~CredentialSource.get_token_from_server` and
:meth:`~CredentialSource.check_token_response`.

Example::

    class WeChatTokenSource(CredentialSource):
        def get_token_from_server(self, token):
            response = token.http.get(
                "https://api.weixin.qq.com/cgi-bin/token",
                {
                    "grant_type": "client_credential",
                    "appid": token.app_id,
                    "secret": token.secret,
                },
            )
            return response.json()

        def check_token_response(self, response):
            if response.get("errcode"):
                raise InvalidCredentialResponse(response.get("errmsg", ""), response)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from apifoundation.auth.access_token import AccessToken


class CredentialSource(ABC):
    """Vendor adapter that fetches and validates access tokens.

    Sources are held by an :class:`~apifoundation.auth.access_token.AccessToken`
    and called only when the cache has no usable token or a refresh is forced.
    """

    @abstractmethod
    def get_token_from_server(self, token: AccessToken) -> Mapping[str, Any]:
        """Request a new token from the remote authority.

        Implementations usually go through ``token.http`` so that the call is
        logged and passes through the configured middlewares, and read the
        identity from ``token.app_id`` and ``token.secret``.

        Args:
            token: The manager asking for a token.

        Returns:
            The decoded server response.  The manager reads the configured
            token and expiry fields from it.

        Raises:
            TransportError: If the authority cannot be reached.
        """
        ...

    @abstractmethod
    def check_token_response(self, response: Mapping[str, Any]) -> None:
        """Raise if *response* reports an error.

        Called before anything is written to the cache, so raising here
        leaves the cached token untouched.

        Args:
            response: The value returned by :meth:`get_token_from_server`.

        Raises:
            InvalidCredentialResponse: If the server signalled a failure.
        """
        ...
