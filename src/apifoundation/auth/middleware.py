"""Middleware that authorises API calls with an :class:`AccessToken`.

Install it on the :class:`~apifoundation.client.Http` used for API calls,
not on the one the credential source uses to request the token itself.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from apifoundation.auth.access_token import AccessToken
from apifoundation.client import Handler, Middleware

logger = logging.getLogger(__name__)


def access_token_middleware(
    token: AccessToken,
    *,
    query_param: Optional[str] = None,
    header: str = "Authorization",
    scheme: Optional[str] = "Bearer",
    retry_statuses: tuple[int, ...] = (401,),
) -> Middleware:
    """Build a middleware that attaches the current token to every request.

    When the response status is in *retry_statuses* the token is refreshed
    with ``force_refresh=True`` and the request is sent once more.

    Args:
        token: Manager supplying the token.
        query_param: Send the token as this query parameter (e.g.
            ``"access_token"``) instead of a header.
        header: Header name used when *query_param* is not set.
        scheme: Prefix for the header value; ``None`` sends the bare token.
        retry_statuses: Statuses that trigger one refresh and replay.

    Returns:
        A middleware for :meth:`~apifoundation.client.Http.add_middleware`.

    Example::

        api = Http()
        api.add_middleware(access_token_middleware(token, query_param="access_token"))
    """

    def authorize(request: httpx.Request, value: str) -> httpx.Request:
        if query_param is not None:
            request.url = request.url.copy_set_param(query_param, value)
        else:
            request.headers[header] = f"{scheme} {value}" if scheme else value
        return request

    def middleware(next_handler: Handler) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            response = next_handler(authorize(request, token.get_token()))
            if response.status_code not in retry_statuses:
                return response
            logger.info(
                "Got HTTP %s for %s %s, refreshing access token and retrying",
                response.status_code,
                request.method,
                request.url.copy_remove_param(query_param) if query_param else request.url,
            )
            response.close()
            return next_handler(authorize(request, token.get_token(force_refresh=True)))

        return handler

    return middleware
