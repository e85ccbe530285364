"""Helpers for reading :class:`httpx.Response` objects.

:func:`extract_response_data` is what credential sources typically use to
turn a token endpoint response into the mapping that
:class:`~apifoundation.auth.AccessToken` reads.  :func:`describe_response`
builds the structured payload the request pipeline logs.
"""

from __future__ import annotations

from typing import Any

import httpx


def extract_response_data(response: httpx.Response) -> Any:
    """Decode a response body for a credential source.

    JSON bodies are decoded; anything else (an HTML error page, a plain-text
    message) comes back as text so that
    :meth:`~apifoundation.auth.CredentialSource.check_token_response` can
    report it.  An empty body yields ``None``.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def describe_response(response: httpx.Response) -> dict[str, Any]:
    """Return status, reason, headers and body text of *response* as a dict.

    Headers map each name to the ordered list of its values so that repeated
    headers such as ``Set-Cookie`` are preserved.
    """
    headers: dict[str, list[str]] = {}
    for name, value in response.headers.multi_items():
        headers.setdefault(name, []).append(value)
    return {
        "status": response.status_code,
        "reason": response.reason_phrase,
        "headers": headers,
        "body": response.text,
    }
