"""HTTP request pipeline for apifoundation.

Provides :class:`Http`, the instrumented client that every outbound call
(token requests included) goes through, and the executor layer underneath
it that wraps :mod:`httpx`.

Classes:
    :class:`Http` -- verb helpers, default-option merging, middleware chain,
    request/response logging.
    :class:`HttpxExecutor` -- default :class:`RequestExecutor` backed by
    :class:`httpx.Client`.

Example::

    from apifoundation.client import Http

    with Http() as http:
        resp = http.get("https://api.example.com/users", {"page": 1})
"""

from apifoundation.client.executor import Handler, HttpxExecutor, RequestExecutor
from apifoundation.client.http import Http, Middleware, build_multipart
from apifoundation.client.response import describe_response, extract_response_data

__all__ = [
    "Handler",
    "Http",
    "HttpxExecutor",
    "Middleware",
    "RequestExecutor",
    "build_multipart",
    "describe_response",
    "extract_response_data",
]
