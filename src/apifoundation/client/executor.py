"""Request executor -- the single place where HTTP traffic leaves the process.

:class:`HttpxExecutor` wraps one :class:`httpx.Client` and translates the
option mapping assembled by :class:`~apifoundation.client.http.Http` into
httpx arguments:

==============  ==============================================
Option          httpx argument
==============  ==============================================
``query``       ``params``
``form_params`` ``data``
``json``        ``json``
``multipart``   ``files`` (file parts are opened for the call)
``headers``     ``headers``
``cookies``     ``cookies``
``timeout``     ``timeout``
``handler``     runs the built request (defaults to :meth:`send`)
==============  ==============================================

Network and protocol failures are re-raised as
:class:`~apifoundation.exceptions.TransportError`; nothing is retried here.
"""

from __future__ import annotations

import logging
import os
from contextlib import ExitStack
from typing import Any, Callable, Mapping, Optional, Protocol

import httpx

from apifoundation.exceptions import TransportError
from apifoundation.models import RequestConfig

logger = logging.getLogger(__name__)

Handler = Callable[[httpx.Request], httpx.Response]

_OPTION_ARGUMENTS = {
    "query": "params",
    "form_params": "data",
    "json": "json",
    "headers": "headers",
    "cookies": "cookies",
    "timeout": "timeout",
}
_HANDLED_OPTIONS = frozenset(_OPTION_ARGUMENTS) | {"multipart", "handler"}


class RequestExecutor(Protocol):
    """Performs a single HTTP call."""

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send an already built request; this is the innermost handler."""
        ...

    def execute(
        self, method: str, url: str, options: Mapping[str, Any]
    ) -> httpx.Response:
        """Build a request from *options* and run it through ``options["handler"]``."""
        ...


class HttpxExecutor:
    """Default :class:`RequestExecutor` backed by :class:`httpx.Client`.

    The client is created lazily on first use from *config* unless one is
    injected.  An injected client is not closed by :meth:`close`.

    Args:
        config: Timeout, TLS, redirect, base URL and IPv4 settings.
        client: Pre-configured client, e.g. one using
            :class:`httpx.MockTransport` in tests.
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        """The underlying :class:`httpx.Client`, built on first access."""
        if self._client is None:
            config = self._config
            transport = None
            if config.ipv4_only:
                transport = httpx.HTTPTransport(
                    verify=config.verify_ssl, local_address="0.0.0.0"
                )
            self._client = httpx.Client(
                base_url=config.base_url,
                timeout=config.timeout,
                verify=config.verify_ssl,
                follow_redirects=config.follow_redirects,
                transport=transport,
            )
            self._owns_client = True
        return self._client

    def send(self, request: httpx.Request) -> httpx.Response:
        return self.client.send(request)

    def execute(
        self, method: str, url: str, options: Mapping[str, Any]
    ) -> httpx.Response:
        """Execute one request.

        Args:
            method: Upper-case HTTP method.
            url: Absolute URL, or a path relative to ``config.base_url``.
            options: Merged request options (see the module docstring).

        Returns:
            The :class:`httpx.Response`, with its body already read.

        Raises:
            TransportError: On connection, timeout or protocol errors.
        """
        handler: Handler = options.get("handler") or self.send
        with ExitStack() as stack:
            kwargs = self._build_arguments(options, stack)
            request = self.client.build_request(method, url, **kwargs)
            try:
                return handler(request)
            except httpx.TransportError as exc:
                raise TransportError(f"{method} {url} failed: {exc}") from exc

    def close(self) -> None:
        """Close the underlying client if this executor created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _build_arguments(
        self, options: Mapping[str, Any], stack: ExitStack
    ) -> dict[str, Any]:
        """Translate request options into :meth:`httpx.Client.build_request` kwargs."""
        kwargs: dict[str, Any] = {}
        for option, argument in _OPTION_ARGUMENTS.items():
            if options.get(option) is not None:
                kwargs[argument] = options[option]

        parts = options.get("multipart")
        if parts:
            kwargs["files"] = [self._open_part(part, stack) for part in parts]

        unknown = set(options) - _HANDLED_OPTIONS
        if unknown:
            logger.debug("Ignoring unsupported request options: %s", sorted(unknown))
        return kwargs

    @staticmethod
    def _open_part(part: Mapping[str, Any], stack: ExitStack) -> tuple[str, tuple[Any, Any]]:
        """Turn a multipart part dict into an httpx ``files`` entry.

        File parts (``path``) are opened in binary mode and closed by *stack*
        once the request completes; content parts are sent without a file name.
        """
        name = part["name"]
        if "path" in part:
            path = os.fspath(part["path"])
            handle = stack.enter_context(open(path, "rb"))
            return name, (part.get("filename") or os.path.basename(path), handle)
        contents = part.get("contents")
        if not isinstance(contents, (str, bytes)) and not hasattr(contents, "read"):
            contents = "" if contents is None else str(contents)
        return name, (part.get("filename"), contents)
