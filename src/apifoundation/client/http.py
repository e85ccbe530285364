"""The request pipeline every outbound call goes through.

:class:`Http` exposes verb-shaped helpers (:meth:`~Http.get`,
:meth:`~Http.post`, :meth:`~Http.json`, :meth:`~Http.upload`) that only shape
their arguments into an option mapping and delegate to :meth:`~Http.request`.
``request`` then:

1. upper-cases the method,
2. shallow-merges the instance default options with the call options
   (the call wins per key),
3. logs the outbound request at ``DEBUG`` with secrets redacted,
4. builds the execution handler from the middleware chain,
5. hands everything to the :class:`~apifoundation.client.executor.RequestExecutor`,
6. logs the response at ``DEBUG`` and returns it.

Middleware
----------
A middleware is a callable that receives the next handler and returns a new
handler, where a handler maps an :class:`httpx.Request` to an
:class:`httpx.Response`::

    def add_trace_header(next_handler):
        def handler(request):
            request.headers["X-Trace"] = "1"
            return next_handler(request)
        return handler

Middlewares run in registration order: the first one registered sees the
request first.  A ``handler`` entry in the default options is applied as
the innermost middleware, after all registered ones.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import httpx

from apifoundation.client.executor import Handler, HttpxExecutor, RequestExecutor
from apifoundation.client.response import describe_response
from apifoundation.log import redact_options
from apifoundation.models import RequestConfig

logger = logging.getLogger(__name__)

Middleware = Callable[[Handler], Handler]
FilePath = Union[str, "os.PathLike[str]"]


def build_multipart(
    files: Optional[Mapping[str, Union[FilePath, Iterable[FilePath]]]] = None,
    form: Optional[Mapping[str, Any]] = None,
) -> list[dict[str, Any]]:
    """Assemble the multipart part list for :meth:`Http.upload`.

    A file entry whose value is an iterable of paths (list, tuple, set,
    generator) produces one part per path named ``<field>[]``; a single path
    (``str`` or :class:`os.PathLike`) produces one part named ``<field>``.  Each form field produces one ``contents`` part.  Files are
    not opened here; the executor opens them for the duration of the call.

    Example::

        >>> build_multipart({"pics": ["/a.jpg", "/b.jpg"]}, {"title": "x"})
        [{'name': 'pics[]', 'path': '/a.jpg'}, {'name': 'pics[]', 'path': '/b.jpg'},
         {'name': 'title', 'contents': 'x'}]
    """
    parts: list[dict[str, Any]] = []
    for name, path in (files or {}).items():
        if isinstance(path, Iterable) and not isinstance(path, (str, bytes, os.PathLike)):
            for item in path:
                parts.append({"name": f"{name}[]", "path": item})
        else:
            parts.append({"name": name, "path": path})
    for name, contents in (form or {}).items():
        parts.append({"name": name, "contents": contents})
    return parts


class Http:
    """Instrumented HTTP client shared by credential sources and API clients.

    Default options are scoped to the instance.  The executor is created
    lazily as an :class:`~apifoundation.client.executor.HttpxExecutor` unless
    one is injected.

    Args:
        executor: Request executor to use.  When ``None``, one is built from
            *config* on first use.
        default_options: Options merged under every call's options.
        config: Settings for the lazily built executor.

    Example::

        with Http(config=RequestConfig(base_url="https://api.example.com")) as http:
            http.add_middleware(add_trace_header)
            response = http.get("/users", {"page": 2})
    """

    def __init__(
        self,
        executor: Optional[RequestExecutor] = None,
        *,
        default_options: Optional[Mapping[str, Any]] = None,
        config: Optional[RequestConfig] = None,
    ) -> None:
        self._executor = executor
        self._owns_executor = executor is None
        self._config = config
        self._default_options: dict[str, Any] = dict(default_options or {})
        self._middlewares: list[Middleware] = []

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Http:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the executor if this pipeline created it."""
        if self._owns_executor and isinstance(self._executor, HttpxExecutor):
            self._executor.close()

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def executor(self) -> RequestExecutor:
        """The request executor, built on first access if none was injected."""
        if self._executor is None:
            self._executor = HttpxExecutor(self._config)
            self._owns_executor = True
        return self._executor

    @executor.setter
    def executor(self, executor: RequestExecutor) -> None:
        self._executor = executor
        self._owns_executor = False

    @property
    def default_options(self) -> dict[str, Any]:
        """A copy of the options merged under every request."""
        return dict(self._default_options)

    @default_options.setter
    def default_options(self, options: Mapping[str, Any]) -> None:
        self._default_options = dict(options)

    def set_default_options(self, options: Optional[Mapping[str, Any]] = None) -> None:
        """Replace the default options of this instance."""
        self.default_options = options or {}

    def get_default_options(self) -> dict[str, Any]:
        """Return a copy of the default options of this instance."""
        return self.default_options

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        """Registered middlewares, in registration order."""
        return tuple(self._middlewares)

    def add_middleware(self, middleware: Middleware) -> Http:
        """Append *middleware* to the chain and return ``self``."""
        self._middlewares.append(middleware)
        return self

    # ------------------------------------------------------------------ #
    # Verb helpers
    # ------------------------------------------------------------------ #

    def get(
        self,
        url: str,
        query: Optional[Mapping[str, Any]] = None,
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send a GET request with *query* as the query string."""
        return self.request(url, "GET", {**(options or {}), "query": query or {}})

    def post(
        self,
        url: str,
        form_params: Optional[Mapping[str, Any]] = None,
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send a form-encoded POST request."""
        return self.request(
            url, "POST", {**(options or {}), "form_params": form_params or {}}
        )

    def json(
        self,
        url: str,
        json_body: Any = None,
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send a POST request with a JSON body."""
        body = {} if json_body is None else json_body
        return self.request(url, "POST", {**(options or {}), "json": body})

    def upload(
        self,
        url: str,
        queries: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Union[FilePath, Iterable[FilePath]]]] = None,
        form: Optional[Mapping[str, Any]] = None,
        *,
        options: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send a multipart POST request.

        Args:
            url: Target URL.
            queries: Query string parameters.
            files: Field name to a file path, or to an iterable of paths for
                repeated ``<field>[]`` parts.
            form: Plain form fields sent as additional parts.
            options: Extra request options (headers, timeout, ...).

        Returns:
            The :class:`httpx.Response`.
        """
        multipart = build_multipart(files, form)
        return self.request(
            url,
            "POST",
            {**(options or {}), "query": queries or {}, "multipart": multipart},
        )

    # ------------------------------------------------------------------ #
    # Core
    # ------------------------------------------------------------------ #

    def request(
        self,
        url: str,
        method: str = "GET",
        options: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Make a request through the middleware chain.

        Args:
            url: Target URL.
            method: HTTP method, case-insensitive.
            options: Per-call options; each key overrides the default
                option of the same name.

        Returns:
            The :class:`httpx.Response` from the executor.

        Raises:
            TransportError: On network or protocol failure.
        """
        method = method.upper()
        merged = {**self._default_options, **(options or {})}

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Client request: %s %s",
                method,
                url,
                extra={
                    "http_request": {
                        "url": url,
                        "method": method,
                        "options": redact_options(merged),
                    }
                },
            )

        merged["handler"] = self.build_handler()
        response = self.executor.execute(method, url, merged)

        if logger.isEnabledFor(logging.DEBUG):
            described = describe_response(response)
            logger.debug(
                "API response: %s %s",
                described["status"],
                described["reason"],
                extra={"http_response": described},
            )
        return response

    def build_handler(self) -> Handler:
        """Compose a fresh handler from the middleware chain.

        The executor's ``send`` is the innermost handler, wrapped first by the
        default-options ``handler`` (if any) and then by the registered
        middlewares from last to first, so that the first registered
        middleware runs first.
        """
        handler: Handler = self.executor.send
        layers = list(self._middlewares)
        default_handler = self._default_options.get("handler")
        if default_handler is not None:
            layers.append(default_handler)
        for middleware in reversed(layers):
            handler = middleware(handler)
        return handler
