"""Logging helpers for the request pipeline.

apifoundation logs through the standard :mod:`logging` module with one
logger per module.  Request and response records are emitted at ``DEBUG``
with a structured payload attached via ``extra`` so that JSON log sinks can
pick them up without parsing the message.

Two helpers live here:

* :func:`redact_options` -- masks secrets in request options before they
  are logged.
* :func:`configure_logging` -- convenience setup that routes the package
  logger through :class:`rich.logging.RichHandler`.  Applications with their
  own logging configuration should simply not call it.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "apifoundation"

REDACTED = "***"

SENSITIVE_KEYS = frozenset(
    {
        "secret",
        "appsecret",
        "app_secret",
        "client_secret",
        "password",
        "access_token",
        "refresh_token",
        "authorization",
    }
)

# Option keys whose values are mappings that may contain secrets.
_NESTED_OPTION_KEYS = ("query", "form_params", "json", "headers")


def _redact_mapping(values: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: REDACTED if str(key).lower() in SENSITIVE_KEYS else value
        for key, value in values.items()
    }


def redact_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *options* that is safe to log.

    Sensitive keys are masked at the top level and one level inside the
    ``query``, ``form_params``, ``json`` and ``headers`` options.  Multipart
    parts are reduced to their field names, and the ``handler`` callable is
    replaced by its name.

    Args:
        options: Merged request options.

    Returns:
        A new dict; *options* is not modified.
    """
    redacted = _redact_mapping(options)
    for key in _NESTED_OPTION_KEYS:
        value = redacted.get(key)
        if isinstance(value, Mapping):
            redacted[key] = _redact_mapping(value)
    if isinstance(redacted.get("multipart"), list):
        redacted["multipart"] = [part.get("name") for part in redacted["multipart"]]
    if "handler" in redacted:
        handler = redacted["handler"]
        redacted["handler"] = getattr(handler, "__name__", type(handler).__name__)
    return redacted


def configure_logging(level: int = logging.INFO, *, rich: bool = True) -> logging.Logger:
    """Attach a handler to the ``apifoundation`` logger.

    Calling this more than once replaces the previously installed handler.

    Args:
        level: Log level for the package logger (``logging.DEBUG`` shows
            every request and response).
        rich: Use :class:`~rich.logging.RichHandler` on stderr; when
            ``False`` a plain :class:`logging.StreamHandler` is used.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(logger.handlers):
        if getattr(existing, "_apifoundation", False):
            logger.removeHandler(existing)

    handler: logging.Handler
    if rich:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    handler._apifoundation = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
