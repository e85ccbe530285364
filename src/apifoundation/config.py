"""Runtime configuration helpers.

* **Cache location** -- :func:`get_cache_dir` resolves the directory used by
  the default :class:`~apifoundation.cache.FilesystemCache`. It lives under
  the system temp directory unless overridden by a
  :class:`~apifoundation.models.CacheConfig` or the
  ``APIFOUNDATION_CACHE_DIR`` environment variable.
* **Credential resolution** -- :func:`resolve_credential` reads app ids and
  secrets from environment variables or files so that embedding applications
  do not have to hard-code them.

Nothing in this module reads configuration files.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from apifoundation.exceptions import ConfigError
from apifoundation.models import CacheConfig

_APP_NAME = "apifoundation"
_CACHE_DIR_ENV = "APIFOUNDATION_CACHE_DIR"


def get_cache_dir(config: Optional[CacheConfig] = None) -> Path:
    """Return the token cache directory, creating it if necessary.

    Precedence: ``config.directory``, then ``$APIFOUNDATION_CACHE_DIR``, then
    ``<system temp dir>/apifoundation``.

    Args:
        config: Optional cache configuration.

    Returns:
        The existing cache directory.

    Raises:
        ConfigError: If the directory cannot be created.
    """
    if config is not None and config.directory:
        path = Path(config.directory).expanduser()
    elif os.environ.get(_CACHE_DIR_ENV):
        path = Path(os.environ[_CACHE_DIR_ENV]).expanduser()
    else:
        path = Path(tempfile.gettempdir()) / _APP_NAME
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Cannot create cache directory {path}: {exc}") from exc
    return path


def resolve_credential(source: str) -> str:
    """Resolve an app id or secret given as a literal or a reference.

    ``env:NAME`` reads the environment variable ``NAME``; ``file:PATH`` reads
    the file at ``PATH`` and strips surrounding whitespace.  Any other string
    is taken as the value itself.

    Raises:
        ConfigError: If the variable is unset or the file is missing or
            unreadable.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        if var_name not in os.environ:
            raise ConfigError(
                f"Cannot resolve {source!r}: environment variable {var_name} is unset"
            )
        return os.environ[var_name]

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Cannot resolve {source!r}: no such file {path}")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot resolve {source!r}: {exc}") from exc

    return source
