"""Shared test fixtures for apifoundation.

Keeps the default filesystem cache inside ``tmp_path`` and provides the
``recording_cache`` and ``make_token`` fixtures.  The doubles they are built
from live in ``doubles.py``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from apifoundation.auth import AccessToken, CredentialSource, RefreshCoordinator
from apifoundation.models import TokenConfig

from doubles import RecordingCache, StubSource


# ---------------------------------------------------------------------------
# Keep the default filesystem cache out of the real temp directory
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    cache_dir = tmp_path / "apifoundation-cache"
    monkeypatch.setenv("APIFOUNDATION_CACHE_DIR", str(cache_dir))
    return cache_dir


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recording_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def make_token(recording_cache: RecordingCache) -> Callable[..., AccessToken]:
    """Factory for AccessToken instances wired to the recording cache.

    Every token gets a private RefreshCoordinator so tests never share
    in-flight state.
    """

    def _make(
        source: Optional[CredentialSource] = None,
        app_id: str = "app1",
        prefix: str = "tok:",
        **config: Any,
    ) -> AccessToken:
        return AccessToken(
            source or StubSource(),
            app_id=app_id,
            secret="s3cret",
            config=TokenConfig(prefix=prefix, **config),
            cache=recording_cache,
            coordinator=RefreshCoordinator(),
        )

    return _make
