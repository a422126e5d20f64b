"""Pytest configuration for test isolation.

Extraction behaviour depends on environment variables (credentials select the
remote extractor, ``TXN_CATEGORY_RULES`` swaps the rule table, ``DATABASE_URL``
selects the database). A developer shell or a local ``.env`` could leak those
into tests and turn a local-only test into a network call, so every test
starts from a clean slate. The shared SQLAlchemy engine is disposed after each
test so the next one may bind a different database URL.
"""

from __future__ import annotations

import pytest

_ISOLATED_ENV_VARS: tuple[str, ...] = (
    "OPENAI_API_KEY",
    "TXN_REMOTE_MODEL",
    "TXN_REMOTE_TIMEOUT",
    "TXN_CATEGORY_RULES",
    "DATABASE_URL",
    "TRANSACTION_EXTRACTION_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Clear configuration env vars and run from an empty working directory."""

    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the CWD; keep the repo's own file out of reach.
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _dispose_db_engine():
    yield
    from db.client import dispose_engine

    dispose_engine()
