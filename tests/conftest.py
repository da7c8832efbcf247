"""Shared test fixtures."""

import pytest

from meligy.storage import InMemoryStore, SqliteStore


@pytest.fixture
def store() -> InMemoryStore:
    """Fresh in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """SqliteStore rooted in a temporary directory, installed as the singleton."""
    SqliteStore._reset()
    s = SqliteStore(db_path=tmp_path / "meligy.db")
    SqliteStore._instance = s
    yield s
    SqliteStore._reset()


@pytest.fixture
def _gemini_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure a dummy Gemini API key."""
    monkeypatch.setattr("meligy.config.settings.gemini_api_key", "test-gemini-key")
