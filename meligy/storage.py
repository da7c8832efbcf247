"""Key-value persistence for client state.

Every piece of persisted state (conversations, daily counter, subscription
flag, learning profile) is a JSON blob under a fixed key, read and written
wholesale.  Components receive a ``KeyValueStore`` instead of touching a
global backend:

- ``SqliteStore`` — aiosqlite-backed table for production
- ``InMemoryStore`` — dict-backed, for tests
- ``NamespacedStore`` — prefixes keys so several clients share one backend
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import aiosqlite

from meligy.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "meleji-conversations"
DAILY_MESSAGES_KEY = "meleji-daily-message-data"
SUBSCRIBED_KEY = "meleji-subscribed"
LEARNING_KEY = "meleji-learning-data"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class KeyValueStore(ABC):
    """Async get/set over JSON-serialisable values."""

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for *key*, or *default* if absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*. Returns True if it existed."""


class InMemoryStore(KeyValueStore):
    """Dict-backed store. Values are round-tripped through JSON like the real one."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {
            k: json.dumps(v, ensure_ascii=False) for k, v in (initial or {}).items()
        }

    async def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else default

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


class SqliteStore(KeyValueStore):
    """Persists key-value blobs in SQLite.

    Singleton accessed via ``SqliteStore.get_instance()``.  Pass an explicit
    *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    _instance: SqliteStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    @classmethod
    def get_instance(cls) -> SqliteStore:
        """Return the shared SqliteStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    # -- KeyValueStore ---------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
        finally:
            await db.close()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt value for key %s", key)
            return default

    async def set(self, key: str, value: Any) -> None:
        db = await self._connect()
        try:
            await db.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (key, json.dumps(value, ensure_ascii=False), datetime.now(UTC).isoformat()),
            )
            await db.commit()
        finally:
            await db.close()

    async def delete(self, key: str) -> bool:
        db = await self._connect()
        try:
            cursor = await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()


class NamespacedStore(KeyValueStore):
    """View of another store with every key prefixed by ``<namespace>:``."""

    def __init__(self, inner: KeyValueStore, namespace: str) -> None:
        self._inner = inner
        self._prefix = f"{namespace}:"

    async def get(self, key: str, default: Any = None) -> Any:
        return await self._inner.get(self._prefix + key, default)

    async def set(self, key: str, value: Any) -> None:
        await self._inner.set(self._prefix + key, value)

    async def delete(self, key: str) -> bool:
        return await self._inner.delete(self._prefix + key)
