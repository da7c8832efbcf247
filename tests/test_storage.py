"""Tests for the key-value stores."""

from pathlib import Path

import pytest

from meligy.storage import InMemoryStore, NamespacedStore, SqliteStore

# -- InMemoryStore -------------------------------------------------------------


async def test_memory_get_missing_returns_default() -> None:
    store = InMemoryStore()
    assert await store.get("nope") is None
    assert await store.get("nope", []) == []


async def test_memory_values_are_copies() -> None:
    store = InMemoryStore()
    value = {"items": [1, 2]}
    await store.set("k", value)
    value["items"].append(3)
    assert await store.get("k") == {"items": [1, 2]}


async def test_memory_delete() -> None:
    store = InMemoryStore({"k": 1})
    assert await store.delete("k") is True
    assert await store.delete("k") is False


# -- SqliteStore ---------------------------------------------------------------


@pytest.fixture
def db(tmp_path: Path) -> SqliteStore:
    return SqliteStore(db_path=tmp_path / "nested" / "test.db")


async def test_sqlite_set_and_get(db: SqliteStore) -> None:
    await db.set("meleji-subscribed", True)
    await db.set("conv", [{"id": "1", "title": "مرحبا"}])

    assert await db.get("meleji-subscribed") is True
    assert await db.get("conv") == [{"id": "1", "title": "مرحبا"}]


async def test_sqlite_overwrite(db: SqliteStore) -> None:
    await db.set("k", 1)
    await db.set("k", 2)
    assert await db.get("k") == 2


async def test_sqlite_delete(db: SqliteStore) -> None:
    await db.set("k", "v")
    assert await db.delete("k") is True
    assert await db.get("k", "gone") == "gone"
    assert await db.delete("k") is False


async def test_sqlite_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "shared.db"
    await SqliteStore(db_path=path).set("k", {"a": 1})
    assert await SqliteStore(db_path=path).get("k") == {"a": 1}


def test_sqlite_singleton(sqlite_store: SqliteStore) -> None:
    assert SqliteStore.get_instance() is sqlite_store


# -- NamespacedStore -----------------------------------------------------------


async def test_namespaces_are_isolated() -> None:
    inner = InMemoryStore()
    alice = NamespacedStore(inner, "alice")
    bob = NamespacedStore(inner, "bob")

    await alice.set("meleji-subscribed", True)

    assert await alice.get("meleji-subscribed") is True
    assert await bob.get("meleji-subscribed") is None
    assert inner.keys() == ["alice:meleji-subscribed"]
