"""Tests for the JSON HTTP API."""

import gc
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from aiohttp.test_utils import TestClient, TestServer

from meligy.models import RouterReply
from meligy.storage import DAILY_MESSAGES_KEY, InMemoryStore, NamespacedStore
from meligy.web.server import LOCKS_KEY, _create_web_app

# -- Helpers -------------------------------------------------------------------


def _router_factory():
    router = MagicMock()
    router.route = AsyncMock(return_value=RouterReply(content="Ahlan!"))
    return lambda: router


async def _make_client(store: InMemoryStore | None = None) -> TestClient:
    """Create a TestClient for the API app."""
    app = _create_web_app(store=store or InMemoryStore(), router_factory=_router_factory())
    client = TestClient(TestServer(app))
    await client.start_server()
    return client


# -- Health --------------------------------------------------------------------


async def test_health_check() -> None:
    client = await _make_client()
    try:
        resp = await client.get("/health")
        assert resp.status == 200
        assert (await resp.json())["status"] == "ok"
    finally:
        await client.close()


# -- Conversations -------------------------------------------------------------


async def test_create_list_get_delete() -> None:
    client = await _make_client()
    try:
        resp = await client.post("/api/conversations")
        assert resp.status == 201
        conv = await resp.json()
        assert conv["title"] == "New Chat"

        listed = await (await client.get("/api/conversations")).json()
        assert [c["id"] for c in listed["conversations"]] == [conv["id"]]

        resp = await client.get(f"/api/conversations/{conv['id']}")
        assert resp.status == 200

        resp = await client.delete(f"/api/conversations/{conv['id']}")
        assert resp.status == 200
        resp = await client.get(f"/api/conversations/{conv['id']}")
        assert resp.status == 404
    finally:
        await client.close()


async def test_clients_are_isolated() -> None:
    client = await _make_client()
    try:
        await client.post("/api/conversations", headers={"X-Client-Id": "alice"})
        listed = await (await client.get("/api/conversations", headers={"X-Client-Id": "bob"})).json()
        assert listed["conversations"] == []
    finally:
        await client.close()


# -- Messages ------------------------------------------------------------------


async def test_send_message() -> None:
    client = await _make_client()
    try:
        conv = await (await client.post("/api/conversations")).json()
        resp = await client.post(
            f"/api/conversations/{conv['id']}/messages", json={"content": "hello"}
        )
        assert resp.status == 200
        data = await resp.json()
        assert [m["sender"] for m in data["messages"]] == ["user", "assistant"]
        assert data["messages"][1]["content"] == "Ahlan!"
    finally:
        await client.close()


async def test_send_rejects_invalid_json() -> None:
    client = await _make_client()
    try:
        conv = await (await client.post("/api/conversations")).json()
        resp = await client.post(
            f"/api/conversations/{conv['id']}/messages",
            data="not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status == 400
    finally:
        await client.close()


async def test_send_rejects_empty_content() -> None:
    client = await _make_client()
    try:
        conv = await (await client.post("/api/conversations")).json()
        resp = await client.post(f"/api/conversations/{conv['id']}/messages", json={"content": "   "})
        assert resp.status == 400
    finally:
        await client.close()


async def test_send_unknown_conversation() -> None:
    client = await _make_client()
    try:
        resp = await client.post("/api/conversations/nope/messages", json={"content": "hi"})
        assert resp.status == 404
    finally:
        await client.close()


async def test_send_over_limit_returns_429() -> None:
    store = InMemoryStore()
    client = await _make_client(store)
    try:
        conv = await (await client.post("/api/conversations")).json()
        await NamespacedStore(store, "default").set(
            DAILY_MESSAGES_KEY, {"count": 25, "lastResetDate": date.today().isoformat()}
        )

        resp = await client.post(f"/api/conversations/{conv['id']}/messages", json={"content": "hi"})

        assert resp.status == 429
        data = await resp.json()
        assert set(data["reset_in"]) == {"hours", "minutes"}
    finally:
        await client.close()



async def test_client_locks_released_after_requests() -> None:
    client = await _make_client()
    try:
        headers = {"X-Client-Id": "alice"}
        conv = await (await client.post("/api/conversations", headers=headers)).json()
        await client.post(
            f"/api/conversations/{conv['id']}/messages", json={"content": "hi"}, headers=headers
        )
        resp = await client.delete(f"/api/conversations/{conv['id']}", headers=headers)
        assert resp.status == 200

        gc.collect()
        assert len(client.server.app[LOCKS_KEY]) == 0
    finally:
        await client.close()

# -- Limit status --------------------------------------------------------------


async def test_limit_status() -> None:
    client = await _make_client()
    try:
        conv = await (await client.post("/api/conversations")).json()
        await client.post(f"/api/conversations/{conv['id']}/messages", json={"content": "hi"})

        data = await (await client.get("/api/limit")).json()

        assert data["count"] == 1
        assert data["remaining"] == 24
        assert data["limit"] == 25
        assert data["subscribed"] is False
    finally:
        await client.close()
