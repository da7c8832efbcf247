"""JSON HTTP API for the chat service.

Each client is identified by the ``X-Client-Id`` header and gets its own
namespaced slice of the key-value store. Uses aiohttp's AppRunner/TCPSite
for non-blocking start/stop.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING, Any

from aiohttp import web

from meligy.chat import ChatService, ConversationNotFoundError, LimitReachedError
from meligy.config import settings
from meligy.storage import NamespacedStore, SqliteStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from meligy.router import MessageRouter
    from meligy.storage import KeyValueStore

logger = logging.getLogger(__name__)

CLIENT_HEADER = "X-Client-Id"
DEFAULT_CLIENT = "default"

STORE_KEY = web.AppKey("store", object)
ROUTER_FACTORY_KEY = web.AppKey("router_factory", object)
LOCKS_KEY = web.AppKey("client_locks", object)


def _client_id(request: web.Request) -> str:
    return request.headers.get(CLIENT_HEADER, "").strip() or DEFAULT_CLIENT


def _chat_service(request: web.Request) -> ChatService:
    store = NamespacedStore(request.app[STORE_KEY], _client_id(request))
    factory = request.app[ROUTER_FACTORY_KEY]
    return ChatService(store, router=factory() if factory else None)


def _client_lock(request: web.Request) -> asyncio.Lock:
    """Per-client lock; dropped once no request holds it."""
    locks = request.app[LOCKS_KEY]
    client = _client_id(request)
    lock = locks.get(client)
    if lock is None:
        lock = locks[client] = asyncio.Lock()
    return lock


# -- Handlers ------------------------------------------------------------------


async def _health(request: web.Request) -> web.Response:
    """GET /health — basic liveness check."""
    return web.json_response({"status": "ok"})


async def _list_conversations(request: web.Request) -> web.Response:
    conversations = await _chat_service(request).conversations.list()
    return web.json_response({"conversations": [c.dump() for c in conversations]})


async def _create_conversation(request: web.Request) -> web.Response:
    async with _client_lock(request):
        conversation = await _chat_service(request).conversations.create()
    return web.json_response(conversation.dump(), status=201)


async def _get_conversation(request: web.Request) -> web.Response:
    conversation_id = request.match_info["conversation_id"]
    conversation = await _chat_service(request).conversations.get(conversation_id)
    if conversation is None:
        return web.json_response({"error": "conversation not found"}, status=404)
    return web.json_response(conversation.dump())


async def _delete_conversation(request: web.Request) -> web.Response:
    conversation_id = request.match_info["conversation_id"]
    async with _client_lock(request):
        deleted = await _chat_service(request).conversations.delete(conversation_id)
    if not deleted:
        return web.json_response({"error": "conversation not found"}, status=404)
    return web.json_response({"ok": True})


async def _send_message(request: web.Request) -> web.Response:
    """POST /api/conversations/{id}/messages — run one chat turn."""
    conversation_id = request.match_info["conversation_id"]
    try:
        payload: dict[str, Any] = await request.json()
    except Exception:
        logger.warning("Send rejected: invalid JSON (conversation=%s)", conversation_id)
        return web.json_response({"error": "invalid JSON"}, status=400)

    content = payload.get("content") if isinstance(payload, dict) else None
    if not isinstance(content, str) or not content.strip():
        return web.json_response({"error": "content is required"}, status=400)

    client = _client_id(request)
    async with _client_lock(request):
        try:
            user_message, assistant_message = await _chat_service(request).send_message(
                conversation_id, content.strip()
            )
        except LimitReachedError as exc:
            logger.info("Daily limit reached for client %s", client)
            return web.json_response(
                {
                    "error": "daily limit reached",
                    "reset_in": {"hours": exc.hours, "minutes": exc.minutes},
                },
                status=429,
            )
        except ConversationNotFoundError:
            return web.json_response({"error": "conversation not found"}, status=404)

    return web.json_response({"messages": [user_message.dump(), assistant_message.dump()]})


async def _limit_status(request: web.Request) -> web.Response:
    limits = _chat_service(request).limits
    counter = await limits.read()
    hours, minutes = limits.time_until_reset()
    return web.json_response({
        "count": counter.count,
        "remaining": await limits.remaining_messages(),
        "limit": limits.limit,
        "reset_in": {"hours": hours, "minutes": minutes},
        "subscribed": await limits.is_subscribed(),
    })


def _create_web_app(
    store: KeyValueStore | None = None,
    router_factory: Callable[[], MessageRouter] | None = None,
) -> web.Application:
    """Build the aiohttp Application with routes."""
    app = web.Application()
    app[STORE_KEY] = store if store is not None else SqliteStore.get_instance()
    app[ROUTER_FACTORY_KEY] = router_factory
    app[LOCKS_KEY] = weakref.WeakValueDictionary()

    app.router.add_get("/health", _health)
    app.router.add_get("/api/conversations", _list_conversations)
    app.router.add_post("/api/conversations", _create_conversation)
    app.router.add_get("/api/conversations/{conversation_id}", _get_conversation)
    app.router.add_delete("/api/conversations/{conversation_id}", _delete_conversation)
    app.router.add_post("/api/conversations/{conversation_id}/messages", _send_message)
    app.router.add_get("/api/limit", _limit_status)
    return app


class WebServer:
    """Manages the aiohttp server lifecycle."""

    def __init__(self, host: str | None = None, port: int | None = None) -> None:
        self.host = host or settings.web_host
        self.port = port or settings.web_port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        app = _create_web_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("Meligy API listening on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Shut down the server gracefully."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Meligy API stopped")
