"""Persistent conversation list for one client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from meligy.models import Conversation, new_message_id, now_iso
from meligy.storage import CONVERSATIONS_KEY

if TYPE_CHECKING:
    from meligy.models import ChatMessage
    from meligy.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_MAX_CHARS = 30


def title_from_message(content: str) -> str:
    """First 30 characters of *content*, with an ellipsis when truncated."""
    if len(content) > TITLE_MAX_CHARS:
        return content[:TITLE_MAX_CHARS] + "..."
    return content


class ConversationStore:
    """Conversations stored newest first as one blob, read and written whole."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def _load(self) -> list[Conversation]:
        raw = await self._store.get(CONVERSATIONS_KEY, [])
        try:
            return [Conversation.model_validate(item) for item in raw or []]
        except ValidationError:
            logger.exception("Stored conversations are invalid, starting empty")
            return []

    async def _save(self, conversations: list[Conversation]) -> None:
        await self._store.set(CONVERSATIONS_KEY, [c.dump() for c in conversations])

    async def list(self) -> list[Conversation]:
        return await self._load()

    async def get(self, conversation_id: str) -> Conversation | None:
        for conversation in await self._load():
            if conversation.id == conversation_id:
                return conversation
        return None

    async def create(self) -> Conversation:
        conversations = await self._load()
        conversation = Conversation(id=new_message_id(), title=DEFAULT_TITLE)
        # Millisecond IDs can collide when created back to back.
        existing = {c.id for c in conversations}
        offset = 1
        while conversation.id in existing:
            conversation.id = new_message_id(offset)
            offset += 1
        conversations.insert(0, conversation)
        await self._save(conversations)
        logger.info("Created conversation %s", conversation.id)
        return conversation

    async def delete(self, conversation_id: str) -> bool:
        conversations = await self._load()
        remaining = [c for c in conversations if c.id != conversation_id]
        if len(remaining) == len(conversations):
            return False
        await self._save(remaining)
        logger.info("Deleted conversation %s", conversation_id)
        return True

    async def append_message(self, conversation_id: str, message: ChatMessage) -> Conversation | None:
        """Append *message*; the first user message sets the title."""
        conversations = await self._load()
        for conversation in conversations:
            if conversation.id != conversation_id:
                continue
            is_first_user_message = message.sender == "user" and not any(
                m.sender == "user" for m in conversation.messages
            )
            conversation.messages.append(message)
            if is_first_user_message:
                conversation.title = title_from_message(message.content)
            conversation.updated_at = now_iso()
            await self._save(conversations)
            return conversation
        return None
