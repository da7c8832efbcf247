"""Chat service — the send-message flow for one client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from meligy.adapters.conversation import ConversationalAdapter
from meligy.conversations import ConversationStore
from meligy.learning import LearningSystem
from meligy.limits import DailyLimitGate
from meligy.models import ChatMessage
from meligy.router import MessageRouter

if TYPE_CHECKING:
    from meligy.storage import KeyValueStore

logger = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, I encountered an error. Please try again."


class ChatError(Exception):
    """Base for errors a client can be told about."""


class LimitReachedError(ChatError):
    def __init__(self, hours: int, minutes: int) -> None:
        super().__init__(f"Daily message limit reached. Resets in {hours}h {minutes}m.")
        self.hours = hours
        self.minutes = minutes


class ConversationNotFoundError(ChatError):
    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class ChatService:
    """Gate, record, learn, route and reply for a single client's store."""

    def __init__(self, store: KeyValueStore, router: MessageRouter | None = None) -> None:
        self.conversations = ConversationStore(store)
        self.limits = DailyLimitGate(store)
        self.learning = LearningSystem(store)
        self.router = router or MessageRouter(
            conversation=ConversationalAdapter(learning=self.learning)
        )

    async def send_message(self, conversation_id: str, text: str) -> tuple[ChatMessage, ChatMessage]:
        """Handle one user message and return ``(user_message, assistant_message)``.

        Raises LimitReachedError when a free-tier client is out of messages and
        ConversationNotFoundError for unknown conversation IDs, including one
        deleted before the reply is stored.
        """
        subscribed = await self.limits.is_subscribed()
        if not subscribed and await self.limits.is_limit_reached():
            raise LimitReachedError(*self.limits.time_until_reset())

        conversation = await self.conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        history = list(conversation.messages)

        user_message = ChatMessage(content=text, sender="user")
        if await self.conversations.append_message(conversation_id, user_message) is None:
            raise ConversationNotFoundError(conversation_id)
        await self.learning.learn_from_interaction(text, history)

        try:
            reply = await self.router.route(text, history)
            assistant_message = ChatMessage(
                id=str(int(user_message.id) + 1),
                content=reply.content,
                sender="assistant",
                type=reply.type,
                media_url=reply.media_url,
                table_html=reply.table_html,
            )
        except Exception:
            logger.exception("Error generating reply for conversation %s", conversation_id)
            assistant_message = ChatMessage(
                id=str(int(user_message.id) + 1), content=ERROR_REPLY, sender="assistant"
            )

        if await self.conversations.append_message(conversation_id, assistant_message) is None:
            logger.warning("Conversation %s was deleted while replying", conversation_id)
            raise ConversationNotFoundError(conversation_id)
        await self.learning.learn_from_response(assistant_message.content, text)

        if not subscribed:
            await self.limits.increment_message_count()
        return user_message, assistant_message
