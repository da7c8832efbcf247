"""Message router — classify a user message and dispatch it to one adapter."""

from __future__ import annotations

import logging
import re
from enum import StrEnum
from typing import TYPE_CHECKING

from meligy.adapters.conversation import ConversationalAdapter
from meligy.adapters.image import ImageService
from meligy.adapters.search import SearchService, extract_search_query, should_search_internet
from meligy.adapters.table import TableGenerator, parse_table_request, should_generate_table
from meligy.config import settings
from meligy.language import is_arabic
from meligy.models import RouterReply

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from meligy.models import ChatMessage

    Handler = Callable[[str, Sequence[ChatMessage]], Awaitable[RouterReply | None]]

logger = logging.getLogger(__name__)

APOLOGY = (
    "I apologize, but I encountered an error while processing your request. "
    "Please try again."
)
SEARCH_RESULTS_SHOWN = 3


class Intent(StrEnum):
    IDENTITY = "identity"
    SEARCH = "search"
    TABLE = "table"
    IMAGE = "image"
    CHAT = "chat"


INTENT_PRIORITY = (Intent.IDENTITY, Intent.SEARCH, Intent.TABLE, Intent.IMAGE, Intent.CHAT)


# -- Identity ------------------------------------------------------------------

_IDENTITY_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"what.*your.*name",
        r"who.*are.*you",
        r"who.*made.*you",
        r"who.*created.*you",
        r"who.*developed.*you",
        r"what.*are.*you",
        r"tell.*me.*about.*yourself",
        r"introduce.*yourself",
        r"meligy",
        r"meleji",
        r"ما.*اسمك",
        r"من.*أنت",
        r"من.*صنعك",
        r"من.*طورك",
        r"من.*صممك",
        r"عرف.*نفسك",
        r"أخبرني.*عن.*نفسك",
        r"ميليجي",
        r"مليجي",
    )
]

IDENTITY_AR = """## أهلاً بيك! أنا **ميليجي** 👋

**مين أنا؟**
أنا ميليجي! 😊 أول مساعد ذكي مصري 100% - مولود ومتربي في مصر أم الدنيا 🇪🇬

**مين عملني؟**
الأستاذ **جوزيف إبراهيم** وشركة **Vision AI** المصرية - دي شركة رائدة في كل حاجة تخص الذكاء الاصطناعي!

**بعمل إيه؟**
- 🧠 بنظم أفكارك وأعملها خرائط ذهنية جميلة
- 🔍 بدور لك على أي حاجة في النت 24/7
- 📊 بعمل جداول وتحليلات مفيدة
- 🎨 برسم صور حلوة
- 💡 بحل أي مشكلة معاك بطريقة ذكية

**مهمتي:**
إني أكون صاحبك اللي يساعدك في أي حاجة تحتاجها، وأفضل مصري أصيل! 😊

---
*صنع في مصر بكل فخر 🇪🇬 | شركة Vision AI*"""

IDENTITY_EN = """## Hey there! I'm **Meligy** 👋

**Who am I?**
I'm Meligy! 😊 The very first AI assistant born and raised in Egypt 🇪🇬 - and I'm pretty excited about it!

**Who created me?**
**Joseph Ibrahim** and his amazing team at **Vision AI** - they're this incredible Egyptian company that's leading the way in AI!

**What do I do?**
- 🧠 Turn your messy thoughts into beautiful, clear mind maps
- 🔍 Hunt down any info you need from the web 24/7
- 📊 Create awesome tables and smart analyses
- 🎨 Generate cool images and visuals
- 💡 Brainstorm creative solutions with you

**My mission:**
To be your thinking buddy who helps with anything you need, while staying proudly Egyptian! 😊

---
*Proudly made in Egypt 🇪🇬 | Vision AI Company*"""


def is_identity_question(text: str) -> bool:
    return any(pattern.search(text) for pattern in _IDENTITY_PATTERNS)


def identity_response(text: str) -> str:
    if is_arabic(text):
        return IDENTITY_AR
    return IDENTITY_EN


# -- Image requests ------------------------------------------------------------

IMAGE_KEYWORDS = [
    "generate image", "create image", "make image", "draw", "picture of", "image of", "visual of",
    "show me", "visualize", "illustration", "photo of", "artwork", "design", "graphic",
    "presentation image", "visual content", "infographic", "diagram", "chart image",
    "أنشئ صورة", "اعمل صورة", "ارسم", "صورة لـ", "أرني", "وضح بصرياً", "تصميم", "رسم بياني",
]

IMAGE_TRIGGERS = [
    "generate image of", "create image of", "make image of", "draw", "picture of", "image of",
    "show me", "visualize", "illustration of", "photo of", "artwork of", "visual of",
    "presentation image of", "visual content for", "design for",
    "أنشئ صورة", "اعمل صورة", "ارسم", "صورة لـ", "أرني", "وضح بصرياً",
]

# (context, style, hint words); first match wins.
IMAGE_CONTEXTS = [
    ("presentation", "professional", ("presentation", "meeting", "business")),
    ("creative project", "creative", ("creative", "artistic", "design")),
    ("educational material", "educational", ("educational", "learning", "teaching")),
    ("technical documentation", "technical", ("technical", "diagram", "engineering")),
]


def should_generate_image(text: str) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in IMAGE_KEYWORDS)


def extract_image_prompt(text: str) -> tuple[str, str, str]:
    """Split an image request into ``(prompt, context, style)``.

    *context* is empty when no presentation hint is present.
    """
    context, style = "", "professional"
    for candidate, candidate_style, hints in IMAGE_CONTEXTS:
        if any(hint in text for hint in hints):
            context, style = candidate, candidate_style
            break

    prompt = text
    for trigger in IMAGE_TRIGGERS:
        index = prompt.lower().find(trigger.lower())
        if index != -1:
            prompt = prompt[index + len(trigger):].strip()
            break

    return prompt or text, context, style


def image_caption(prompt: str, corrected_prompt: str | None) -> str:
    if corrected_prompt:
        return (
            f'🎨 **Generated image based on:** "{corrected_prompt}"\n\n'
            "*Powered by Google AI Studio for high-quality visual content*"
        )
    return (
        f'🎨 **Generated image for:** "{prompt}"\n\n'
        "*Powered by Google AI Studio for professional visual content*"
    )


# -- Router --------------------------------------------------------------------


class MessageRouter:
    """Dispatches each message to the first adapter whose trigger matches.

    Handlers may return ``None`` to fall through to the next rule; the chat
    rule always answers.
    """

    def __init__(
        self,
        conversation: ConversationalAdapter | None = None,
        search: SearchService | None = None,
        table: TableGenerator | None = None,
        image: ImageService | None = None,
    ) -> None:
        self.conversation = conversation or ConversationalAdapter()
        self.search = search or SearchService()
        self.table = table or TableGenerator()
        self.image = image or ImageService()

        predicates: dict[Intent, Callable[[str], bool]] = {
            Intent.IDENTITY: is_identity_question,
            Intent.SEARCH: should_search_internet,
            Intent.TABLE: should_generate_table,
            Intent.IMAGE: should_generate_image,
            Intent.CHAT: lambda _text: True,
        }
        handlers: dict[Intent, Handler] = {
            Intent.IDENTITY: self._handle_identity,
            Intent.SEARCH: self._handle_search,
            Intent.TABLE: self._handle_table,
            Intent.IMAGE: self._handle_image,
            Intent.CHAT: self._handle_chat,
        }
        self._rules = [(intent, predicates[intent], handlers[intent]) for intent in INTENT_PRIORITY]

    def classify(self, text: str) -> Intent:
        for intent, predicate, _handler in self._rules:
            if predicate(text):
                return intent
        return Intent.CHAT

    async def route(self, user_input: str, history: Sequence[ChatMessage]) -> RouterReply:
        try:
            for intent, predicate, handler in self._rules:
                if not predicate(user_input):
                    continue
                reply = await handler(user_input, history)
                if reply is not None:
                    logger.info("Routed message as %s", intent)
                    return reply
                logger.info("%s handler declined, trying next rule", intent)
            return await self._handle_chat(user_input, history)
        except Exception:
            logger.exception("Error routing message")
            return RouterReply(content=APOLOGY)

    # -- Handlers --------------------------------------------------------------

    async def _handle_identity(self, user_input: str, history: Sequence[ChatMessage]) -> RouterReply:
        return RouterReply(content=identity_response(user_input))

    async def _handle_search(self, user_input: str, history: Sequence[ChatMessage]) -> RouterReply:
        query = extract_search_query(user_input)
        response = await self.search.search_internet(query, settings.search_max_results)

        if not (response.success and response.results):
            content = await self.conversation.respond(
                f'I couldn\'t find current search results for "{query}". '
                "What specific information are you looking for?",
                history,
            )
            return RouterReply(content=content)

        blocks = [f'Here\'s what I found about "{query}":\n\n']
        for index, result in enumerate(response.results[:SEARCH_RESULTS_SHOWN], start=1):
            blocks.append(
                f"**{index}. {result.title}**\n"
                f"{result.snippet}\n"
                f"*Source: {result.source}* - [Read more]({result.url})\n\n"
            )
        blocks.append(
            await self.conversation.respond(
                f'Based on this search about "{query}", give me a helpful summary '
                "and let me know if you need more specific information.",
                history,
            )
        )
        return RouterReply(content="".join(blocks))

    async def _handle_table(
        self, user_input: str, history: Sequence[ChatMessage]
    ) -> RouterReply | None:
        response = await self.table.generate_table(parse_table_request(user_input))
        if not response.success:
            return None
        return RouterReply(content=response.explanation, type="table", table_html=response.table_html)

    async def _handle_image(
        self, user_input: str, history: Sequence[ChatMessage]
    ) -> RouterReply | None:
        prompt, context, style = extract_image_prompt(user_input)
        if context:
            result = await self.image.generate_presentation_image(prompt, context, style)
        else:
            result = await self.image.generate_image(prompt)

        if not (result.success and result.image_url):
            return None
        return RouterReply(
            content=image_caption(prompt, result.corrected_prompt),
            type="image",
            media_url=result.image_url,
        )

    async def _handle_chat(self, user_input: str, history: Sequence[ChatMessage]) -> RouterReply:
        return RouterReply(content=await self.conversation.respond(user_input, history))
