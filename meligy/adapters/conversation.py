"""Conversational adapter — Gemini chat replies with a local rule-based fallback."""

from __future__ import annotations

import logging
import random
import re
from enum import StrEnum
from typing import TYPE_CHECKING

from meligy.config import settings
from meligy.language import is_arabic
from meligy.llm import client as llm
from meligy.llm.prompt import build_chat_prompt

if TYPE_CHECKING:
    from collections.abc import Sequence

    from meligy.learning import LearningSystem
    from meligy.models import ChatMessage

logger = logging.getLogger(__name__)


class Emotion(StrEnum):
    FRUSTRATED = "frustrated"
    EXCITED = "excited"
    CONFUSED = "confused"
    NEUTRAL = "neutral"


# Checked in this order; the first match wins.
_EMOTION_PATTERNS: list[tuple[Emotion, re.Pattern[str]]] = [
    (
        Emotion.FRUSTRATED,
        re.compile(
            r"not working|broken|error|problem|issue|help|stuck|مش شغال|مشكلة|مساعدة|تعبان",
            re.I,
        ),
    ),
    (
        Emotion.EXCITED,
        re.compile(r"!{2,}|amazing|awesome|great|fantastic|love|excited|رائع|جميل|حلو|عظيم", re.I),
    ),
    (
        Emotion.CONFUSED,
        re.compile(r"don't understand|confused|what|how|why|مش فاهم|ازاي|ايه|ليه", re.I),
    ),
]

FALLBACK_REPLIES: dict[tuple[str, Emotion], tuple[str, ...]] = {
    ("ar", Emotion.FRUSTRATED): (
        "آسف إن في مشكلة! 😔 قولي إيه اللي حصل بالظبط وأنا هحاول أحلهالك فوراً.",
        "أوه لا! 😔 شايف إنك متضايق من حاجة... قولي إيه اللي مضايقك وأنا هحاول أحلهالك فوراً. مش هسيبك كده!",
    ),
    ("ar", Emotion.EXCITED): (
        "واو! 🎉 شايف إنك متحمس! أنا كمان متحمس أساعدك! قولي عايز إيه وأنا جاهز!",
    ),
    ("ar", Emotion.CONFUSED): (
        "مش مشكلة خالص! 😊 أنا هنا عشان أوضحلك أي حاجة. قولي إيه اللي مش واضح وأنا هفهمهولك بأبسط طريقة.",
        "سؤال حلو! 🤔 خليني أشوف وأجيبلك إجابة كاملة...",
    ),
    ("ar", Emotion.NEUTRAL): (
        "فهمت! 😊 خليني أشوف أحسن طريقة أساعدك بيها...",
        "فهمت! 😊 قولي عايز إيه بالظبط وأنا هشوف أحسن طريقة أساعدك بيها. أنا جاهز لأي حاجة!",
    ),
    ("en", Emotion.FRUSTRATED): (
        "Oh no! 😔 Something's not working right? Tell me exactly what's happening and I'll jump right on fixing it!",
        "Oh no! 😔 I can tell something's bothering you... Tell me what's wrong and I'll jump right on fixing it. We'll get this sorted out!",
    ),
    ("en", Emotion.EXCITED): (
        "Wow! 🎉 I can feel your excitement! I'm excited too! Tell me what you need and let's make it happen!",
    ),
    ("en", Emotion.CONFUSED): (
        "No worries at all! 😊 I'm here to make things clear. Tell me what's confusing you and I'll explain it in the simplest way possible.",
        "Great question! 🤔 Let me get you a solid answer...",
    ),
    ("en", Emotion.NEUTRAL): (
        "Got it! 😊 Let me see how I can best help you with that...",
        "Got it! 😊 Tell me exactly what you need and I'll figure out the best way to help you. I'm ready for anything!",
    ),
}


def detect_emotion(text: str) -> Emotion:
    for emotion, pattern in _EMOTION_PATTERNS:
        if pattern.search(text):
            return emotion
    return Emotion.NEUTRAL


def fallback_reply(user_input: str) -> str:
    """Pick a canned reply matching the input's language and emotional tone."""
    lang = "ar" if is_arabic(user_input) else "en"
    return random.choice(FALLBACK_REPLIES[(lang, detect_emotion(user_input))])


class ConversationalAdapter:
    """Produces plain chat replies. ``respond`` never raises."""

    def __init__(
        self,
        learning: LearningSystem | None = None,
        window: int | None = None,
    ) -> None:
        self._learning = learning
        self._window = window if window is not None else settings.context_window_size

    async def respond(self, user_input: str, history: Sequence[ChatMessage]) -> str:
        try:
            personal_context = ""
            if self._learning is not None:
                personal_context = await self._learning.get_personalized_context()
            prompt = build_chat_prompt(
                user_input,
                history,
                window=self._window,
                personal_context=personal_context,
            )
            return await llm.complete_text(prompt)
        except Exception:
            logger.exception("Gemini chat failed, using fallback reply")
            return fallback_reply(user_input)
