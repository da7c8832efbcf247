"""Learning store — advisory profile of a client's keywords, topics and style.

The profile only enriches the conversational prompt. Nothing reads it for
correctness, so load and save failures are logged and swallowed.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pydantic import ValidationError

from meligy.language import detect_language
from meligy.models import LearningProfile, UserPattern, now_iso
from meligy.storage import LEARNING_KEY

if TYPE_CHECKING:
    from collections.abc import Sequence

    from meligy.models import ChatMessage
    from meligy.storage import KeyValueStore

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 10
MAX_RESPONSES = 3
MAX_CONTEXT = 5

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "can", "must",
})

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "technology": ("computer", "software", "programming", "code", "tech", "ai", "machine learning", "data"),
    "science": ("research", "study", "experiment", "theory", "hypothesis", "analysis", "scientific"),
    "health": ("health", "medical", "doctor", "medicine", "fitness", "exercise", "nutrition"),
    "education": ("learn", "study", "school", "university", "course", "education", "teaching"),
    "business": ("work", "job", "career", "business", "company", "management", "finance"),
    "entertainment": ("movie", "music", "game", "book", "art", "entertainment", "fun"),
    "travel": ("travel", "trip", "vacation", "country", "city", "culture", "tourism"),
    "food": ("food", "cooking", "recipe", "restaurant", "cuisine", "meal", "eat"),
}

_FORMAL_HINTS = ("please", "thank you", "could you", "would you", "may i", "excuse me")
_CASUAL_HINTS = ("hey", "hi", "yeah", "ok", "cool", "awesome", "lol")
_TECHNICAL_HINTS = (
    "algorithm", "function", "variable", "parameter", "implementation", "optimization",
)

_PERSONAL_PATTERNS: dict[str, re.Pattern[str]] = {
    "name": re.compile(r"(?:my name is|call me)\s+([a-zA-Z]+)", re.I),
    "age": re.compile(r"(?:i'm|i am|my age is)\s+(\d+)(?:\s+years?\s+old)?", re.I),
    "location": re.compile(r"(?:i live in|i'm from|i am from)\s+([a-zA-Z ]+)", re.I),
    "profession": re.compile(r"(?:i work as an?|i'm an?|i am an?|my job is)\s+([a-zA-Z ]+)", re.I),
}

_NON_WORD_RE = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> list[str]:
    words = _NON_WORD_RE.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS][:MAX_KEYWORDS]


def extract_topics(text: str) -> list[str]:
    lowered = text.lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]


def pattern_key(keywords: Sequence[str]) -> str:
    return "-".join(keywords[:3]).lower()


def _count_hints(text: str, hints: Sequence[str]) -> int:
    return sum(1 for hint in hints if hint in text)


class LearningSystem:
    """Reads and writes one client's LearningProfile through a KeyValueStore."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # -- Persistence -----------------------------------------------------------

    async def load(self) -> LearningProfile:
        try:
            raw = await self._store.get(LEARNING_KEY)
            if raw:
                return LearningProfile.model_validate(raw)
        except (ValidationError, TypeError):
            logger.warning("Stored learning profile is invalid, starting fresh")
        except Exception:
            logger.exception("Error loading learning data")
        return LearningProfile()

    async def save(self, profile: LearningProfile) -> None:
        profile.last_updated = now_iso()
        try:
            await self._store.set(LEARNING_KEY, profile.dump())
        except Exception:
            logger.exception("Error saving learning data")

    # -- Learning --------------------------------------------------------------

    async def learn_from_interaction(self, user_input: str, history: Sequence[ChatMessage]) -> None:
        """Record keywords, topics, language, personal details and style."""
        profile = await self.load()
        keywords = extract_keywords(user_input)

        profile.preferences.language = detect_language(user_input, latin_hints=True)
        for topic in extract_topics(user_input):
            profile.preferences.topics[topic] = profile.preferences.topics.get(topic, 0) + 1

        key = pattern_key(keywords)
        if key:
            pattern = profile.user_patterns.setdefault(key, UserPattern(keywords=keywords))
            pattern.frequency += 1
            pattern.last_used = now_iso()
            recent = [msg.content for msg in list(history)[-2:]]
            merged = list(dict.fromkeys([*pattern.context, *recent]))
            pattern.context = merged[-MAX_CONTEXT:]

        self._update_personal_info(profile, user_input)
        self._update_response_style(profile, user_input)
        await self.save(profile)

    async def learn_from_response(self, response: str, user_input: str) -> None:
        """Remember the latest replies for the input's keyword pattern."""
        profile = await self.load()
        key = pattern_key(extract_keywords(user_input))
        pattern = profile.user_patterns.get(key) if key else None
        if pattern is None:
            return
        pattern.responses = [*pattern.responses, response][-MAX_RESPONSES:]
        await self.save(profile)

    @staticmethod
    def _update_personal_info(profile: LearningProfile, text: str) -> None:
        for field, regex in _PERSONAL_PATTERNS.items():
            match = regex.search(text)
            if match:
                profile.personal_info[field] = match.group(1).strip()

    @staticmethod
    def _update_response_style(profile: LearningProfile, text: str) -> None:
        lowered = text.lower()
        formal = _count_hints(lowered, _FORMAL_HINTS)
        casual = _count_hints(lowered, _CASUAL_HINTS)
        technical = _count_hints(lowered, _TECHNICAL_HINTS)

        if technical > max(formal, casual):
            profile.preferences.response_style = "technical"
        elif formal > casual:
            profile.preferences.response_style = "formal"
        elif casual > 0:
            profile.preferences.response_style = "casual"

    # -- Queries ---------------------------------------------------------------

    async def get_personalized_context(self) -> str:
        profile = await self.load()
        prefs = profile.preferences
        parts = [f"User preferences: Language: {prefs.language}, Style: {prefs.response_style}."]

        top_topics = sorted(prefs.topics.items(), key=lambda kv: kv[1], reverse=True)[:3]
        if top_topics:
            parts.append(f"Interested in: {', '.join(t for t, _ in top_topics)}.")

        if profile.personal_info:
            info = ", ".join(f"{k}: {v}" for k, v in profile.personal_info.items())
            parts.append(f"Personal info: {info}.")

        return " ".join(parts)

    async def get_similar_patterns(self, user_input: str) -> list[UserPattern]:
        """Up to three stored patterns sharing a keyword, most frequent first."""
        keywords = extract_keywords(user_input)
        profile = await self.load()

        def overlaps(pattern: UserPattern) -> bool:
            return any(k in uk or uk in k for k in pattern.keywords for uk in keywords)

        matches = [p for p in profile.user_patterns.values() if overlaps(p)]
        matches.sort(key=lambda p: p.frequency, reverse=True)
        return matches[:3]

    async def get_learning_stats(self) -> dict:
        profile = await self.load()
        patterns = profile.user_patterns.values()
        top_topics = sorted(
            profile.preferences.topics.items(), key=lambda kv: kv[1], reverse=True
        )[:5]
        return {
            "total_patterns": len(profile.user_patterns),
            "total_interactions": sum(p.frequency for p in patterns),
            "top_topics": top_topics,
            "preferred_language": profile.preferences.language,
            "response_style": profile.preferences.response_style,
        }

    async def clear(self) -> None:
        await self._store.delete(LEARNING_KEY)
