"""Tests for LearningSystem — keyword patterns, preferences, personal info."""

from unittest.mock import AsyncMock

import pytest

from meligy.learning import LearningSystem, extract_keywords, extract_topics, pattern_key
from meligy.models import ChatMessage
from meligy.storage import LEARNING_KEY, InMemoryStore


@pytest.fixture
def learning(store: InMemoryStore) -> LearningSystem:
    return LearningSystem(store)


def _msg(content: str, sender: str = "user") -> ChatMessage:
    return ChatMessage(content=content, sender=sender)


# -- Helpers -------------------------------------------------------------------


def test_extract_keywords_drops_stop_and_short_words() -> None:
    assert extract_keywords("Is it ok to learn Python programming?") == ["learn", "python", "programming"]


def test_extract_keywords_caps_at_ten() -> None:
    text = " ".join(f"word{i}" for i in range(15))
    assert len(extract_keywords(text)) == 10


def test_extract_topics() -> None:
    assert extract_topics("best recipe for dinner while I travel") == ["travel", "food"]


def test_pattern_key() -> None:
    assert pattern_key(["learn", "python", "programming", "fast"]) == "learn-python-programming"


# -- learn_from_interaction ----------------------------------------------------


async def test_learns_pattern_and_topics(learning: LearningSystem) -> None:
    await learning.learn_from_interaction("learn python programming", [])
    await learning.learn_from_interaction("learn python programming", [])

    profile = await learning.load()
    pattern = profile.user_patterns["learn-python-programming"]
    assert pattern.frequency == 2
    assert profile.preferences.topics["technology"] == 2
    assert profile.preferences.topics["education"] == 2


async def test_context_keeps_five_most_recent(learning: LearningSystem) -> None:
    for i in range(6):
        history = [_msg(f"q{i}"), _msg(f"a{i}", "assistant")]
        await learning.learn_from_interaction("learn python programming", history)

    pattern = (await learning.load()).user_patterns["learn-python-programming"]
    assert pattern.context == ["a3", "q4", "a4", "q5", "a5"]


async def test_personal_info_and_language(learning: LearningSystem) -> None:
    await learning.learn_from_interaction("My name is Omar and I live in Cairo", [])

    profile = await learning.load()
    assert profile.personal_info["name"] == "Omar"
    assert profile.personal_info["location"] == "Cairo"
    assert profile.preferences.language == "en"


async def test_response_style(learning: LearningSystem) -> None:
    await learning.learn_from_interaction("please explain the algorithm implementation", [])
    assert (await learning.load()).preferences.response_style == "technical"

    await learning.learn_from_interaction("could you please help", [])
    assert (await learning.load()).preferences.response_style == "formal"


# -- learn_from_response -------------------------------------------------------


async def test_keeps_three_most_recent_responses(learning: LearningSystem) -> None:
    await learning.learn_from_interaction("learn python programming", [])
    for i in range(5):
        await learning.learn_from_response(f"reply {i}", "learn python programming")

    pattern = (await learning.load()).user_patterns["learn-python-programming"]
    assert pattern.responses == ["reply 2", "reply 3", "reply 4"]


async def test_response_for_unknown_pattern_ignored(learning: LearningSystem, store: InMemoryStore) -> None:
    await learning.learn_from_response("reply", "never seen before")
    assert await store.get(LEARNING_KEY) is None


# -- Queries -------------------------------------------------------------------


async def test_personalized_context(learning: LearningSystem) -> None:
    await learning.learn_from_interaction("call me Mona, I love music", [])
    context = await learning.get_personalized_context()

    assert "Language: en" in context
    assert "entertainment" in context
    assert "name: Mona" in context


async def test_similar_patterns_sorted_by_frequency(learning: LearningSystem) -> None:
    await learning.learn_from_interaction("python tutorial basics", [])
    for _ in range(3):
        await learning.learn_from_interaction("python web framework", [])
    await learning.learn_from_interaction("cooking pasta recipe", [])

    similar = await learning.get_similar_patterns("python questions")

    assert [p.keywords[:3] for p in similar] == [
        ["python", "web", "framework"],
        ["python", "tutorial", "basics"],
    ]


async def test_stats_and_clear(learning: LearningSystem, store: InMemoryStore) -> None:
    await learning.learn_from_interaction("learn python programming", [])
    stats = await learning.get_learning_stats()
    assert stats["total_patterns"] == 1
    assert stats["total_interactions"] == 1

    await learning.clear()
    assert await store.get(LEARNING_KEY) is None


async def test_store_failure_is_swallowed() -> None:
    broken = AsyncMock()
    broken.get.side_effect = OSError("disk")
    broken.set.side_effect = OSError("disk")

    learning = LearningSystem(broken)
    await learning.learn_from_interaction("learn python", [])

    assert (await learning.load()).user_patterns == {}
