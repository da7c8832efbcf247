"""Tests for the persona prompt builder."""

from meligy.llm.prompt import PERSONA, build_chat_prompt, format_history
from meligy.models import ChatMessage


def _history(n: int) -> list[ChatMessage]:
    return [
        ChatMessage(id=str(i), content=f"msg {i}", sender="user" if i % 2 == 0 else "assistant")
        for i in range(n)
    ]


def test_format_history_roles() -> None:
    lines = format_history(_history(2))
    assert lines == ["User: msg 0", "Meligy: msg 1"]


def test_prompt_starts_with_persona_and_ends_with_open_turn() -> None:
    prompt = build_chat_prompt("how are you?", [])
    assert prompt.startswith(PERSONA)
    assert prompt.endswith("User: how are you?\nMeligy:")


def test_prompt_keeps_last_six_turns() -> None:
    prompt = build_chat_prompt("next", _history(10))
    assert "msg 3" not in prompt
    for i in range(4, 10):
        assert f"msg {i}" in prompt


def test_personal_context_included() -> None:
    prompt = build_chat_prompt("hi", [], personal_context="Style: casual.")
    assert "What you know about this user: Style: casual." in prompt


def test_zero_window_drops_history() -> None:
    prompt = build_chat_prompt("hi", _history(3), window=0)
    assert "msg 0" not in prompt
