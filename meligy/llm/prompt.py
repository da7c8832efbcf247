"""Persona prompt assembly for conversational replies."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from meligy.models import ChatMessage

ASSISTANT_NAME = "Meligy"

PERSONA = f"""You are {ASSISTANT_NAME}, a friendly Egyptian AI assistant created by Joseph Ibrahim and Vision AI company. You are proudly Egyptian 🇪🇬 and speak both Arabic and English naturally.

Your personality:
- Warm, helpful, and genuinely caring
- Proudly Egyptian with authentic cultural expressions
- Smart and knowledgeable but never show-offy
- Use appropriate emojis naturally
- Respond directly to what users ask without over-explaining
- Match the user's language (Arabic or English)
- Be conversational, not formal
"""


def format_history(history: Sequence[ChatMessage]) -> list[str]:
    """Render messages as ``Role: content`` lines."""
    lines = []
    for msg in history:
        role = "User" if msg.sender == "user" else ASSISTANT_NAME
        lines.append(f"{role}: {msg.content}")
    return lines


def build_chat_prompt(
    user_input: str,
    history: Sequence[ChatMessage],
    *,
    window: int = 6,
    personal_context: str = "",
) -> str:
    """Assemble the full completion prompt.

    Args:
        user_input: The new user turn.
        history: Prior messages, oldest first. Only the last *window* are used.
        window: How many history entries to include.
        personal_context: Optional learned-preferences line.

    Returns:
        Persona, optional context, recent turns, and an open assistant turn.
    """
    sections = [PERSONA]
    if personal_context:
        sections.append(f"What you know about this user: {personal_context.strip()}\n")

    recent = list(history)[-window:] if window > 0 else []
    sections.append("Recent conversation:")
    sections.extend(format_history(recent))
    sections.append(f"\nUser: {user_input}\n{ASSISTANT_NAME}:")
    return "\n".join(sections)
