"""Data models for chat messages, conversations, and adapter results."""

from __future__ import annotations

import time
from datetime import UTC, date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Sender = Literal["user", "assistant"]
MessageType = Literal["text", "image", "video", "table"]
TableStyle = Literal["scientific", "business", "educational", "comparison"]
ResponseStyle = Literal["formal", "casual", "technical"]


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def new_message_id(offset_ms: int = 0) -> str:
    """Millisecond timestamp ID, optionally nudged forward by *offset_ms*."""
    return str(int(time.time() * 1000) + offset_ms)


class _StoredModel(BaseModel):
    """Base for models persisted as JSON blobs.

    Fields are snake_case in Python and camelCase on the wire so stored
    blobs keep the shape the browser client reads.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChatMessage(_StoredModel):
    """A single chat turn. Immutable once created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_message_id)
    content: str
    sender: Sender
    timestamp: str = Field(default_factory=now_iso)
    type: MessageType = "text"
    media_url: str | None = None
    table_html: str | None = None


class Conversation(_StoredModel):
    """An ordered thread of chat messages."""

    id: str
    title: str = "New Chat"
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)


class RouterReply(BaseModel):
    """Content object produced by the message router."""

    content: str
    type: MessageType = "text"
    media_url: str | None = None
    table_html: str | None = None


# -- Search --------------------------------------------------------------------


class SearchResult(BaseModel):
    title: str
    url: str
    snippet: str
    source: str
    relevance_score: float = 0.0


class SearchResponse(BaseModel):
    success: bool
    results: list[SearchResult] = Field(default_factory=list)
    query: str
    total_results: int = 0
    search_time: int = 0  # milliseconds
    error: str | None = None


# -- Tables --------------------------------------------------------------------


class TableRequest(BaseModel):
    topic: str
    columns: list[str]
    rows: list[str] = Field(default_factory=list)
    data: list[list[str]] | None = None
    style: TableStyle = "scientific"


class TableResponse(BaseModel):
    success: bool
    table_html: str = ""
    explanation: str = ""
    summary: str = ""
    mind_map_principles: list[str] = Field(default_factory=list)
    error: str | None = None


class MindMapNode(BaseModel):
    """Node of the explanatory topic → column → cell tree."""

    id: str
    label: str
    level: int
    category: str
    children: list[MindMapNode] = Field(default_factory=list)


# -- Images --------------------------------------------------------------------


class ImageGenerationResult(BaseModel):
    success: bool
    image_url: str | None = None
    error: str | None = None
    corrected_prompt: str | None = None


# -- Persisted client state ----------------------------------------------------


class DailyMessageCounter(_StoredModel):
    count: int = Field(default=0, ge=0)
    last_reset_date: str = Field(default_factory=lambda: date.today().isoformat())


class UserPattern(_StoredModel):
    keywords: list[str]
    responses: list[str] = Field(default_factory=list)
    frequency: int = 0
    last_used: str = Field(default_factory=now_iso)
    context: list[str] = Field(default_factory=list)


class Preferences(_StoredModel):
    language: str = "en"
    response_style: ResponseStyle = "casual"
    topics: dict[str, int] = Field(default_factory=dict)


class LearningProfile(_StoredModel):
    user_patterns: dict[str, UserPattern] = Field(default_factory=dict)
    preferences: Preferences = Field(default_factory=Preferences)
    personal_info: dict[str, str] = Field(default_factory=dict)
    last_updated: str = Field(default_factory=now_iso)
