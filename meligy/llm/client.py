"""Async Gemini generateContent client over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from meligy.config import settings

logger = logging.getLogger(__name__)

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

SAFETY_SETTINGS: list[dict[str, str]] = [
    {"category": category, "threshold": SAFETY_THRESHOLD} for category in HARM_CATEGORIES
]

CHAT_GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.8,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}


class GeminiError(Exception):
    """Raised when the Gemini endpoint cannot produce a usable response."""


def build_request(
    prompt: str,
    generation_config: dict[str, Any] | None = None,
    safety_settings: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Assemble a generateContent request body for a single text prompt."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": generation_config or CHAT_GENERATION_CONFIG,
        "safetySettings": safety_settings or SAFETY_SETTINGS,
    }


async def generate_content(
    prompt: str,
    *,
    model: str | None = None,
    generation_config: dict[str, Any] | None = None,
    safety_settings: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """POST a prompt to Gemini and return the decoded JSON response.

    Raises:
        GeminiError: missing API key, transport failure, non-200 status,
            or a body that is not JSON.
    """
    api_key = settings.gemini_api_key
    if not api_key:
        raise GeminiError("GEMINI_API_KEY is not configured.")

    url = settings.model_url(model or settings.gemini_text_model)
    headers = {"Content-Type": "application/json", "X-goog-api-key": api_key}
    body = build_request(prompt, generation_config, safety_settings)

    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            resp = await client.post(url, headers=headers, json=body)
    except httpx.HTTPError as exc:
        raise GeminiError(f"Gemini request failed: {exc}") from exc

    if resp.status_code != 200:
        raise GeminiError(f"Gemini API returned {resp.status_code}: {resp.text[:200]}")

    try:
        return resp.json()
    except ValueError as exc:
        raise GeminiError("Gemini API returned a non-JSON body") from exc


def candidate_parts(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the content parts of the first candidate (empty if absent)."""
    candidates = data.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return content.get("parts") or []


async def complete_text(prompt: str, *, model: str | None = None) -> str:
    """Single-shot text completion with the chat sampling parameters.

    Returns the trimmed text of the first candidate's first part.
    """
    data = await generate_content(prompt, model=model)
    parts = candidate_parts(data)
    text = parts[0].get("text") if parts else None
    if not text:
        raise GeminiError("No response generated")
    return text.strip()
