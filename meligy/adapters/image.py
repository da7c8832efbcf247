"""Image adapter — Gemini image generation with two URL-based fallback tiers."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from meligy.config import settings
from meligy.language import detect_script, language_name
from meligy.llm import client as llm
from meligy.models import ImageGenerationResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    ImageTier = Callable[[str], Awaitable[str]]

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 900
POLLINATIONS_URL = "https://image.pollinations.ai/prompt/"
PICSUM_URL = "https://picsum.photos/seed/"
IMAGE_SIZE = 1024

IMAGE_GENERATION_CONFIG = {
    "responseModalities": ["TEXT", "IMAGE"],
    "temperature": 0.7,
    "maxOutputTokens": 1024,
}

# Whole-word substitutions: style expansions first, then typo fixes.
PROMPT_SUBSTITUTIONS: dict[str, str] = {
    "photo": "high-quality photograph, professional photography",
    "drawing": "detailed digital artwork, professional illustration",
    "painting": "artistic painting, fine art style",
    "sketch": "detailed pencil sketch, artistic drawing",
    "cartoon": "cartoon style illustration, animated character design",
    "realistic": "photorealistic, highly detailed, professional quality",
    "abstract": "abstract art, creative composition, artistic interpretation",
    "simple": "clean, minimalist design, simple composition",
    "detailed": "highly detailed, intricate, professional quality",
    "colorful": "vibrant colors, rich palette, visually striking",
    "beautiful": "aesthetically pleasing, visually appealing, well-composed",
    "persn": "person",
    "ppl": "people",
    "pic": "image",
    "img": "photograph",
    "beautifull": "beautiful",
    "colorfull": "colorful",
}

QUALITY_MODIFIERS = ("high resolution", "4k quality", "professional", "detailed", "sharp focus")
QUALITY_SUFFIX = ", high resolution, professional quality, detailed"

PRESENTATION_STYLES: dict[str, str] = {
    "professional": "professional presentation style, clean design, business appropriate",
    "creative": "creative and engaging, visually striking, artistic interpretation",
    "educational": "educational illustration, clear and informative, learning-focused",
    "technical": "technical diagram style, precise and detailed, engineering approach",
}

VARIATION_STYLES = (
    "photorealistic style, professional photography",
    "digital art style, detailed illustration",
    "artistic painting style, fine art",
    "modern design style, clean composition",
    "creative interpretation, unique perspective",
)

_SLUG_RE = re.compile(r"[^a-zA-Z0-9]")


class ImageTierError(Exception):
    """A generation tier could not produce an image URL."""


# -- Prompt preparation --------------------------------------------------------


def detect_and_translate_prompt(prompt: str) -> tuple[str, str]:
    """Tag non-Latin prompts with a language hint for the image model.

    Returns ``(prompt_for_model, language_tag)``.
    """
    lang = detect_script(prompt)
    if lang == "en":
        return prompt, lang
    return f"{prompt} ({language_name(lang)} prompt for image generation)", lang


def optimize_image_prompt(prompt: str) -> tuple[str, list[str]]:
    """Expand style words, fix typos, add quality modifiers, cap length.

    Returns ``(optimized_prompt, corrections)`` where *corrections* lists
    every change applied.
    """
    corrections: list[str] = []
    optimized = prompt.lower().strip()

    for original, enhanced in PROMPT_SUBSTITUTIONS.items():
        pattern = re.compile(rf"\b{re.escape(original)}\b", re.I)
        if pattern.search(optimized):
            optimized = pattern.sub(enhanced, optimized)
            corrections.append(f'Enhanced "{original}" to "{enhanced}"')

    has_modifier = any(modifier in optimized for modifier in QUALITY_MODIFIERS)
    if not has_modifier and len(optimized) > 10:
        optimized += QUALITY_SUFFIX
        corrections.append("Added quality modifiers")

    if len(optimized) > MAX_PROMPT_CHARS:
        optimized = optimized[:MAX_PROMPT_CHARS] + "..."
        corrections.append(f"Trimmed prompt to {MAX_PROMPT_CHARS} characters")

    return optimized, corrections


def prompt_slug(prompt: str) -> str:
    """Deterministic seed for placeholder images: alphanumerics, max 20 chars.

    Prompts with no ASCII alphanumerics use a SHA-1 prefix instead.
    """
    slug = _SLUG_RE.sub("", prompt)[:20]
    if slug:
        return slug
    return hashlib.sha1(prompt.encode("utf-8")).hexdigest()[:20]


def pollinations_url(prompt: str) -> str:
    return (
        f"{POLLINATIONS_URL}{quote(prompt, safe='')}"
        f"?width={IMAGE_SIZE}&height={IMAGE_SIZE}&model=flux&enhance=true&nologo=true"
    )


def placeholder_url(prompt: str) -> str:
    return f"{PICSUM_URL}{prompt_slug(prompt)}/{IMAGE_SIZE}/{IMAGE_SIZE}"


# -- Tiers ---------------------------------------------------------------------


async def generate_with_gemini(prompt: str) -> str:
    """Ask Gemini for an image and return the first inline image as a data URI."""
    data = await llm.generate_content(
        f"Create a high-quality image: {prompt}",
        model=settings.gemini_image_model,
        generation_config=IMAGE_GENERATION_CONFIG,
    )
    parts = llm.candidate_parts(data)
    for part in parts:
        inline = part.get("inlineData") or {}
        mime_type = inline.get("mimeType", "")
        if mime_type.startswith("image/") and inline.get("data"):
            return f"data:{mime_type};base64,{inline['data']}"

    text = next((p["text"] for p in parts if p.get("text")), None)
    if text:
        logger.info("Gemini returned text instead of an image: %s", text[:200])
    raise ImageTierError("No image data found in Gemini response")


async def generate_with_pollinations(prompt: str) -> str:
    """Build a Pollinations URL, accepted only if a HEAD request succeeds."""
    url = pollinations_url(prompt)
    async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
        resp = await client.head(url)
    if not resp.is_success:
        raise ImageTierError(f"Pollinations returned {resp.status_code}")
    return url


async def generate_placeholder(prompt: str) -> str:
    return placeholder_url(prompt)


DEFAULT_TIERS: tuple[tuple[str, ImageTier], ...] = (
    ("gemini", generate_with_gemini),
    ("pollinations", generate_with_pollinations),
    ("picsum", generate_placeholder),
)


class ImageService:
    """Runs a prompt through each generation tier in order until one succeeds."""

    def __init__(self, tiers: Sequence[tuple[str, ImageTier]] | None = None) -> None:
        self._tiers = tuple(tiers) if tiers is not None else DEFAULT_TIERS

    async def generate_image(self, prompt: str) -> ImageGenerationResult:
        try:
            translated, lang = detect_and_translate_prompt(prompt)
            optimized, corrections = optimize_image_prompt(translated)
            logger.info("Generating image (lang=%s): %s", lang, optimized[:120])
            if corrections:
                logger.debug("Prompt corrections: %s", corrections)
        except Exception:
            logger.exception("Image prompt preparation failed")
            return ImageGenerationResult(
                success=False, error="An error occurred while generating the image."
            )

        for name, tier in self._tiers:
            try:
                url = await tier(optimized)
            except Exception as exc:
                logger.warning("Image tier %s failed: %s", name, exc)
                continue
            logger.info("Image generated via %s", name)
            return ImageGenerationResult(
                success=True,
                image_url=url,
                corrected_prompt=optimized if corrections else None,
            )

        return ImageGenerationResult(
            success=False,
            error="Unable to generate image at the moment. Please try again later.",
        )

    async def generate_presentation_image(
        self, topic: str, context: str, style: str = "professional"
    ) -> ImageGenerationResult:
        """Wrap *topic* with a presentation style bundle, then generate."""
        style_phrase = PRESENTATION_STYLES.get(style, PRESENTATION_STYLES["professional"])
        prompt = f"{topic} for {context}, {style_phrase}, high quality, suitable for presentations"
        return await self.generate_image(prompt)

    async def generate_image_variations(
        self, prompt: str, count: int = 3, delay: float = 1.0
    ) -> list[ImageGenerationResult]:
        """Generate up to five style variants, one at a time with a short pause."""
        base, _ = optimize_image_prompt(prompt)
        total = min(count, len(VARIATION_STYLES))
        results = []
        for index in range(total):
            results.append(await self.generate_image(f"{base}, {VARIATION_STYLES[index]}"))
            if index < total - 1 and delay > 0:
                await asyncio.sleep(delay)
        return results


async def validate_image_url(url: str) -> bool:
    """True if *url* answers a HEAD request with an image content type."""
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
            resp = await client.head(url)
    except httpx.HTTPError:
        return False
    return resp.is_success and resp.headers.get("content-type", "").startswith("image/")
