"""Search adapter — query several public endpoints, merge, deduplicate, rank."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import TYPE_CHECKING
from urllib.parse import quote, quote_plus

import httpx
from bs4 import BeautifulSoup

from meligy.config import settings
from meligy.models import SearchResponse, SearchResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    SearchSource = Callable[[httpx.AsyncClient, str], Awaitable[list[SearchResult]]]

logger = logging.getLogger(__name__)

DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
WIKIPEDIA_SEARCH_URL = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
DEFAULT_USER_AGENT = "Meligy/1.0 (Chat Assistant)"

SNIPPET_MAX_CHARS = 200
TITLE_WEIGHT = 0.3
SNIPPET_WEIGHT = 0.2

SEARCH_KEYWORDS = [
    # English
    "search for", "look up", "find information", "research", "what is", "tell me about",
    "latest news", "current", "recent", "update on", "information about",
    # Arabic
    "ابحث عن", "ابحث لي", "معلومات عن", "ما هو", "أخبرني عن", "آخر الأخبار",
    # Spanish
    "buscar", "busca información", "qué es", "dime sobre", "últimas noticias",
    # French
    "rechercher", "chercher des informations", "qu'est-ce que", "dis-moi sur",
    "dernières nouvelles",
    # German
    "suchen nach", "informationen finden", "was ist", "erzähl mir über",
    "neueste nachrichten",
    # Question words
    "how does", "why does", "when did", "where is", "who is", "which",
]

# Stripped from the front of the message to recover the query, first match wins.
SEARCH_TRIGGERS = [
    "search for", "look up", "find information about", "research", "tell me about",
    "what is", "who is", "where is", "when did", "how does", "why does",
    "ابحث عن", "معلومات عن", "ما هو", "أخبرني عن",
    "buscar", "qué es", "dime sobre",
    "rechercher", "qu'est-ce que", "dis-moi sur",
    "suchen nach", "was ist", "erzähl mir über",
]

_SCIENTIFIC_KEYWORDS = (
    "research", "study", "experiment", "theory", "hypothesis", "analysis",
    "scientific", "medicine", "biology", "chemistry", "physics", "mathematics",
    "climate", "environment", "health", "disease", "treatment",
)
_TECHNICAL_KEYWORDS = (
    "programming", "code", "software", "development", "algorithm",
    "javascript", "python", "react", "api", "database", "server",
    "error", "bug", "debug", "function", "method", "class",
)
_NEWS_KEYWORDS = (
    "news", "latest", "recent", "current", "today", "breaking",
    "update", "announcement", "event", "happening", "politics",
    "economy", "world", "international",
)

_TRAILING_PUNCT_RE = re.compile(r"[?!.]+$")
_TITLE_RE = re.compile(r"^([^-.]+)")


class SearchSourceError(Exception):
    """A single source failed; the batch continues without it."""


# -- Intent helpers ------------------------------------------------------------


def should_search_internet(text: str) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in SEARCH_KEYWORDS)


def extract_search_query(text: str) -> str:
    """Strip the first matching trigger phrase (and anything before it).

    Trailing ``?``, ``!`` and ``.`` are removed. Falls back to the original
    text when nothing is left.
    """
    query = text
    for trigger in SEARCH_TRIGGERS:
        match = re.search(re.escape(trigger), query, re.I)
        if match:
            query = query[match.end():].strip()
            break
    query = _TRAILING_PUNCT_RE.sub("", query).strip()
    return query or text


# -- Text helpers --------------------------------------------------------------


def strip_html(text: str) -> str:
    return BeautifulSoup(text, "html.parser").get_text()


def enhance_snippet(text: str) -> str:
    """Collapse whitespace and cap at SNIPPET_MAX_CHARS characters."""
    cleaned = " ".join(text.split())
    if len(cleaned) > SNIPPET_MAX_CHARS:
        return cleaned[:SNIPPET_MAX_CHARS] + "..."
    return cleaned


def extract_title(text: str) -> str:
    """Take the text before the first dash or period as a title."""
    match = _TITLE_RE.match(text)
    return match.group(1).strip() if match else text[:50]


def _has_any(query: str, keywords: Sequence[str]) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in keywords)


def is_scientific_query(query: str) -> bool:
    return _has_any(query, _SCIENTIFIC_KEYWORDS)


def is_technical_query(query: str) -> bool:
    return _has_any(query, _TECHNICAL_KEYWORDS)


def is_news_query(query: str) -> bool:
    return _has_any(query, _NEWS_KEYWORDS)


# -- Sources -------------------------------------------------------------------


async def search_duckduckgo(client: httpx.AsyncClient, query: str) -> list[SearchResult]:
    """DuckDuckGo Instant Answer: abstract, definition, related topics, answer."""
    params = {"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"}
    resp = await client.get(DUCKDUCKGO_URL, params=params)
    if resp.status_code != 200:
        raise SearchSourceError(f"DuckDuckGo API returned {resp.status_code}")

    data = resp.json()
    results: list[SearchResult] = []

    if data.get("Abstract"):
        results.append(
            SearchResult(
                title=data.get("Heading") or "Comprehensive Overview",
                url=data.get("AbstractURL") or "https://duckduckgo.com",
                snippet=enhance_snippet(data["Abstract"]),
                source="DuckDuckGo Knowledge",
                relevance_score=0.95,
            )
        )

    if data.get("Definition"):
        results.append(
            SearchResult(
                title="Definition",
                url=data.get("DefinitionURL") or "https://duckduckgo.com",
                snippet=enhance_snippet(data["Definition"]),
                source="Dictionary",
                relevance_score=0.9,
            )
        )

    related = data.get("RelatedTopics")
    if isinstance(related, list):
        for index, topic in enumerate(related[:4]):
            text = topic.get("Text") if isinstance(topic, dict) else None
            url = topic.get("FirstURL") if isinstance(topic, dict) else None
            if not text or not url:
                continue
            results.append(
                SearchResult(
                    title=extract_title(text) or f"Related Topic {index + 1}",
                    url=url,
                    snippet=enhance_snippet(text),
                    source="Related Information",
                    relevance_score=0.7 - index * 0.1,
                )
            )

    if data.get("Answer"):
        results.append(
            SearchResult(
                title="Direct Answer",
                url=data.get("AnswerURL") or "https://duckduckgo.com",
                snippet=enhance_snippet(str(data["Answer"])),
                source="Quick Answer",
                relevance_score=0.85,
            )
        )

    return results


async def search_wikipedia(client: httpx.AsyncClient, query: str) -> list[SearchResult]:
    """Wikipedia full-text search, then page summaries for the top two hits."""
    params = {"action": "query", "list": "search", "srsearch": query, "format": "json"}
    resp = await client.get(WIKIPEDIA_SEARCH_URL, params=params)
    if resp.status_code != 200:
        raise SearchSourceError(f"Wikipedia search returned {resp.status_code}")

    hits = resp.json().get("query", {}).get("search", [])
    results: list[SearchResult] = []

    for page in hits[:2]:
        title = page.get("title", "")
        if not title:
            continue
        try:
            summary_resp = await client.get(WIKIPEDIA_SUMMARY_URL + quote(title, safe=""))
        except httpx.HTTPError:
            logger.debug("Wikipedia summary fetch failed for %s", title)
            continue
        if summary_resp.status_code != 200:
            continue

        summary = summary_resp.json()
        page_url = (
            summary.get("content_urls", {}).get("desktop", {}).get("page")
            or f"https://en.wikipedia.org/wiki/{quote(title.replace(' ', '_'))}"
        )
        snippet = summary.get("extract") or strip_html(page.get("snippet", "")) or "Wikipedia article"
        results.append(
            SearchResult(
                title=summary.get("title") or title,
                url=page_url,
                snippet=enhance_snippet(snippet),
                source="Wikipedia",
                relevance_score=0.8,
            )
        )

    return results


async def search_open_sources(client: httpx.AsyncClient, query: str) -> list[SearchResult]:
    """Curated search links chosen by query topic. No network calls."""
    encoded = quote_plus(query)
    results: list[SearchResult] = []

    if is_scientific_query(query):
        results.append(
            SearchResult(
                title="Scientific Research Resources",
                url=f"https://scholar.google.com/scholar?q={encoded}",
                snippet="Access peer-reviewed scientific literature and research papers",
                source="Google Scholar",
                relevance_score=0.85,
            )
        )

    if is_technical_query(query):
        results.append(
            SearchResult(
                title="Technical Documentation and Solutions",
                url=f"https://stackoverflow.com/search?q={encoded}",
                snippet="Community-driven technical solutions and programming help",
                source="Stack Overflow",
                relevance_score=0.8,
            )
        )

    if is_news_query(query):
        results.append(
            SearchResult(
                title="Latest News and Updates",
                url=f"https://news.google.com/search?q={encoded}",
                snippet="Current news articles and recent developments",
                source="Google News",
                relevance_score=0.75,
            )
        )

    return results


DEFAULT_SOURCES: tuple[tuple[str, SearchSource], ...] = (
    ("duckduckgo", search_duckduckgo),
    ("wikipedia", search_wikipedia),
    ("open_sources", search_open_sources),
)


# -- Merge / rank --------------------------------------------------------------


def _normalize_url(url: str) -> str:
    return url.strip().lower().rstrip("/")


def remove_duplicates(results: Sequence[SearchResult]) -> list[SearchResult]:
    """Drop results whose normalized URL was already seen. First one wins."""
    seen: set[str] = set()
    unique: list[SearchResult] = []
    for result in results:
        key = _normalize_url(result.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def rank_by_relevance(results: Sequence[SearchResult], query: str) -> list[SearchResult]:
    """Boost each prior score by query-word overlap, then sort descending.

    Title overlap is weighted 0.3 and snippet overlap 0.2, each measured as
    the fraction of query words found.
    """
    query_words = query.lower().split()
    if not query_words:
        return sorted(results, key=lambda r: r.relevance_score, reverse=True)

    ranked: list[SearchResult] = []
    for result in results:
        title_words = result.title.lower().split()
        snippet = result.snippet.lower()
        title_matches = sum(1 for w in query_words if any(w in tw for tw in title_words))
        snippet_matches = sum(1 for w in query_words if w in snippet)
        score = (
            result.relevance_score
            + title_matches / len(query_words) * TITLE_WEIGHT
            + snippet_matches / len(query_words) * SNIPPET_WEIGHT
        )
        ranked.append(result.model_copy(update={"relevance_score": score}))

    ranked.sort(key=lambda r: r.relevance_score, reverse=True)
    return ranked


class SearchService:
    """Fans a query out to every source and merges what comes back.

    Sources run concurrently; one failing or slow source never fails the
    batch, it just contributes no results.
    """

    def __init__(self, sources: Sequence[tuple[str, SearchSource]] | None = None) -> None:
        self._sources = tuple(sources) if sources is not None else DEFAULT_SOURCES

    async def search_internet(self, query: str, max_results: int | None = None) -> SearchResponse:
        limit = max_results if max_results is not None else settings.search_max_results
        started = time.monotonic()

        try:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout,
                follow_redirects=True,
                headers={"User-Agent": DEFAULT_USER_AGENT},
            ) as client:
                outcomes = await asyncio.gather(
                    *(source(client, query) for _, source in self._sources),
                    return_exceptions=True,
                )

            merged: list[SearchResult] = []
            for (name, _), outcome in zip(self._sources, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    logger.warning("Search source %s failed: %s", name, outcome)
                    continue
                merged.extend(outcome)

            top = rank_by_relevance(remove_duplicates(merged), query)[:limit]
            elapsed = int((time.monotonic() - started) * 1000)
            logger.info("Search for %r: %d result(s) in %dms", query, len(top), elapsed)
            return SearchResponse(
                success=True,
                results=top,
                query=query,
                total_results=len(top),
                search_time=elapsed,
            )
        except Exception as exc:
            logger.exception("Search batch failed")
            return SearchResponse(
                success=False,
                query=query,
                search_time=int((time.monotonic() - started) * 1000),
                error=str(exc) or "Unknown search error",
            )
