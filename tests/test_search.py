"""Tests for the search adapter: query parsing, sources, merge and rank."""

from unittest.mock import AsyncMock

import httpx

from meligy.adapters.search import (
    DUCKDUCKGO_URL,
    SearchService,
    enhance_snippet,
    extract_search_query,
    rank_by_relevance,
    remove_duplicates,
    search_duckduckgo,
    search_open_sources,
    search_wikipedia,
    should_search_internet,
    strip_html,
)
from meligy.models import SearchResult


def _result(url: str = "https://example.com", title: str = "T", snippet: str = "s", score: float = 0.5):
    return SearchResult(title=title, url=url, snippet=snippet, source="test", relevance_score=score)


def _json_response(data: dict, status_code: int = 200, url: str = DUCKDUCKGO_URL) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=data, request=httpx.Request("GET", url))


# -- Intent / query ------------------------------------------------------------


def test_should_search_english_and_arabic() -> None:
    assert should_search_internet("Tell me about the pyramids")
    assert should_search_internet("ابحث عن الأهرامات")
    assert not should_search_internet("good morning")


def test_extract_query_strips_trigger_and_punctuation() -> None:
    assert extract_search_query("what is the capital of Egypt?") == "the capital of Egypt"


def test_extract_query_drops_text_before_trigger() -> None:
    assert extract_search_query("hey, search for cheap flights!!") == "cheap flights"


def test_extract_query_falls_back_to_original() -> None:
    assert extract_search_query("what is?") == "what is?"


# -- Text helpers --------------------------------------------------------------


def test_strip_html() -> None:
    assert strip_html('The <span class="searchmatch">Nile</span> river') == "The Nile river"


def test_enhance_snippet_caps_length() -> None:
    snippet = enhance_snippet("word " * 100)
    assert len(snippet) == 203
    assert snippet.endswith("...")


# -- Merge / rank --------------------------------------------------------------


def test_remove_duplicates_keeps_first_case_variant() -> None:
    first = _result("https://Example.com/Page/", title="first")
    second = _result("https://example.com/page", title="second")

    unique = remove_duplicates([first, second])

    assert [r.title for r in unique] == ["first"]


def test_title_match_ranks_at_or_above_non_match() -> None:
    miss = _result("https://a", title="Nile river", snippet="")
    hit = _result("https://b", title="Capital of Egypt", snippet="")

    ranked = rank_by_relevance([miss, hit], "capital egypt")

    assert ranked[0].url == "https://b"
    assert ranked[0].relevance_score >= ranked[1].relevance_score


def test_rank_does_not_mutate_inputs() -> None:
    original = _result(title="capital", score=0.5)
    rank_by_relevance([original], "capital")
    assert original.relevance_score == 0.5


# -- Sources -------------------------------------------------------------------


async def test_duckduckgo_abstract_and_related() -> None:
    client = AsyncMock()
    client.get.return_value = _json_response({
        "Heading": "Egypt",
        "Abstract": "Egypt is a country in North Africa.",
        "AbstractURL": "https://en.wikipedia.org/wiki/Egypt",
        "RelatedTopics": [
            {"Text": "Cairo - capital city of Egypt", "FirstURL": "https://duckduckgo.com/Cairo"},
            {"Name": "Category group without text"},
        ],
    })

    results = await search_duckduckgo(client, "Egypt")

    assert [r.title for r in results] == ["Egypt", "Cairo"]
    assert results[0].source == "DuckDuckGo Knowledge"
    assert client.get.call_args.kwargs["params"]["format"] == "json"


async def test_wikipedia_search_then_summary() -> None:
    client = AsyncMock()
    client.get.side_effect = [
        _json_response({"query": {"search": [{"title": "Nile", "snippet": "<b>Nile</b>"}]}}),
        _json_response({
            "title": "Nile",
            "extract": "The Nile is a major river.",
            "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/Nile"}},
        }),
    ]

    results = await search_wikipedia(client, "nile")

    assert len(results) == 1
    assert results[0].url == "https://en.wikipedia.org/wiki/Nile"
    assert results[0].snippet == "The Nile is a major river."


async def test_open_sources_picks_by_topic() -> None:
    results = await search_open_sources(AsyncMock(), "python database bug")
    assert [r.source for r in results] == ["Stack Overflow"]


# -- SearchService -------------------------------------------------------------


async def test_failed_source_does_not_fail_batch() -> None:
    async def broken(client, query):
        raise RuntimeError("source down")

    async def working(client, query):
        return [_result("https://ok", title=query)]

    service = SearchService(sources=[("broken", broken), ("working", working)])
    response = await service.search_internet("pyramids")

    assert response.success is True
    assert [r.url for r in response.results] == ["https://ok"]
    assert response.total_results == 1


async def test_results_capped_and_deduplicated() -> None:
    async def source(client, query):
        return [_result(f"https://r/{i}") for i in range(8)] + [_result("https://R/0/")]

    service = SearchService(sources=[("many", source)])
    response = await service.search_internet("anything", max_results=5)

    assert len(response.results) == 5
    assert len({r.url.lower().rstrip("/") for r in response.results}) == 5


async def test_all_sources_failing_gives_empty_success() -> None:
    async def broken(client, query):
        raise httpx.ConnectError("offline")

    response = await SearchService(sources=[("a", broken)]).search_internet("x")

    assert response.success is True
    assert response.results == []
