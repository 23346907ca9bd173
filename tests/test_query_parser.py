import time

import pytest
from unittest.mock import AsyncMock

from tripsearch.core.errors import SemanticParseError
from tripsearch.models import Filters, Intent, ParsedQuery
from tripsearch.nlp.analyzer import LLMQueryParser
from tripsearch.nlp.parser import QueryParser
from tripsearch.nlp.remote_llm import RemoteLLMClient
from tripsearch.nlp.rules import RuleBasedParser

QUERY = "easy hiking near Portland within 10 miles"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_empty_query(text):
    parsed = await QueryParser().parse(text)

    assert parsed.intent == Intent.UNKNOWN
    assert parsed.search_text == text
    assert parsed.filters == Filters()
    assert parsed.confidence == 0.0
    assert parsed.keywords == []
    assert parsed.explanation == "Empty query provided"


@pytest.mark.asyncio
async def test_semantic_failure_falls_back_to_rules():
    semantic = AsyncMock()
    semantic.parse.side_effect = SemanticParseError("LLM down")

    parsed = await QueryParser(semantic=semantic).parse(QUERY)

    semantic.parse.assert_awaited_once_with(QUERY.lower())
    assert parsed == RuleBasedParser().parse(QUERY)


@pytest.mark.asyncio
async def test_unconfigured_llm_falls_back_to_rules():
    semantic = LLMQueryParser(llm=RemoteLLMClient(api_url=""))

    parsed = await QueryParser(semantic=semantic).parse(QUERY)

    assert parsed.intent == Intent.ACTIVITY
    assert parsed.spatial.near.name == "Portland"


@pytest.mark.asyncio
async def test_semantic_result_is_used_with_rule_keywords():
    semantic = AsyncMock()
    semantic.parse.return_value = ParsedQuery(
        intent=Intent.PLACE,
        search_text="coffee in seattle",
        confidence=0.95,
        keywords=["ignored"],
        explanation="Coffee shops in Seattle",
    )

    parsed = await QueryParser(semantic=semantic).parse("Coffee in Seattle")

    assert parsed.intent == Intent.PLACE
    assert parsed.confidence == 0.95
    assert parsed.explanation == "Coffee shops in Seattle"
    assert parsed.keywords == ["coffee", "seattle"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    ["", "???", "a b c", "12345", "near", QUERY, "x" * 500],
)
async def test_filters_and_keywords_are_never_missing(text):
    parsed = await QueryParser().parse(text)

    assert parsed.filters is not None
    assert parsed.keywords is not None
    assert 0.0 <= parsed.confidence <= 1.0


@pytest.mark.asyncio
async def test_same_text_same_result():
    parser = QueryParser()

    first = await parser.parse(QUERY)
    second = await parser.parse(QUERY)

    assert first.model_dump_json() == second.model_dump_json()


@pytest.mark.asyncio
async def test_long_queries_are_truncated():
    text = "hiking " + "a " * 2000 + "near Portland"
    parser = QueryParser()

    started = time.monotonic()
    parsed = await parser.parse(text)
    assert time.monotonic() - started < 1.0

    assert len(parsed.search_text) <= 500
    assert parsed.intent == Intent.ACTIVITY
    assert parsed.location is None
