import asyncio
import time

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from tripsearch.core.errors import SearchTransportError, SearchUnavailableError
from tripsearch.models import (
    Filters,
    Intent,
    LocationFilter,
    ParsedQuery,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SearchScope,
)
from tripsearch.nlp.parser import QueryParser
from tripsearch.recall.es_client import ESClient
from tripsearch.service import SearchService, generate_suggestions

RESULTS = SearchResponse(
    total=1,
    took=4,
    results=[SearchResult(id="a1", type="activity", source={"title": "Wildwood Trail"}, score=2.5)],
)


def make_service(available=True, response=RESULTS):
    client = MagicMock()
    client.is_available = AsyncMock(return_value=available)
    client.search = AsyncMock(return_value=response)
    client.log_query = MagicMock()
    return SearchService(QueryParser(), client), client


def filter_clauses(client):
    query = client.search.call_args.args[0]
    return query["query"]["bool"]["filter"]


@pytest.mark.asyncio
async def test_activity_search_for_guest():
    service, client = make_service()

    result = await service.search(SearchRequest(query="easy hiking near Portland within 10 miles"))

    assert result.total == 1
    assert result.took == 4
    assert result.results[0].id == "a1"
    assert result.query.intent == Intent.ACTIVITY
    assert client.search.call_args.kwargs["scope"] == SearchScope.ACTIVITIES

    clauses = filter_clauses(client)
    assert {"terms": {"activity_type": ["hiking"]}} in clauses
    assert {"terms": {"difficulty_level": ["easy"]}} in clauses
    assert {"term": {"visibility": "public"}} in clauses


@pytest.mark.asyncio
async def test_authenticated_user_gets_ownership_clause():
    service, client = make_service()

    await service.search(SearchRequest(query="hiking"), user_id="user-7")

    clauses = filter_clauses(client)
    assert {"term": {"visibility": "public"}} not in clauses
    assert clauses[-1]["bool"]["should"][1]["bool"]["must"][1] == {"term": {"owner_id": "user-7"}}


@pytest.mark.asyncio
async def test_place_search_appends_location_name():
    service, client = make_service()

    await service.search(SearchRequest(query="coffee shops in Seattle"))

    query = client.search.call_args.args[0]
    assert client.search.call_args.kwargs["scope"] == SearchScope.PLACES
    assert query["query"]["bool"]["must"][0]["multi_match"]["query"] == "coffee shops in seattle Seattle"


@pytest.mark.asyncio
async def test_unknown_intent_searches_both_collections():
    service, client = make_service()

    await service.search(SearchRequest(query="something random"))

    assert client.search.call_args.kwargs["scope"] == SearchScope.UNIFIED


@pytest.mark.asyncio
async def test_limit_and_offset_are_clamped():
    service, client = make_service()

    await service.search(SearchRequest(query="hiking", limit=500, offset=-3))
    query = client.search.call_args.args[0]
    assert query["size"] == 100
    assert query["from"] == 0

    await service.search(SearchRequest(query="hiking"))
    assert client.search.call_args.args[0]["size"] == 20


@pytest.mark.asyncio
async def test_caller_filters_replace_parsed_filters():
    service, client = make_service()

    result = await service.search(
        SearchRequest(query="easy hiking", filters=Filters(activity_types=["kayaking"]))
    )

    clauses = filter_clauses(client)
    assert {"terms": {"activity_type": ["kayaking"]}} in clauses
    assert {"terms": {"difficulty_level": ["easy"]}} not in clauses
    assert result.query.filters.activity_types == ["kayaking"]


@pytest.mark.asyncio
async def test_unavailable_index_fails_explicitly():
    service, client = make_service(available=False)

    with pytest.raises(SearchUnavailableError):
        await service.search(SearchRequest(query="hiking"))

    client.search.assert_not_called()
    client.log_query.assert_not_called()


@pytest.mark.asyncio
async def test_search_errors_propagate():
    service, client = make_service()
    client.search.side_effect = SearchTransportError("Connection refused")

    with pytest.raises(SearchTransportError):
        await service.search(SearchRequest(query="hiking"))

    client.log_query.assert_not_called()


@pytest.mark.asyncio
async def test_search_is_logged_for_analytics():
    service, client = make_service()

    await service.search(SearchRequest(query="Coffee in Seattle", session_id="s-1"), user_id="u-1")

    entry = client.log_query.call_args.args[0]
    assert entry["query"] == "Coffee in Seattle"
    assert entry["interpreted_type"] == "place"
    assert entry["results_count"] == 1
    assert entry["session_id"] == "s-1"
    assert entry["user_id"] == "u-1"
    assert entry["took_ms"] == 4
    assert entry["filters"] == {}


def test_known_coordinates_become_a_geo_filter():
    service, _ = make_service()
    parsed = ParsedQuery(
        intent=Intent.PLACE,
        search_text="coffee",
        location=LocationFilter(name="Portland", latitude=45.52, longitude=-122.68, radius_km=5.0),
    )

    query = service.build_es_query(parsed, "u-1", 10, 0)

    assert query["query"]["bool"]["must"][0]["multi_match"]["query"] == "coffee"
    assert query["query"]["bool"]["filter"][0] == {
        "geo_distance": {"distance": "5.0km", "location": {"lat": 45.52, "lon": -122.68}}
    }


def test_suggestions():
    activity = ParsedQuery(intent=Intent.ACTIVITY, filters=Filters(activity_types=["hiking"]))
    place = ParsedQuery(intent=Intent.PLACE)

    assert generate_suggestions(activity, SearchResponse(total=0)) == [
        "Try broadening your search area",
        "Consider different difficulty levels",
        "Look for similar activity types",
        "Specify difficulty level (easy, moderate, hard)",
    ]
    assert generate_suggestions(place, SearchResponse(total=3)) == [
        "Expand search area for more results",
        "Try different keywords",
    ]
    assert generate_suggestions(place, SearchResponse(total=50)) == []
    assert generate_suggestions(ParsedQuery(), SearchResponse(total=0))[0] == "Try more specific keywords"


def test_suggest_prefix():
    service, _ = make_service()

    assert service.suggest("BIKE", 10) == ["easy bike routes", "scenic bike paths"]
    assert len(service.suggest("", 3)) == 3


@pytest.mark.asyncio
async def test_probe_is_bounded_by_the_caller_timeout():
    async def hang(*args, **kwargs):
        await asyncio.sleep(30)

    with patch("tripsearch.recall.es_client.AsyncElasticsearch") as MockES:
        mock_es = AsyncMock()
        mock_es.ping.side_effect = hang
        MockES.return_value = mock_es
        client = ESClient()
        client.ping_timeout = 2.0
        service = SearchService(QueryParser(), client)

        started = time.monotonic()
        with pytest.raises(SearchUnavailableError):
            await service.search(SearchRequest(query="hiking"), timeout=0.1)
        assert time.monotonic() - started < 1.0

    mock_es.search.assert_not_called()


@pytest.mark.asyncio
async def test_search_gets_the_remaining_deadline():
    service, client = make_service()

    await service.search(SearchRequest(query="hiking"), timeout=5.0)

    assert client.is_available.call_args.kwargs["timeout"] == 5.0
    remaining = client.search.call_args.kwargs["timeout"]
    assert 0.0 < remaining <= 5.0


def test_zero_coordinates_keep_the_geo_filter():
    service, _ = make_service()
    parsed = ParsedQuery(
        intent=Intent.PLACE,
        search_text="observatory",
        location=LocationFilter(name="Greenwich", latitude=51.48, longitude=0.0, radius_km=2.0),
    )

    query = service.build_es_query(parsed, "u-1", 10, 0)

    assert query["query"]["bool"]["must"][0]["multi_match"]["query"] == "observatory"
    assert query["query"]["bool"]["filter"][0] == {
        "geo_distance": {"distance": "2.0km", "location": {"lat": 51.48, "lon": 0.0}}
    }
