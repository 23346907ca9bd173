import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from tripsearch.core.config import settings
from tripsearch.core.errors import SearchUnavailableError
from tripsearch.models import (
    GeoDistanceFilter,
    Intent,
    NaturalLanguageSearchResponse,
    ParsedQuery,
    SearchRequest,
    SearchResponse,
    SearchScope,
)
from tripsearch.nlp.parser import QueryParser, query_parser
from tripsearch.recall.es_client import ESClient, es_client
from tripsearch.recall.query_builder import (
    add_spatial_filters,
    build_query,
    visibility_clause,
)

logger = logging.getLogger(__name__)

COMMON_QUERIES = [
    "hiking trails near me",
    "easy bike routes",
    "waterfall hikes",
    "weekend camping spots",
    "moderate difficulty trails",
    "mountain climbing routes",
    "family-friendly activities",
    "dog-friendly hikes",
    "scenic bike paths",
    "swimming holes",
]

NO_RESULT_SUGGESTIONS = {
    Intent.ACTIVITY: [
        "Try broadening your search area",
        "Consider different difficulty levels",
        "Look for similar activity types",
    ],
    Intent.PLACE: [
        "Try searching in nearby cities",
        "Look for similar types of places",
        "Expand your search radius",
    ],
}
DEFAULT_NO_RESULT_SUGGESTIONS = [
    "Try more specific keywords",
    "Include location information",
    "Use activity or place names",
]
FEW_RESULT_SUGGESTIONS = [
    "Expand search area for more results",
    "Try different keywords",
]
FEW_RESULTS = 5

INTENT_SCOPES = {
    Intent.ACTIVITY: SearchScope.ACTIVITIES,
    Intent.PLACE: SearchScope.PLACES,
}


class SearchService:
    """Natural-language search over activities and places."""

    def __init__(self, parser: QueryParser, client: ESClient):
        self.parser = parser
        self.client = client

    async def parse(self, text: str) -> ParsedQuery:
        return await self.parser.parse(text)

    async def search(
        self,
        req: SearchRequest,
        user_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> NaturalLanguageSearchResponse:
        limit = req.limit if req.limit > 0 else settings.SEARCH_DEFAULT_LIMIT
        limit = min(limit, settings.SEARCH_MAX_LIMIT)
        offset = max(req.offset, 0)

        parsed = await self.parser.parse(req.query)
        if req.filters is not None:
            parsed = parsed.model_copy(update={"filters": req.filters})

        query = self.build_es_query(parsed, user_id, limit, offset)
        scope = INTENT_SCOPES.get(parsed.intent, SearchScope.UNIFIED)

        # The probe and the search share one deadline.
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        if not await self.client.is_available(timeout=timeout):
            raise SearchUnavailableError("search index is unavailable")

        if deadline is not None:
            timeout = max(deadline - loop.time(), 0.0)
        try:
            response = await self.client.search(query, scope=scope, timeout=timeout)
        except Exception as e:
            logger.error(f"Elasticsearch search failed: {e}")
            raise

        self.client.log_query(
            {
                "query": req.query,
                "interpreted_type": parsed.intent.value,
                "filters": parsed.filters.model_dump(exclude_none=True),
                "results_count": response.total,
                "user_id": user_id or "",
                "session_id": req.session_id or "",
                "confidence": parsed.confidence,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "took_ms": response.took,
            }
        )

        return NaturalLanguageSearchResponse(
            query=parsed,
            results=response.results,
            total=response.total,
            took=response.took,
            suggestions=generate_suggestions(parsed, response),
        )

    def build_es_query(
        self, parsed: ParsedQuery, user_id: Optional[str], limit: int, offset: int
    ) -> dict:
        filters = parsed.filters
        search_text = parsed.search_text

        # Guests only see public content.
        if not user_id:
            filters = filters.model_copy(update={"visibility": "public"})

        location = parsed.location
        if location is not None:
            if location.latitude is not None and location.longitude is not None:
                filters = filters.model_copy(
                    update={
                        "location": GeoDistanceFilter(
                            lat=location.latitude,
                            lon=location.longitude,
                            radius_km=location.radius_km,
                        )
                    }
                )
            elif location.name:
                search_text = f"{search_text} {location.name}".strip()

        query = build_query(search_text, filters, limit, offset)
        add_spatial_filters(query, parsed.spatial)

        if user_id:
            query["query"]["bool"]["filter"].append(visibility_clause(user_id))
        return query

    def suggest(self, prefix: str, limit: int) -> List[str]:
        prefix = prefix.lower()
        matches = [q for q in COMMON_QUERIES if not prefix or prefix in q.lower()]
        return matches[:limit]


def generate_suggestions(parsed: ParsedQuery, response: SearchResponse) -> List[str]:
    suggestions = []

    if response.total == 0:
        suggestions.extend(
            NO_RESULT_SUGGESTIONS.get(parsed.intent, DEFAULT_NO_RESULT_SUGGESTIONS)
        )
    elif response.total < FEW_RESULTS:
        suggestions.extend(FEW_RESULT_SUGGESTIONS)

    if parsed.intent == Intent.ACTIVITY:
        if not parsed.filters.activity_types:
            suggestions.append("Try specifying an activity type (hiking, biking, etc.)")
        if not parsed.filters.difficulty_levels:
            suggestions.append("Specify difficulty level (easy, moderate, hard)")

    return suggestions


search_service = SearchService(query_parser, es_client)
