import asyncio
import logging
from typing import Any, Dict, Optional, Set

from elastic_transport import SerializationError
from elasticsearch import ApiError, AsyncElasticsearch, TransportError

from tripsearch.core.config import settings
from tripsearch.core.errors import (
    SearchDecodeError,
    SearchIndexError,
    SearchTransportError,
)
from tripsearch.models import SearchResponse, SearchResult, SearchScope

logger = logging.getLogger(__name__)


class ESClient:
    """Executes compiled queries and probes index liveness.

    Construction never touches the network, so an unreachable cluster only
    shows up as ``available == False``.
    """

    def __init__(self, host: str = None):
        self.client = AsyncElasticsearch(
            host or settings.ES_HOST,
            request_timeout=settings.ES_REQUEST_TIMEOUT,
            max_retries=0,
            retry_on_timeout=False,
        )
        self.activities_index = settings.ES_ACTIVITIES_INDEX
        self.places_index = settings.ES_PLACES_INDEX
        self.query_log_index = settings.ES_QUERY_LOG_INDEX
        self.ping_timeout = settings.ES_PING_TIMEOUT
        self.available = False
        self._pending_logs: Set[asyncio.Task] = set()

    async def startup(self):
        if not await self.is_available():
            logger.warning(f"Elasticsearch not available at startup: {settings.ES_HOST}")

    async def close(self):
        await self.client.close()

    async def is_available(self, timeout: Optional[float] = None) -> bool:
        if timeout is not None:
            timeout = min(timeout, self.ping_timeout)
        else:
            timeout = self.ping_timeout
        try:
            alive = await asyncio.wait_for(self.client.ping(), timeout)
        except (asyncio.TimeoutError, ApiError, TransportError) as e:
            logger.warning(f"Elasticsearch ping failed: {e!r}")
            alive = False
        self.available = bool(alive)
        return self.available

    async def search(
        self,
        query: Dict[str, Any],
        scope: SearchScope = SearchScope.UNIFIED,
        timeout: Optional[float] = None,
    ) -> SearchResponse:
        """Run ``query`` against the collection(s) selected by ``scope``.

        ``timeout`` bounds the whole call; on expiry the request is
        cancelled and ``SearchTransportError`` is raised.
        """
        params = dict(query)
        if "from" in params:
            params["from_"] = params.pop("from")

        try:
            resp = await asyncio.wait_for(
                self.client.search(
                    index=self._indices(scope), track_total_hits=True, **params
                ),
                timeout,
            )
        except asyncio.TimeoutError as e:
            raise SearchTransportError(f"search timed out after {timeout}s") from e
        except ApiError as e:
            raise SearchIndexError(e.status_code, e.body) from e
        except SerializationError as e:
            raise SearchDecodeError(f"failed to decode response: {e!r}") from e
        except TransportError as e:
            raise SearchTransportError(f"search failed: {e}") from e

        return self._parse_response(resp, scope)

    def log_query(self, entry: Dict[str, Any]) -> asyncio.Task:
        """Write an analytics entry in the background; never awaited by searches."""
        task = asyncio.create_task(self._write_query_log(entry))
        self._pending_logs.add(task)
        task.add_done_callback(self._pending_logs.discard)
        return task

    async def _write_query_log(self, entry: Dict[str, Any]):
        try:
            await self.client.index(
                index=self.query_log_index, document=entry, refresh=False
            )
        except Exception as e:
            logger.warning(f"Failed to log search query: {e!r}")

    def _indices(self, scope: SearchScope):
        if scope == SearchScope.ACTIVITIES:
            return [self.activities_index]
        if scope == SearchScope.PLACES:
            return [self.places_index]
        return [self.activities_index, self.places_index]

    def _parse_response(self, resp, scope: SearchScope) -> SearchResponse:
        try:
            hits = resp["hits"]
            total = hits["total"]
            if isinstance(total, dict):
                total = total["value"]
            results = [self._parse_hit(hit, scope) for hit in hits["hits"]]
            return SearchResponse(total=int(total), results=results, took=int(resp["took"]))
        except (KeyError, TypeError, ValueError) as e:
            raise SearchDecodeError(f"failed to decode response: {e!r}") from e

    def _parse_hit(self, hit, scope: SearchScope) -> SearchResult:
        if scope == SearchScope.ACTIVITIES:
            doc_type = "activity"
        elif scope == SearchScope.PLACES:
            doc_type = "place"
        else:
            # Concrete index names behind an alias (places-000001) keep the prefix.
            index = hit.get("_index") or ""
            doc_type = "place" if index.startswith(self.places_index) else "activity"

        return SearchResult(
            id=hit["_id"],
            type=doc_type,
            source=hit.get("_source") or {},
            score=hit.get("_score"),
        )


es_client = ESClient()
