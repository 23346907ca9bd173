import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Header, HTTPException, Query, Request

from tripsearch.core.config import settings
from tripsearch.core.errors import SearchError, SearchUnavailableError
from tripsearch.models import NaturalLanguageSearchResponse, ParsedQuery, SearchRequest
from tripsearch.service import search_service

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Trip Search Service", version="1.0")


@app.on_event("startup")
async def startup_event():
    await search_service.client.startup()


@app.on_event("shutdown")
async def shutdown_event():
    await search_service.client.close()


@app.get(
    "/api/v1/search",
    response_model=NaturalLanguageSearchResponse,
    response_model_exclude_none=True,
)
async def search(
    request: Request,
    q: str = "",
    limit: int = settings.SEARCH_DEFAULT_LIMIT,
    offset: int = 0,
    x_session_id: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
):
    if not q:
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")

    session_id = x_session_id
    if not session_id and request.client is not None:
        session_id = request.client.host

    req = SearchRequest(
        query=q,
        limit=limit if limit > 0 else settings.SEARCH_DEFAULT_LIMIT,
        offset=max(offset, 0),
        session_id=session_id,
    )

    try:
        return await search_service.search(
            req, user_id=x_user_id, timeout=settings.ES_REQUEST_TIMEOUT
        )
    except SearchUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except SearchError as e:
        raise HTTPException(status_code=502, detail=f"Search failed: {e}")


@app.get("/api/v1/search/suggestions")
async def suggestions(prefix: str = "", limit: int = Query(default=10, ge=1, le=50)):
    return search_service.suggest(prefix, limit)


@app.get(
    "/api/v1/search/parse",
    response_model=ParsedQuery,
    response_model_exclude_none=True,
)
async def parse(q: str = ""):
    if not q:
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    return await search_service.parse(q)


@app.get("/health")
async def health():
    available = await search_service.client.is_available()
    return {"status": "ok" if available else "degraded", "elasticsearch": available}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
