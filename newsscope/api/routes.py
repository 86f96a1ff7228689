from fastapi import APIRouter, HTTPException, BackgroundTasks, Query
from fastapi.responses import JSONResponse
import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..models.articles import AggregationRequest, AggregationResult
from ..models.schemas import (
    ArticleResponse, SearchResponse, TopicResponse, TimelineResponse,
    SourcesResponse, PopularSearch, HealthResponse, ErrorResponse,
)
from ..services.classifier import TRUSTED_SOURCES
from ..services.news_aggregator import AggregationError
from ..core.config import settings
from .dependencies import Aggregator, QueryLogDep, LLM

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _parse_sources(sources: Optional[str]) -> List[str]:
    if not sources:
        return []
    return [s.strip() for s in sources.split(",") if s.strip()]


def _build_request(query: Optional[str], sources: Optional[str], days_back: int) -> AggregationRequest:
    """Validate input before any source is contacted."""
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Query parameter is required")
    try:
        return AggregationRequest(query=query, days_back=days_back, sources=tuple(_parse_sources(sources)))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


async def _aggregate(aggregator, request: AggregationRequest) -> AggregationResult:
    try:
        return await aggregator.aggregate(request)
    except AggregationError as e:
        logger.error(f"Aggregation failed for '{request.query}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/news/search", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search_news(
    aggregator: Aggregator,
    query_log: QueryLogDep,
    background_tasks: BackgroundTasks,
    query: Optional[str] = None,
    sources: Optional[str] = None,
    days_back: int = Query(settings.DEFAULT_DAYS_BACK, alias="daysBack", ge=1),
):
    """Search every source for the query and return trusted, recent articles."""
    request = _build_request(query, sources, days_back)
    try:
        result = await _aggregate(aggregator, request)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Search error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    # Logging the query must never fail the search
    background_tasks.add_task(query_log.record_safely, request.query, result.count)
    return SearchResponse.from_result(result)


@router.get("/news/topic/{topic}", response_model=TopicResponse, responses=ERROR_RESPONSES)
async def news_by_topic(
    topic: str,
    aggregator: Aggregator,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    days_back: int = Query(settings.DEFAULT_DAYS_BACK, alias="daysBack", ge=1),
):
    """List articles for a topic, newest first."""
    if not topic.strip():
        raise HTTPException(status_code=400, detail="Topic is required")
    try:
        result = await aggregator.aggregate_topic(topic, days_back=days_back, limit=limit, offset=offset)
    except AggregationError as e:
        logger.error(f"Topic fetch failed for '{topic}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    except Exception as e:
        logger.error(f"Topic fetch error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return TopicResponse(
        articles=[ArticleResponse.from_article(a) for a in result.articles],
        topic=result.request.query,
        count=result.count,
    )


@router.get("/news/timeline", response_model=TimelineResponse, responses=ERROR_RESPONSES)
async def news_timeline(
    aggregator: Aggregator,
    llm: LLM,
    query_log: QueryLogDep,
    background_tasks: BackgroundTasks,
    query: Optional[str] = None,
    sources: Optional[str] = None,
    days_back: int = Query(settings.DEFAULT_DAYS_BACK, alias="daysBack", ge=1),
):
    """Aggregate articles for the query and condense them into a timeline."""
    request = _build_request(query, sources, days_back)
    try:
        result = await _aggregate(aggregator, request)
        summary = await llm.summarize_timeline(result.articles)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Timeline error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    background_tasks.add_task(query_log.record_safely, request.query, result.count)
    return TimelineResponse(
        entries=summary.entries,
        query=request.query,
        result_count=result.count,
        sources=list(request.sources) or None,
        days_back=request.days_back,
    )


@router.get("/news/sources", response_model=SourcesResponse)
async def list_sources(aggregator: Aggregator):
    """Registered source adapters and the trusted outlet allow-list."""
    return SourcesResponse(adapters=aggregator.source_names, trusted=sorted(TRUSTED_SOURCES))


@router.get("/searches/popular", response_model=List[PopularSearch])
async def popular_searches(query_log: QueryLogDep, limit: int = Query(5, ge=1, le=50)):
    """Most productive past searches"""
    try:
        rows = await query_log.popular(limit)
    except Exception as e:
        logger.error(f"Popular searches error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return [PopularSearch(**row) for row in rows]


@router.get("/health", response_model=HealthResponse)
async def health_check(aggregator: Aggregator, llm: LLM):
    """Enhanced health check with service status"""
    try:
        return HealthResponse(
            status="ok",
            message="Service is healthy",
            timestamp=datetime.now(timezone.utc),
            llm_available=llm.available,
            search_api_available=settings.has_search_api_key,
            sources=aggregator.source_names,
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "message": str(e)}
        )
