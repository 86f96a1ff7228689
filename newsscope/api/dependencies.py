"""FastAPI dependencies; tests swap them through ``app.dependency_overrides``."""

from typing import Annotated

from fastapi import Depends

from ..core.database import QueryLog, query_log
from ..services.llm_service import LLMService, llm_service
from ..services.news_aggregator import NewsAggregator, news_aggregator


def get_aggregator() -> NewsAggregator:
    return news_aggregator


def get_query_log() -> QueryLog:
    return query_log


def get_llm_service() -> LLMService:
    return llm_service


Aggregator = Annotated[NewsAggregator, Depends(get_aggregator)]
QueryLogDep = Annotated[QueryLog, Depends(get_query_log)]
LLM = Annotated[LLMService, Depends(get_llm_service)]
