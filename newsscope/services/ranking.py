"""
Merge, filter and rank stage of the aggregation pipeline.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from ..models.articles import AggregationRequest, AggregationResult, NormalizedArticle
from .classifier import is_trusted
from .dates import cutoff_for, utcnow

logger = logging.getLogger(__name__)

SEARCH_MODE = "search"
TOPIC_MODE = "topic"


def matches_query(article: NormalizedArticle, query: str) -> bool:
    """Case-insensitive substring match on title, excerpt, topic or any tag."""
    needle = query.lower()
    return (
        needle in article.title.lower()
        or needle in article.excerpt.lower()
        or needle in article.topic.lower()
        or any(needle in tag.lower() for tag in article.tags)
    )


def matches_topic(article: NormalizedArticle, topic: str) -> bool:
    return topic.lower() in article.topic.lower()


def finalize(articles: Iterable[NormalizedArticle], request: AggregationRequest,
             mode: str = SEARCH_MODE, now: Optional[datetime] = None) -> AggregationResult:
    """
    Apply recency, trust, source and relevance filters, then sort newest first.

    The sort is stable, so articles with equal ``published_at`` keep their
    concatenation (adapter registration) order.  Only repeat occurrences of
    the exact same article URL are dropped; stories about the same event
    from different outlets are all kept.

    :param articles: Normalized articles in concatenation order
    :param request: The originating request
    :param mode: ``search`` matches the free-text query, ``topic`` the stored topic
    :param now: Reference instant for the recency cutoff
    """
    if mode not in (SEARCH_MODE, TOPIC_MODE):
        raise ValueError(f"Unknown finalize mode: {mode}")

    cutoff = cutoff_for(request.days_back, now or utcnow())
    allowed_sources = set(request.sources)
    seen_urls = set()
    kept: List[NormalizedArticle] = []

    for article in articles:
        if article.published_at < cutoff:
            continue
        if not is_trusted(article.source):
            continue
        if allowed_sources and article.source not in allowed_sources:
            continue
        if mode == SEARCH_MODE and not matches_query(article, request.query):
            continue
        if mode == TOPIC_MODE and not matches_topic(article, request.query):
            continue
        if article.article_url in seen_urls:
            continue
        seen_urls.add(article.article_url)
        kept.append(article)

    kept.sort(key=lambda a: a.published_at, reverse=True)
    logger.info(f"Finalized {len(kept)} articles for '{request.query}' ({mode} mode)")
    return AggregationResult(articles=kept, request=request)
