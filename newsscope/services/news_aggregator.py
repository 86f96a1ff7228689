import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Iterable, List, Optional, Sequence

import aiohttp

from ..core.config import Settings, settings
from ..models.articles import AggregationRequest, AggregationResult, NormalizedArticle, RawCandidate
from .classifier import extract_tags
from .dates import normalize_date, utcnow
from .ranking import SEARCH_MODE, TOPIC_MODE, finalize
from .sources.base import SourceAdapter
from .sources.registry import build_default_adapters

logger = logging.getLogger(__name__)


class AggregationError(Exception):
    """Raised when no source adapter could run at all."""


@dataclass
class Settled:
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(coros: Iterable[Awaitable[Any]]) -> List[Settled]:
    """
    Run awaitables concurrently and wait for all of them to settle.

    Each outcome is mapped to a ``Settled`` holding either the value or the
    exception, in the order the awaitables were given.  Cancelling the
    caller cancels every task still in flight.
    """
    results = await asyncio.gather(*coros, return_exceptions=True)
    settled: List[Settled] = []
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            settled.append(Settled(error=result))
        else:
            settled.append(Settled(value=result))
    return settled


class NewsAggregator:
    """
    Fans a query out to every registered source adapter and merges the
    results into one newest-first article list.

    Adapters share nothing but the HTTP session, which is created lazily
    and reused across calls until ``close`` is called.
    """

    def __init__(self, config: Settings, adapters: Optional[Sequence[SourceAdapter]] = None):
        self.config = config
        self.adapters: List[SourceAdapter] = list(adapters) if adapters is not None else build_default_adapters(config)
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    @property
    def source_names(self) -> List[str]:
        return [adapter.name for adapter in self.adapters]

    async def collect(self, request: AggregationRequest) -> List[RawCandidate]:
        """
        Fetch candidates from every adapter concurrently.

        Waits for all adapters; a failing adapter contributes nothing.
        Results are concatenated in adapter registration order.
        """
        if not self.adapters:
            return []

        session = await self._get_session()
        logger.info(f"Fetching '{request.query}' from {len(self.adapters)} sources (last {request.days_back} days)")
        outcomes = await gather_settled(
            adapter.fetch(session, request.query, request.days_back) for adapter in self.adapters
        )

        candidates: List[RawCandidate] = []
        failures = 0
        for adapter, outcome in zip(self.adapters, outcomes):
            if not outcome.ok:
                failures += 1
                logger.error(f"Source adapter {adapter.name} failed", exc_info=outcome.error)
                continue
            candidates.extend(outcome.value or [])

        if failures == len(self.adapters):
            raise AggregationError(f"All {failures} source adapters failed")

        logger.info(f"Collected {len(candidates)} candidates for '{request.query}' ({failures} sources failed)")
        return candidates

    @staticmethod
    def normalize(candidate: RawCandidate, now: Optional[datetime] = None) -> NormalizedArticle:
        excerpt = candidate.excerpt
        if not excerpt:
            excerpt = candidate.title[:150] + "..."
        return NormalizedArticle(
            title=candidate.title,
            excerpt=excerpt,
            content=candidate.excerpt or candidate.title,
            source=candidate.source_name,
            author=candidate.author,
            published_at=normalize_date(candidate.raw_timestamp, now=now),
            image_url=candidate.image_url,
            article_url=candidate.article_url,
            tags=extract_tags(f"{candidate.title} {candidate.excerpt}"),
            topic=candidate.topic,
        )

    async def _run(self, request: AggregationRequest, mode: str) -> AggregationResult:
        candidates = await self.collect(request)
        now = utcnow()
        articles = [self.normalize(candidate, now=now) for candidate in candidates]
        return finalize(articles, request, mode=mode)

    async def aggregate(self, request: AggregationRequest) -> AggregationResult:
        """Search every source for ``request.query`` and return matching articles."""
        return await self._run(request, SEARCH_MODE)

    async def aggregate_topic(self, topic: str, days_back: int = 7, limit: int = 10,
                              offset: int = 0) -> AggregationResult:
        """List articles for a topic, paginated after sorting."""
        request = AggregationRequest(query=topic, days_back=days_back)
        result = await self._run(request, TOPIC_MODE)
        result.articles = result.articles[offset:offset + limit]
        return result


# Global aggregator instance
news_aggregator = NewsAggregator(settings)
