"""
Common capability shared by every news source adapter.

An adapter fetches one outlet's search results for a query and turns them
into ``RawCandidate`` records.  ``fetch`` never raises for transport or
parsing problems: one outlet being down or changing its markup must not be
visible as a failure of the whole aggregation, so those errors are logged
and converted into an empty result here, once, for every adapter.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp

from ...core.config import DEFAULT_USER_AGENT
from ...models.articles import RawCandidate
from ..dates import cutoff_for, parse_date

logger = logging.getLogger(__name__)

# Errors an adapter recovers from locally.  Anything else is a defect and
# is left for the coordinator's fan-out helper to report.
RECOVERABLE_ERRORS = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
)


class SourceAdapter(ABC):
    name: str = ""
    origin: str = ""
    default_timeout: float = 10.0

    def __init__(self, timeout: Optional[float] = None, user_agent: str = DEFAULT_USER_AGENT,
                 max_items: int = 10):
        self.timeout = aiohttp.ClientTimeout(total=timeout or self.default_timeout)
        self.user_agent = user_agent
        self.max_items = max_items

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    @property
    def headers(self) -> Dict[str, str]:
        return {"User-Agent": self.user_agent}

    async def fetch(self, session: aiohttp.ClientSession, query: str, days_back: int) -> List[RawCandidate]:
        """
        Fetch and parse candidates for ``query`` within ``days_back`` days.

        :param session: Shared HTTP client session
        :param query: Free-text search query
        :param days_back: Size of the time window in days
        :return: Candidates in source order; empty on any recoverable error
        """
        try:
            payload = await self._request(session, query, days_back)
            if payload is None:
                return []
            candidates = self.parse(payload, query, days_back)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"{self.name} fetch failed for '{query}': {type(e).__name__}: {e}")
            return []
        logger.info(f"{self.name}: {len(candidates)} candidates for '{query}'")
        return candidates

    @abstractmethod
    async def _request(self, session: aiohttp.ClientSession, query: str, days_back: int) -> Any:
        """Issue the source-specific request; return the payload to parse or None."""

    @abstractmethod
    def parse(self, payload: Any, query: str, days_back: int) -> List[RawCandidate]:
        """Extract candidates from a response payload."""

    async def _get_text(self, session: aiohttp.ClientSession, url: str, **kwargs) -> Optional[str]:
        headers = {**self.headers, **kwargs.pop("headers", {})}
        async with session.get(url, headers=headers, timeout=self.timeout, **kwargs) as resp:
            if resp.status != 200:
                logger.warning(f"{self.name} responded with status {resp.status} for {url}")
                return None
            return await resp.text()

    def resolve_url(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        url = url.strip()
        if not url:
            return None
        if url.startswith(("http://", "https://")):
            return url
        return urljoin(self.origin + "/", url)

    @staticmethod
    def within_window(raw_timestamp: Optional[str], days_back: int) -> bool:
        """Early recency check; undated candidates are kept."""
        published = parse_date(raw_timestamp)
        if published is None:
            return True
        return published >= cutoff_for(days_back)

    def build_candidate(self, query: str, title: Optional[str], url: Optional[str],
                        excerpt: Optional[str] = None, raw_timestamp: Optional[str] = None,
                        image_url: Optional[str] = None, author: Optional[str] = None,
                        source_name: Optional[str] = None) -> Optional[RawCandidate]:
        """Return a candidate, or None when the mandatory title/URL is missing."""
        title = (title or "").strip()
        article_url = self.resolve_url(url)
        if not title or not article_url:
            return None
        return RawCandidate(
            title=title,
            excerpt=(excerpt or "").strip(),
            source_name=source_name or self.name,
            raw_timestamp=(raw_timestamp or "").strip(),
            article_url=article_url,
            topic=query,
            image_url=self.resolve_url(image_url),
            author=(author or "").strip() or None,
        )
