"""
Pytest Configuration and Fixtures

Provides shared fakes and fixtures for the test-suite.  Nothing here talks
to the network: adapters are fed canned payloads and HTTP sessions are
replaced by ``FakeSession``.
"""

import asyncio
import dataclasses
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

import pytest

from newsscope.models.articles import NormalizedArticle, RawCandidate
from newsscope.services.sources.base import SourceAdapter


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# HTTP FAKES
# =============================================================================

class FakeResponse:
    def __init__(self, status: int = 200, text: str = "", json_data: Any = None, body: bytes = b""):
        self.status = status
        self._text = text
        self._json = json_data
        self._body = body

    async def text(self) -> str:
        return self._text

    async def json(self) -> Any:
        return self._json

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Stands in for ``aiohttp.ClientSession``; records every GET."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[BaseException] = None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests: List[tuple] = []
        self.closed = False

    def get(self, url: str, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


# =============================================================================
# ADAPTER FAKES
# =============================================================================

class FakeAdapter(SourceAdapter):
    """Adapter returning canned candidates, optionally after a delay or error."""

    def __init__(self, name: str, candidates=(), error: Optional[BaseException] = None,
                 delay: float = 0.0, hook=None):
        super().__init__()
        self.name = name
        self.candidates = list(candidates)
        self.error = error
        self.delay = delay
        self.hook = hook
        self.calls: List[tuple] = []
        self.cancelled = False

    async def _request(self, session, query, days_back):
        self.calls.append((query, days_back))
        try:
            if self.hook is not None:
                await self.hook()
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.candidates

    def parse(self, payload, query, days_back):
        return [dataclasses.replace(c, topic=query) for c in payload]


class BrokenAdapter(FakeAdapter):
    """Raises a programming defect from ``fetch`` itself."""

    async def fetch(self, session, query, days_back):
        raise RuntimeError(f"{self.name} is broken")


# =============================================================================
# RECORD BUILDERS
# =============================================================================

def make_candidate(title: str = "AI Development speeds up", source_name: str = "The Guardian",
                   raw_timestamp: str = "", url: Optional[str] = None, excerpt: str = "",
                   topic: str = "AI Development", image_url: Optional[str] = None,
                   author: Optional[str] = None) -> RawCandidate:
    return RawCandidate(
        title=title,
        excerpt=excerpt,
        source_name=source_name,
        raw_timestamp=raw_timestamp,
        article_url=url or f"https://example.com/{abs(hash((title, source_name)))}",
        topic=topic,
        image_url=image_url,
        author=author,
    )


def make_article(title: str = "AI Development speeds up", source: str = "The Guardian",
                 published_at: Optional[datetime] = None, url: Optional[str] = None,
                 topic: str = "AI Development", excerpt: str = "", tags=None,
                 image_url: Optional[str] = None) -> NormalizedArticle:
    return NormalizedArticle(
        title=title,
        excerpt=excerpt or title,
        content=excerpt or title,
        source=source,
        published_at=published_at or NOW,
        article_url=url or f"https://example.com/{abs(hash((title, source)))}",
        topic=topic,
        image_url=image_url,
        tags=list(tags or []),
    )


def hours_ago(hours: float, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) - timedelta(hours=hours)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_session():
    return FakeSession()
