"""
RSS/Atom feed adapters.

Some trusted outlets expose no usable search page but publish a feed of
their latest stories.  The feed is downloaded through the shared session
and parsed with feedparser; entries are kept when every term of the query
appears in their title or summary.
"""

import logging
from typing import Any, List, Optional

import aiohttp
import feedparser
from bs4 import BeautifulSoup

from ...models.articles import RawCandidate
from .base import SourceAdapter

logger = logging.getLogger(__name__)


def _strip_html(text: str) -> str:
    if not text or "<" not in text:
        return (text or "").strip()
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


def _entry_image(entry: Any) -> Optional[str]:
    for key in ("media_thumbnail", "media_content"):
        media = entry.get(key) or []
        for item in media:
            url = item.get("url")
            if url:
                return url
    return None


def matches_query(text: str, query: str) -> bool:
    terms = [t for t in query.lower().split() if t]
    text_lower = text.lower()
    return all(term in text_lower for term in terms)


class FeedAdapter(SourceAdapter):
    feed_url: str = ""

    def __init__(self, name: Optional[str] = None, feed_url: Optional[str] = None,
                 origin: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        if name:
            self.name = name
        if feed_url:
            self.feed_url = feed_url
        if origin:
            self.origin = origin

    async def _request(self, session: aiohttp.ClientSession, query: str, days_back: int) -> Optional[bytes]:
        async with session.get(self.feed_url, headers=self.headers, timeout=self.timeout) as resp:
            if resp.status != 200:
                logger.warning(f"Failed to fetch RSS feed for {self.name}: HTTP {resp.status}")
                return None
            return await resp.read()

    def parse(self, payload: bytes, query: str, days_back: int) -> List[RawCandidate]:
        feed = feedparser.parse(payload)
        if getattr(feed, "bozo", False) and not feed.entries:
            raise ValueError(f"malformed feed: {getattr(feed, 'bozo_exception', None)}")

        candidates: List[RawCandidate] = []
        for entry in feed.entries:
            if len(candidates) >= self.max_items:
                break
            title = _strip_html(entry.get("title", ""))
            summary = _strip_html(entry.get("summary", "") or entry.get("description", ""))
            if not matches_query(f"{title} {summary}", query):
                continue
            candidate = self.build_candidate(
                query,
                title=title,
                url=entry.get("link"),
                excerpt=summary,
                raw_timestamp=entry.get("published") or entry.get("updated"),
                image_url=_entry_image(entry),
                author=entry.get("author"),
            )
            if candidate is None:
                continue
            if not self.within_window(candidate.raw_timestamp, days_back):
                continue
            candidates.append(candidate)
        return candidates


DEFAULT_FEEDS = [
    ("TechCrunch", "https://techcrunch.com/feed/", "https://techcrunch.com"),
    ("Ars Technica", "https://feeds.arstechnica.com/arstechnica/index", "https://arstechnica.com"),
    ("Engadget", "https://www.engadget.com/rss.xml", "https://www.engadget.com"),
    ("BBC", "https://feeds.bbci.co.uk/news/rss.xml", "https://www.bbc.co.uk"),
]
