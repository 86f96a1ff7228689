"""
Scrapers for outlets whose search page is plain HTML.

Each outlet is described by a handful of CSS selectors; the extraction
logic itself is shared in ``HTMLSearchAdapter``.
"""

import re
from typing import List, Optional
from urllib.parse import quote

import aiohttp
from bs4 import BeautifulSoup, Tag

from ...models.articles import RawCandidate
from .base import SourceAdapter

BYLINE_PREFIX = re.compile(r"^By\s+", re.IGNORECASE)


class HTMLSearchAdapter(SourceAdapter):
    search_url: str = ""
    item_selector: str = "article"
    title_selector: str = "h2 a, h3 a"
    excerpt_selector: str = "p"
    time_selector: str = "time"
    author_selector: Optional[str] = None
    # Whether the visible text of the time element may be used when it has
    # no ``datetime`` attribute.
    time_text_fallback: bool = True

    async def _request(self, session: aiohttp.ClientSession, query: str, days_back: int) -> Optional[str]:
        url = self.search_url.format(query=quote(query, safe=""))
        return await self._get_text(session, url)

    def parse(self, payload: str, query: str, days_back: int) -> List[RawCandidate]:
        soup = BeautifulSoup(payload, "html.parser")
        candidates: List[RawCandidate] = []
        for item in soup.select(self.item_selector)[: self.max_items]:
            candidate = self.parse_item(item, query)
            if candidate is None:
                continue
            if not self.within_window(candidate.raw_timestamp, days_back):
                continue
            candidates.append(candidate)
        return candidates

    def parse_item(self, item: Tag, query: str) -> Optional[RawCandidate]:
        title_el = item.select_one(self.title_selector)
        if title_el is None:
            return None
        excerpt_el = item.select_one(self.excerpt_selector) if self.excerpt_selector else None
        image_el = item.find("img")
        return self.build_candidate(
            query,
            title=title_el.get_text(strip=True),
            url=title_el.get("href"),
            excerpt=excerpt_el.get_text(strip=True) if excerpt_el else "",
            raw_timestamp=self.extract_time(item),
            image_url=image_el.get("src") if image_el else None,
            author=self.extract_author(item),
        )

    def extract_time(self, item: Tag) -> str:
        time_el = item.select_one(self.time_selector)
        if time_el is None:
            return ""
        stamp = time_el.get("datetime")
        if stamp:
            return stamp
        if self.time_text_fallback:
            return time_el.get_text(strip=True)
        return ""

    def extract_author(self, item: Tag) -> Optional[str]:
        if not self.author_selector:
            return None
        author_el = item.select_one(self.author_selector)
        return author_el.get_text(strip=True) if author_el else None


class GuardianAdapter(HTMLSearchAdapter):
    name = "The Guardian"
    origin = "https://www.theguardian.com"
    search_url = "https://www.theguardian.com/search?q={query}"
    item_selector = ".fc-item"
    title_selector = ".fc-item__title a"
    excerpt_selector = ".fc-item__standfirst"
    time_text_fallback = False


class VergeAdapter(HTMLSearchAdapter):
    name = "The Verge"
    origin = "https://www.theverge.com"
    search_url = "https://www.theverge.com/search?q={query}"
    author_selector = '[data-testid="byline"] a'


class WiredAdapter(HTMLSearchAdapter):
    name = "Wired"
    origin = "https://www.wired.com"
    search_url = "https://www.wired.com/search/?q={query}"
    item_selector = "article, .SummaryItemWrapper"
    title_selector = "h2 a, h3 a, .SummaryItemHedLink"
    excerpt_selector = ".SummaryItemDek, p"
    time_selector = "time, .SummaryItemPublishDate"
    author_selector = ".SummaryItemByline a, .Byline a"


class NYTimesAdapter(HTMLSearchAdapter):
    name = "New York Times"
    origin = "https://www.nytimes.com"
    search_url = "https://www.nytimes.com/search?query={query}"
    item_selector = "article, .SearchResultsModule-result"
    title_selector = "h4 a, h3 a, .SearchResultsModule-heading a"
    excerpt_selector = "p, .SearchResultsModule-summary"
    time_selector = "time, .SearchResultsModule-date"
    author_selector = ".SearchResultsModule-byline, .byline"

    def extract_author(self, item: Tag) -> Optional[str]:
        author = super().extract_author(item)
        if not author:
            return None
        return BYLINE_PREFIX.sub("", author).strip() or None
