"""
Adapter for the Brave web search API.

Unlike the HTML scrapers this adapter talks to an authenticated JSON API.
The API does not accept an exact day count, so ``days_back`` is mapped to
one of its freshness buckets, and the outlet name is derived from the
result's hostname.
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ...models.articles import RawCandidate
from .base import SourceAdapter

logger = logging.getLogger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"

# Checked in order; the first hostname fragment contained in the result's
# hostname wins.
HOSTNAME_SOURCES = [
    (("theguardian",), "The Guardian"),
    (("nytimes",), "New York Times"),
    (("theverge",), "The Verge"),
    (("wired",), "Wired"),
    (("techcrunch",), "TechCrunch"),
    (("reuters",), "Reuters"),
    (("bbc",), "BBC"),
    (("cnn",), "CNN"),
    (("washingtonpost",), "Washington Post"),
    (("bloomberg",), "Bloomberg"),
    (("wsj", "wallstreetjournal"), "Wall Street Journal"),
    (("engadget",), "Engadget"),
    (("arstechnica",), "Ars Technica"),
]


def freshness_for_days(days_back: int) -> str:
    """Map a day window onto the API's freshness buckets."""
    if days_back <= 1:
        return "pd"  # past day
    if days_back <= 7:
        return "pw"  # past week
    if days_back <= 30:
        return "pm"  # past month
    return "py"


def source_from_hostname(hostname: str) -> str:
    """Return the canonical outlet label for a hostname.

    Unknown hosts get the capitalised hostname with dots removed, which
    never matches the trust allow-list.
    """
    lower_hostname = hostname.lower()
    for fragments, label in HOSTNAME_SOURCES:
        if any(fragment in lower_hostname for fragment in fragments):
            return label
    if not hostname:
        return ""
    return hostname[0].upper() + hostname[1:].replace(".", "")


class BraveSearchAdapter(SourceAdapter):
    name = "Brave Search"
    origin = "https://search.brave.com"
    default_timeout = 15.0

    def __init__(self, api_key: Optional[str], result_count: int = 20, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.result_count = result_count

    async def _request(self, session: aiohttp.ClientSession, query: str, days_back: int) -> Optional[Dict[str, Any]]:
        if not self.api_key:
            logger.warning("Brave Search API key not configured; skipping source.")
            return None

        headers = {
            "X-Subscription-Token": self.api_key,
            "Accept": "application/json",
        }
        params = {
            "q": query,
            "count": str(self.result_count),
            "freshness": freshness_for_days(days_back),
            "text_decorations": "false",
            "search_lang": "en",
            "country": "US",
        }
        async with session.get(BRAVE_SEARCH_URL, headers={**self.headers, **headers},
                               params=params, timeout=self.timeout) as resp:
            if resp.status != 200:
                text = await resp.text()
                logger.warning(f"Brave Search responded with status {resp.status}: {text[:200]}")
                return None
            return await resp.json()

    def parse(self, payload: Dict[str, Any], query: str, days_back: int) -> List[RawCandidate]:
        results = (payload.get("web") or {}).get("results") or []
        if not results:
            logger.info(f"No web results in Brave Search response for '{query}'")
            return []

        candidates: List[RawCandidate] = []
        for result in results:
            url = result.get("url") or ""
            hostname = (result.get("meta_url") or {}).get("hostname") or url
            thumbnail = result.get("thumbnail") or {}
            candidate = self.build_candidate(
                query,
                title=result.get("title"),
                url=url,
                excerpt=result.get("description"),
                raw_timestamp=result.get("page_age"),
                image_url=thumbnail.get("src"),
                source_name=source_from_hostname(hostname),
            )
            if candidate is None:
                continue
            if not self.within_window(candidate.raw_timestamp, days_back):
                continue
            candidates.append(candidate)
        return candidates
