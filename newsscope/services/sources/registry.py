import logging
from typing import List

from ...core.config import Settings
from .base import SourceAdapter
from .brave import BraveSearchAdapter
from .feeds import DEFAULT_FEEDS, FeedAdapter
from .html import GuardianAdapter, NYTimesAdapter, VergeAdapter, WiredAdapter

logger = logging.getLogger(__name__)


def build_default_adapters(settings: Settings) -> List[SourceAdapter]:
    """
    Build the registered source adapters in registration order.

    Registration order only matters for tie-breaking: articles with equal
    publication times keep the order of the adapter that produced them.
    """
    common = {
        "timeout": settings.SOURCE_TIMEOUT_SECONDS,
        "user_agent": settings.USER_AGENT,
        "max_items": settings.MAX_ITEMS_PER_SOURCE,
    }
    adapters: List[SourceAdapter] = [
        GuardianAdapter(**common),
        VergeAdapter(**common),
        WiredAdapter(**common),
        NYTimesAdapter(**common),
        BraveSearchAdapter(
            api_key=settings.BRAVE_SEARCH_API_KEY,
            timeout=settings.API_TIMEOUT_SECONDS,
            user_agent=settings.USER_AGENT,
            max_items=settings.MAX_ITEMS_PER_SOURCE,
        ),
    ]
    for name, feed_url, origin in DEFAULT_FEEDS:
        adapters.append(FeedAdapter(name=name, feed_url=feed_url, origin=origin, **common))

    if settings.ENABLED_SOURCES:
        enabled = {s.lower() for s in settings.ENABLED_SOURCES}
        adapters = [a for a in adapters if a.name.lower() in enabled]
        logger.info(f"Source adapters restricted to: {[a.name for a in adapters]}")
    return adapters
