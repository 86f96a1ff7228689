"""
Pipeline records.

``RawCandidate`` is what a source adapter extracts from one search result;
``NormalizedArticle`` is the canonical, cross-source comparable record the
merge stage works on.  Both live only for the duration of one aggregation
call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class RawCandidate:
    title: str
    excerpt: str
    source_name: str
    raw_timestamp: str
    article_url: str
    topic: str
    image_url: Optional[str] = None
    author: Optional[str] = None


@dataclass
class NormalizedArticle:
    title: str
    excerpt: str
    content: str
    source: str
    published_at: datetime
    article_url: str
    topic: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AggregationRequest:
    """Validated input of one aggregation call.

    ``sources`` is an optional allow-list of outlet names; an empty tuple
    means every trusted source is acceptable.
    """

    query: str
    days_back: int = 7
    sources: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        query = (self.query or "").strip()
        if not query:
            raise ValueError("query must be a non-empty string")
        if isinstance(self.days_back, bool) or not isinstance(self.days_back, int) or self.days_back < 1:
            raise ValueError("days_back must be a positive integer")
        object.__setattr__(self, "query", query)
        object.__setattr__(self, "sources", tuple(s.strip() for s in self.sources if s and s.strip()))


@dataclass
class AggregationResult:
    articles: List[NormalizedArticle]
    request: AggregationRequest

    @property
    def count(self) -> int:
        return len(self.articles)
