from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from .articles import AggregationResult, NormalizedArticle


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ArticleResponse(CamelModel):
    title: str = Field(..., description="Article title")
    excerpt: str = Field(..., description="Short summary shown on the article card")
    content: str = Field(..., description="Article body, or the excerpt when the body is unavailable")
    source: str = Field(..., description="Trusted outlet name")
    author: Optional[str] = Field(None, description="Byline, when the source exposes one")
    published_at: datetime = Field(..., alias="publishedAt", description="Publication instant (UTC)")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="Thumbnail URL")
    article_url: str = Field(..., alias="articleUrl", description="Absolute article URL")
    tags: List[str] = Field(default_factory=list, description="Up to four topical labels")
    topic: str = Field(..., description="Query the article was found for")

    @classmethod
    def from_article(cls, article: NormalizedArticle) -> "ArticleResponse":
        return cls(
            title=article.title,
            excerpt=article.excerpt,
            content=article.content,
            source=article.source,
            author=article.author,
            published_at=article.published_at,
            image_url=article.image_url,
            article_url=article.article_url,
            tags=list(article.tags),
            topic=article.topic,
        )


class SearchResponse(CamelModel):
    articles: List[ArticleResponse] = Field(..., description="Articles, newest first")
    query: str = Field(..., description="Echoed search query")
    result_count: int = Field(..., alias="resultCount", description="Number of articles returned")
    sources: Optional[List[str]] = Field(None, description="Echoed source allow-list, if any")
    days_back: int = Field(..., alias="daysBack", description="Echoed time window in days")

    @classmethod
    def from_result(cls, result: AggregationResult) -> "SearchResponse":
        return cls(
            articles=[ArticleResponse.from_article(a) for a in result.articles],
            query=result.request.query,
            result_count=result.count,
            sources=list(result.request.sources) or None,
            days_back=result.request.days_back,
        )


class TopicResponse(CamelModel):
    articles: List[ArticleResponse]
    topic: str
    count: int


class TimelineSource(CamelModel):
    name: str
    url: str


class TimelineEntry(CamelModel):
    date: str = Field(..., description="Day (or period) the entry covers")
    main_title: str = Field(..., alias="mainTitle", description="Dominant story of the period")
    description: str = Field(..., description="Summary of the period's key points")
    cover_image: Optional[str] = Field(None, alias="coverImage")
    sources: List[TimelineSource] = Field(default_factory=list)


class TimelineSummary(CamelModel):
    entries: List[TimelineEntry] = Field(default_factory=list)


class TimelineResponse(TimelineSummary):
    query: str
    result_count: int = Field(..., alias="resultCount")
    sources: Optional[List[str]] = None
    days_back: int = Field(..., alias="daysBack")


class SourcesResponse(BaseModel):
    adapters: List[str] = Field(..., description="Registered source adapters, in registration order")
    trusted: List[str] = Field(..., description="Outlet names allowed to appear in results")


class PopularSearch(CamelModel):
    id: int
    query: str
    timestamp: datetime
    result_count: int = Field(..., alias="resultCount")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Overall API status ('ok' or 'unhealthy')")
    message: str = Field(..., description="Descriptive health message")
    timestamp: datetime = Field(..., description="Timestamp of health check (UTC)")
    llm_available: bool = Field(..., description="True if timeline synthesis can use the LLM")
    search_api_available: bool = Field(..., description="True if the search API adapter has a key")
    sources: List[str] = Field(default_factory=list, description="Registered source adapters")


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error message returned from the server")
