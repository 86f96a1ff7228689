"""
Timeline synthesis through an OpenAI-compatible chat API (Groq).

The aggregation pipeline hands over its normalized articles; the model
groups them into a day-by-day timeline.  The model's output is only
checked against the declared ``TimelineSummary`` schema.  Without a key,
or when the call fails, a plain grouping by publication day is returned
instead.
"""
import asyncio
import json
import logging
import time
from collections import OrderedDict
from typing import List, Dict, Any, Optional, Sequence

import aiohttp
import json_repair
from pydantic import ValidationError

from ..core.config import Settings, settings
from ..core.llm_config import LLMConfig, LLMManager
from ..models.articles import NormalizedArticle
from ..models.schemas import TimelineEntry, TimelineSource, TimelineSummary

logger = logging.getLogger(__name__)

TIMELINE_SYSTEM_PROMPT = (
    "You summarize news articles into a concise timeline, breaking down the timeline as granularly as "
    "possible, with a minimum breakdown by individual days. Always group articles by their `publishedAt` "
    "date, ensuring that news reported on different days is represented in separate timeline entries. "
    "Only group by week if there are no articles for several consecutive days. For each period, identify "
    "the dominant topic or most frequently mentioned event and use it as `mainTitle`. Provide a short "
    "description summarizing key points and briefly mention minor topics. Quote key statements verbatim "
    "with attribution using the article source. Choose a representative `coverImage` from one of the "
    "articles if available. Include a list of sources with their URLs. Respond only with JSON shaped as:\n"
    "{\"entries\": [{\"date\": ..., \"mainTitle\": ..., \"description\": ..., \"coverImage\": ..., "
    "\"sources\": [{\"name\": ..., \"url\": ...}]}]}"
)


class LLMError(Exception):
    pass


def timeline_payload(articles: Sequence[NormalizedArticle]) -> List[Dict[str, Any]]:
    """The subset of article fields the synthesis model gets to see."""
    return [
        {
            "title": a.title,
            "excerpt": a.excerpt,
            "source": a.source,
            "publishedAt": a.published_at.isoformat(),
            "imageUrl": a.image_url,
            "articleUrl": a.article_url,
        }
        for a in articles
    ]


def fallback_timeline(articles: Sequence[NormalizedArticle]) -> TimelineSummary:
    """Group articles by UTC publication day, newest day first."""
    days: "OrderedDict[str, List[NormalizedArticle]]" = OrderedDict()
    for article in sorted(articles, key=lambda a: a.published_at, reverse=True):
        days.setdefault(article.published_at.date().isoformat(), []).append(article)

    entries = []
    for day, day_articles in days.items():
        lead = day_articles[0]
        others = [a.title for a in day_articles[1:4]]
        description = lead.excerpt
        if others:
            description += " Also reported: " + "; ".join(others) + "."
        entries.append(TimelineEntry(
            date=day,
            main_title=lead.title,
            description=description,
            cover_image=next((a.image_url for a in day_articles if a.image_url), None),
            sources=[TimelineSource(name=a.source, url=a.article_url) for a in day_articles],
        ))
    return TimelineSummary(entries=entries)


class LLMService:
    def __init__(self, config: Settings):
        try:
            self.config: Optional[LLMConfig] = LLMManager.get_config(config)
        except ValueError as e:
            logger.warning(f"LLM config load failed: {e}; running in disabled mode.")
            self.config = None

        self.session: Optional[aiohttp.ClientSession] = None
        self.models_ranked: List[str] = []

        if self.config:
            self.models_ranked = LLMManager.ranked_models(self.config.model)
            logger.info(f"LLM initialized with model fallback order: {self.models_ranked}")
        else:
            logger.info("LLM initialized in disabled mode.")

    @property
    def available(self) -> bool:
        return bool(self.config and self.config.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def _make_request(self, messages: List[Dict[str, str]], **kwargs) -> Dict[str, Any]:
        if not self.available:
            raise LLMError("LLM is not configured.")

        session = await self._get_session()
        last_error: Optional[Exception] = None

        for model_name in self.models_ranked or [self.config.model]:
            if LLMManager.is_cooling_down(model_name, time.time()):
                continue

            headers = {
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json"
            }
            payload = {
                "model": model_name,
                "messages": messages,
                "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
                "temperature": kwargs.get("temperature", self.config.temperature),
            }
            if kwargs.get("json_mode", False):
                payload["response_format"] = {"type": "json_object"}

            url = f"{self.config.base_url}/chat/completions"

            try:
                async with session.post(url, headers=headers, json=payload,
                                        timeout=aiohttp.ClientTimeout(total=60)) as response:
                    if response.status == 200:
                        return await response.json()
                    error_text = await response.text()
                    logger.warning(f"{model_name} failed [{response.status}]: {error_text}")
                    if response.status == 429 or "quota" in error_text.lower():
                        LLMManager.mark_exhausted(model_name, time.time())
                    last_error = LLMError(f"LLM error {response.status}: {error_text}")
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"{model_name} request failed: {e}")
                last_error = e

        logger.error(f"All LLM models failed: {last_error}")
        raise last_error or LLMError("All LLM requests failed.")

    @staticmethod
    def parse_timeline(content: str) -> TimelineSummary:
        if not isinstance(content, str):
            raise LLMError(f"Expected text completion, got {type(content).__name__}")
        data = json_repair.loads(content)
        if isinstance(data, list):
            data = {"entries": data}
        return TimelineSummary.model_validate(data)

    async def summarize_timeline(self, articles: Sequence[NormalizedArticle]) -> TimelineSummary:
        if not articles:
            return TimelineSummary(entries=[])
        if not self.available:
            logger.warning("No API key: falling back to day-grouped timeline.")
            return fallback_timeline(articles)

        messages = [
            {"role": "system", "content": TIMELINE_SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(timeline_payload(articles))},
        ]

        try:
            response = await self._make_request(messages, json_mode=True, max_tokens=4000)
            content = response["choices"][0]["message"]["content"]
            return self.parse_timeline(content)
        except (LLMError, aiohttp.ClientError, asyncio.TimeoutError, KeyError, IndexError, TypeError,
                ValidationError) as e:
            logger.error(f"LLM failed to summarize timeline: {e}")
            return fallback_timeline(articles)


# Global instance
llm_service = LLMService(settings)
