"""
Tests for the aggregation coordinator.

Tests cover:
- Concurrent fan-out and the settle-all barrier
- Adapter isolation under failures and timeouts
- Normalization of raw candidates
- End-to-end scenarios through ``aggregate``
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from newsscope.core.config import Settings
from newsscope.models.articles import AggregationRequest
from newsscope.services.news_aggregator import (
    AggregationError,
    NewsAggregator,
    gather_settled,
)

from conftest import BrokenAdapter, FakeAdapter, FakeSession, hours_ago, make_candidate


def _aggregator(*adapters) -> NewsAggregator:
    aggregator = NewsAggregator(Settings(), adapters=list(adapters))
    aggregator.session = FakeSession()
    return aggregator


def _iso(hours: float) -> str:
    return hours_ago(hours).isoformat()


# =============================================================================
# FAN-OUT HELPER
# =============================================================================

class TestGatherSettled:

    @pytest.mark.asyncio
    async def test_maps_outcomes_in_order(self):
        async def ok(value):
            return value

        async def boom():
            raise RuntimeError("boom")

        settled = await gather_settled([ok(1), boom(), ok(3)])

        assert [s.ok for s in settled] == [True, False, True]
        assert settled[0].value == 1
        assert settled[2].value == 3
        assert isinstance(settled[1].error, RuntimeError)

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await gather_settled([]) == []


# =============================================================================
# COLLECT
# =============================================================================

class TestCollect:

    @pytest.mark.asyncio
    async def test_concatenates_in_registration_order(self):
        a = FakeAdapter("The Guardian", [make_candidate(title="g1"), make_candidate(title="g2")])
        b = FakeAdapter("Wired", [make_candidate(title="w1", source_name="Wired")])
        aggregator = _aggregator(a, b)

        candidates = await aggregator.collect(AggregationRequest(query="AI"))

        assert [c.title for c in candidates] == ["g1", "g2", "w1"]
        assert a.calls == [("AI", 7)]
        assert b.calls == [("AI", 7)]

    @pytest.mark.asyncio
    async def test_adapters_run_concurrently(self):
        started = 0
        all_started = asyncio.Event()

        async def barrier():
            nonlocal started
            started += 1
            if started == 3:
                all_started.set()
            await all_started.wait()

        adapters = [FakeAdapter(f"S{i}", [make_candidate(title=f"t{i}")], hook=barrier) for i in range(3)]
        aggregator = _aggregator(*adapters)

        # Sequential execution would never release the barrier.
        candidates = await asyncio.wait_for(aggregator.collect(AggregationRequest(query="AI")), timeout=2)
        assert len(candidates) == 3

    @pytest.mark.asyncio
    async def test_failing_adapter_is_isolated(self):
        good = FakeAdapter("The Guardian", [make_candidate(title="g1")])
        broken = BrokenAdapter("Wired")
        other = FakeAdapter("The Verge", [make_candidate(title="v1", source_name="The Verge")])
        aggregator = _aggregator(good, broken, other)

        candidates = await aggregator.collect(AggregationRequest(query="AI"))

        assert [c.title for c in candidates] == ["g1", "v1"]

    @pytest.mark.asyncio
    async def test_timeout_inside_adapter_becomes_empty_result(self):
        slow = FakeAdapter("Wired", [make_candidate(title="never")], error=asyncio.TimeoutError())
        good = FakeAdapter("The Guardian", [make_candidate(title="g1")])
        aggregator = _aggregator(slow, good)

        candidates = await aggregator.collect(AggregationRequest(query="AI"))

        assert [c.title for c in candidates] == ["g1"]

    @pytest.mark.asyncio
    async def test_all_adapters_broken_raises(self):
        aggregator = _aggregator(BrokenAdapter("A"), BrokenAdapter("B"))
        with pytest.raises(AggregationError):
            await aggregator.collect(AggregationRequest(query="AI"))

    @pytest.mark.asyncio
    async def test_all_adapters_empty_is_not_an_error(self):
        aggregator = _aggregator(FakeAdapter("A"), FakeAdapter("B", error=asyncio.TimeoutError()))
        assert await aggregator.collect(AggregationRequest(query="AI")) == []

    @pytest.mark.asyncio
    async def test_no_adapters(self):
        assert await _aggregator().collect(AggregationRequest(query="AI")) == []

    @pytest.mark.asyncio
    async def test_cancellation_cancels_in_flight_adapters(self):
        hanging = FakeAdapter("Wired", delay=60)
        quick = FakeAdapter("The Guardian", [make_candidate(title="g1")])
        aggregator = _aggregator(quick, hanging)

        task = asyncio.ensure_future(aggregator.aggregate(AggregationRequest(query="AI")))
        for _ in range(5):
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert hanging.cancelled is True


# =============================================================================
# NORMALIZE
# =============================================================================

class TestNormalize:

    def test_maps_fields_and_tags(self, now):
        candidate = make_candidate(
            title="AI startup expands",
            excerpt="Funding for climate technology",
            raw_timestamp="2026-10-18T10:00:00Z",
            url="https://www.wired.com/story/ai",
            image_url="https://media.wired.com/a.jpg",
            author="Jane Doe",
            source_name="Wired",
        )
        article = NewsAggregator.normalize(candidate, now=now)

        assert article.source == "Wired"
        assert article.published_at == datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)
        assert article.content == "Funding for climate technology"
        assert article.excerpt == "Funding for climate technology"
        assert article.author == "Jane Doe"
        assert article.image_url == "https://media.wired.com/a.jpg"
        assert article.tags == ["AI", "Technology", "Climate", "Startup"]
        assert article.topic == "AI Development"

    def test_missing_excerpt_falls_back_to_title(self, now):
        title = "x" * 200
        article = NewsAggregator.normalize(make_candidate(title=title, excerpt=""), now=now)
        assert article.excerpt == "x" * 150 + "..."
        assert article.content == title

    def test_unparseable_timestamp_becomes_now(self, now):
        article = NewsAggregator.normalize(make_candidate(raw_timestamp="malformed-garbage"), now=now)
        assert article.published_at == now

    def test_out_of_range_timestamp_becomes_now(self, now):
        article = NewsAggregator.normalize(make_candidate(raw_timestamp="1000000 days ago"), now=now)
        assert article.published_at == now


# =============================================================================
# SCENARIOS
# =============================================================================

class TestAggregateScenarios:

    @pytest.mark.asyncio
    async def test_three_sources_succeed_one_times_out(self):
        guardian = FakeAdapter("The Guardian", [
            make_candidate(title="AI Development at the Guardian", raw_timestamp=_iso(5)),
            make_candidate(title="Old AI Development story", raw_timestamp=_iso(24 * 10)),
        ])
        verge = FakeAdapter("The Verge", [
            make_candidate(title="Verge on AI Development", source_name="The Verge", raw_timestamp=_iso(1)),
        ])
        wired = FakeAdapter("Wired", error=asyncio.TimeoutError())
        brave = FakeAdapter("Brave Search", [
            make_candidate(title="AI Development roundup", source_name="Reuters", raw_timestamp=_iso(3)),
            make_candidate(title="AI Development blog", source_name="Someblogcom", raw_timestamp=_iso(2)),
        ])
        aggregator = _aggregator(guardian, verge, wired, brave)

        result = await aggregator.aggregate(AggregationRequest(query="AI Development", days_back=7))

        assert [a.title for a in result.articles] == [
            "Verge on AI Development",
            "AI Development roundup",
            "AI Development at the Guardian",
        ]
        assert result.count == 3
        assert result.request.days_back == 7
        assert all(a.source != "Wired" for a in result.articles)

    @pytest.mark.asyncio
    async def test_broken_adapter_does_not_change_other_results(self):
        candidates = [
            make_candidate(title="one", raw_timestamp=_iso(1)),
            make_candidate(title="two", raw_timestamp=_iso(2)),
        ]
        baseline = await _aggregator(FakeAdapter("The Guardian", candidates)).aggregate(
            AggregationRequest(query="AI Development"))
        faulty = await _aggregator(FakeAdapter("The Guardian", candidates), BrokenAdapter("Wired")).aggregate(
            AggregationRequest(query="AI Development"))

        assert [a.title for a in faulty.articles] == [a.title for a in baseline.articles] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_no_matches_anywhere(self):
        aggregator = _aggregator(FakeAdapter("The Guardian"), FakeAdapter("Wired"))
        result = await aggregator.aggregate(AggregationRequest(query="zzzz-nothing"))
        assert result.articles == []
        assert result.count == 0

    @pytest.mark.asyncio
    async def test_malformed_timestamp_passes_recency(self):
        aggregator = _aggregator(FakeAdapter("The Guardian", [
            make_candidate(title="undated", raw_timestamp="malformed-garbage"),
        ]))
        before = datetime.now(timezone.utc)

        result = await aggregator.aggregate(AggregationRequest(query="AI Development", days_back=1))

        assert result.count == 1
        published = result.articles[0].published_at
        assert before <= published <= datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_source_filter_applies(self):
        aggregator = _aggregator(
            FakeAdapter("The Guardian", [make_candidate(title="g", raw_timestamp=_iso(1))]),
            FakeAdapter("Wired", [make_candidate(title="w", source_name="Wired", raw_timestamp=_iso(1))]),
        )
        result = await aggregator.aggregate(AggregationRequest(query="AI Development", sources=("Wired",)))
        assert [a.source for a in result.articles] == ["Wired"]

    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_registration_order(self):
        stamp = _iso(4)
        aggregator = _aggregator(
            FakeAdapter("The Guardian", [make_candidate(title="first", raw_timestamp=stamp)]),
            FakeAdapter("Wired", [make_candidate(title="second", source_name="Wired", raw_timestamp=stamp)]),
            FakeAdapter("The Verge", [make_candidate(title="third", source_name="The Verge", raw_timestamp=stamp)]),
        )
        result = await aggregator.aggregate(AggregationRequest(query="AI Development"))
        assert [a.title for a in result.articles] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_topic_listing_paginates_after_sorting(self):
        aggregator = _aggregator(FakeAdapter("The Guardian", [
            make_candidate(title=f"story {h}", raw_timestamp=_iso(h)) for h in (3, 1, 2, 4)
        ]))
        result = await aggregator.aggregate_topic("AI Development", limit=2, offset=1)
        assert [a.title for a in result.articles] == ["story 2", "story 3"]
        assert result.count == 2


class TestRequestValidation:

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query_rejected(self, query):
        with pytest.raises(ValueError):
            AggregationRequest(query=query)

    @pytest.mark.parametrize("days_back", [0, -3])
    def test_non_positive_days_rejected(self, days_back):
        with pytest.raises(ValueError):
            AggregationRequest(query="AI", days_back=days_back)

    def test_query_and_sources_are_cleaned(self):
        request = AggregationRequest(query="  AI  ", sources=(" Wired ", "", "The Verge"))
        assert request.query == "AI"
        assert request.sources == ("Wired", "The Verge")


@pytest.mark.asyncio
async def test_close_closes_session():
    aggregator = _aggregator()
    session = aggregator.session
    await aggregator.close()
    assert session.closed is True


def test_default_registration_order():
    aggregator = NewsAggregator(Settings(BRAVE_SEARCH_API_KEY=None, ENABLED_SOURCES=[]))
    assert aggregator.source_names[:5] == ["The Guardian", "The Verge", "Wired", "New York Times", "Brave Search"]
    assert "TechCrunch" in aggregator.source_names


def test_enabled_sources_narrow_registration():
    aggregator = NewsAggregator(Settings(ENABLED_SOURCES=["wired", "BBC"]))
    assert aggregator.source_names == ["Wired", "BBC"]
