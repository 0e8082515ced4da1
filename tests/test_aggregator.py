"""Tests for newsapp.aggregator module."""

import asyncio
from unittest.mock import patch

import httpx
import pytest

from newsapp.aggregator import Aggregator, gather_settled, sort_newest_first
from newsapp.exceptions import UnknownCategoryError

TECH = "https://feeds.test/tech.xml"
TECH_DOWN = "https://feeds.test/tech-down.xml"
SPORT = "https://feeds.test/sport.xml"

FEEDS = {
    "tech": (TECH, TECH_DOWN),
    "sport": (SPORT,),
}


@pytest.fixture
def routes(rss_feed, at):
    return {
        TECH: rss_feed(
            ("Chip shortage eases", "https://www.heise.de/1", at(2024, 1, 1, 9)),
            ("Shared Headline", "https://www.heise.de/2", at(2024, 1, 1, 10)),
        ),
        TECH_DOWN: None,
        SPORT: rss_feed(
            ("Derby ends 2:2", "https://www.kicker.de/1", at(2024, 1, 1, 11)),
            ("  shared headline ", "https://www.kicker.de/2", at(2024, 1, 1, 12)),
        ),
    }


class TestFetchAll:
    def test_merges_sorts_and_dedups(self, routes, feed_transport, at) -> None:
        aggregator = Aggregator(FEEDS, transport=feed_transport(routes))
        articles = asyncio.run(aggregator.fetch_all())

        assert [a.title for a in articles] == [
            "shared headline",
            "Derby ends 2:2",
            "Chip shortage eases",
        ]
        # the newer duplicate (sport) survives, the older tech one is dropped
        assert articles[0].category == "sport"
        assert articles[0].link == "https://www.kicker.de/2"

    def test_published_at_non_increasing(self, routes, feed_transport) -> None:
        articles = asyncio.run(Aggregator(FEEDS, transport=feed_transport(routes)).fetch_all())
        stamps = [a.published_at for a in articles]
        assert stamps == sorted(stamps, reverse=True)

    def test_all_failures_yield_empty(self, feed_transport) -> None:
        routes = {TECH: None, TECH_DOWN: None, SPORT: None}
        articles = asyncio.run(Aggregator(FEEDS, transport=feed_transport(routes)).fetch_all())
        assert articles == []

    def test_fetches_run_concurrently(self, rss_feed, at) -> None:
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1
            body = rss_feed((str(request.url), str(request.url), at(2024, 1, 1)))
            return httpx.Response(200, content=body)

        aggregator = Aggregator(FEEDS, transport=httpx.MockTransport(handler))
        articles = asyncio.run(aggregator.fetch_all())
        assert len(articles) == 3
        assert peak == 3

    def test_sends_user_agent(self, rss_feed, at) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, content=rss_feed())

        aggregator = Aggregator({"tech": (TECH,)}, user_agent="NewsApp/1.0", transport=httpx.MockTransport(handler))
        asyncio.run(aggregator.fetch_all())
        assert seen == ["NewsApp/1.0"]

    def test_raising_fetch_does_not_abort_others(self, make_article, at) -> None:
        good = make_article("Good", at(2024, 1, 1))

        async def fake_fetch(client, url, category, *, timeout):
            if url == TECH:
                raise RuntimeError("escaped the fetcher")
            return [good]

        with patch("newsapp.aggregator.fetch_feed", side_effect=fake_fetch):
            articles = asyncio.run(Aggregator(FEEDS).fetch_all())
        assert articles == [good]


class TestFetchCategory:
    def test_only_that_category(self, routes, feed_transport) -> None:
        aggregator = Aggregator(FEEDS, transport=feed_transport(routes))
        articles = asyncio.run(aggregator.fetch_category("tech"))
        assert {a.category for a in articles} == {"tech"}
        assert [a.title for a in articles] == ["Shared Headline", "Chip shortage eases"]

    def test_does_not_deduplicate(self, feed_transport, rss_feed, at) -> None:
        routes = {
            TECH: rss_feed(("Same", "https://a.example/1", at(2024, 1, 1, 10))),
            TECH_DOWN: rss_feed(("same", "https://b.example/1", at(2024, 1, 1, 9))),
        }
        aggregator = Aggregator(FEEDS, transport=feed_transport(routes))
        articles = asyncio.run(aggregator.fetch_category("tech"))
        assert [a.title for a in articles] == ["Same", "same"]

    def test_unknown_category_raises(self) -> None:
        with pytest.raises(UnknownCategoryError):
            asyncio.run(Aggregator(FEEDS).fetch_category("astrologie"))

    def test_categories(self) -> None:
        assert Aggregator(FEEDS).categories == ["tech", "sport"]


class TestHelpers:
    def test_sort_is_stable_for_equal_timestamps(self, make_article, at) -> None:
        a = make_article("A", at(2024, 1, 1))
        b = make_article("B", at(2024, 1, 1))
        c = make_article("C", at(2024, 1, 2))
        assert sort_newest_first([a, b, c]) == [c, a, b]

    def test_gather_settled_drops_exceptions(self, make_article, at) -> None:
        article = make_article("A", at(2024, 1, 1))

        async def ok():
            return [article]

        async def boom():
            raise ValueError("nope")

        assert asyncio.run(gather_settled([ok(), boom(), ok()])) == [article, article]
