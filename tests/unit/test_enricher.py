"""
Unit Tests for Item Enricher
============================

Tests for the per-item enrichment pipeline: ordering, caching,
failure isolation and bounded concurrency.
"""

import asyncio
import threading

import pytest

from fullfeed.enrichment.enricher import EnrichmentOutcome, ItemEnricher
from fullfeed.enrichment.link_resolver import LinkResolver, SelectorConfig
from fullfeed.ingestion.feed_source import FeedItem
from fullfeed.storage.content_cache import ContentCache
from fullfeed.utils.exceptions import ErrorCode, PageFetchError
from tests.fakes import FakeFetcher, StaticExtractor


def make_items(count: int):
    return [
        FeedItem(
            link=f"https://example.com/article{i}",
            title=f"Article {i}",
            summary=f"Summary {i}",
        )
        for i in range(count)
    ]


def make_enricher(fetcher, extractor, cache, max_concurrent=5):
    return ItemEnricher(
        cache=cache,
        resolver=LinkResolver(fetcher),
        extractor=extractor,
        fetcher=fetcher,
        max_concurrent=max_concurrent,
    )


class ExplodingExtractor:
    """Extractor that fails unexpectedly for one URL."""

    def __init__(self, bad_url: str):
        self.bad_url = bad_url

    def extract(self, html, base_url):
        if base_url == self.bad_url:
            raise RuntimeError("parser crashed")
        return f"<p>content of {base_url}</p>"


class SlowFetcher(FakeFetcher):
    """FakeFetcher that records how many article fetches overlap."""

    def __init__(self, responses):
        super().__init__(responses)
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_text(self, url):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await super().fetch_text(url)
        finally:
            self.in_flight -= 1


class TestEnrichAll:
    """Whole-feed enrichment."""

    @pytest.mark.asyncio
    async def test_preserves_item_order(self, content_cache):
        items = make_items(8)
        fetcher = FakeFetcher({item.link: "<html>page</html>" for item in items})
        extractor = StaticExtractor({item.link: f"<p>{item.title}</p>" for item in items})

        result = await make_enricher(fetcher, extractor, content_cache, max_concurrent=3).enrich_all(items)

        assert [item.link for item in result] == [item.link for item in items]
        assert [item.content for item in result] == [f"<p>Article {i}</p>" for i in range(8)]

    @pytest.mark.asyncio
    async def test_empty_feed(self, content_cache):
        enricher = make_enricher(FakeFetcher({}), StaticExtractor({}), content_cache)

        assert await enricher.enrich_all([]) == []
        assert enricher.last_summary.total == 0

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, content_cache):
        items = make_items(3)
        fetcher = FakeFetcher({
            items[0].link: "<html>ok</html>",
            items[1].link: PageFetchError(
                "HTTP 500", url=items[1].link, status=500,
                error_code=ErrorCode.PAGE_HTTP_ERROR,
            ),
            items[2].link: "<html>ok</html>",
        })
        extractor = StaticExtractor({
            items[0].link: "<p>zero</p>",
            items[2].link: "<p>two</p>",
        })

        enricher = make_enricher(fetcher, extractor, content_cache)
        result = await enricher.enrich_all(items)

        assert result[0].content == "<p>zero</p>"
        assert result[1].content is None
        assert result[1].summary == "Summary 1"
        assert result[2].content == "<p>two</p>"
        assert enricher.last_summary.enriched == 2
        assert enricher.last_summary.fetch_failures == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_is_isolated(self, content_cache):
        items = make_items(3)
        fetcher = FakeFetcher({item.link: "<html>page</html>" for item in items})
        enricher = make_enricher(fetcher, ExplodingExtractor(items[1].link), content_cache)

        result = await enricher.enrich_all(items)

        assert result[0].content == f"<p>content of {items[0].link}</p>"
        assert result[1].content is None
        assert result[2].content == f"<p>content of {items[2].link}</p>"
        assert enricher.last_summary.errors == 1

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, content_cache):
        items = make_items(10)
        fetcher = SlowFetcher({item.link: "<html>page</html>" for item in items})
        extractor = StaticExtractor({item.link: "<p>x</p>" for item in items})

        await make_enricher(fetcher, extractor, content_cache, max_concurrent=2).enrich_all(items)

        assert 1 <= fetcher.max_in_flight <= 2


class TestCaching:
    """Interaction with the content cache."""

    @pytest.mark.asyncio
    async def test_second_pass_served_from_cache(self, content_cache):
        items = make_items(2)
        fetcher = FakeFetcher({item.link: "<html>page</html>" for item in items})
        extractor = StaticExtractor({item.link: f"<p>{item.title}</p>" for item in items})

        first = await make_enricher(fetcher, extractor, content_cache).enrich_all(make_items(2))

        # Origin now gone: everything must come from the cache
        offline = FakeFetcher({})
        enricher = make_enricher(offline, StaticExtractor({}), content_cache)
        second = await enricher.enrich_all(make_items(2))

        assert [i.content for i in second] == [i.content for i in first]
        assert offline.requests == []
        assert enricher.last_summary.cache_hits == 2

    @pytest.mark.asyncio
    async def test_extraction_failure_not_cached(self, content_cache):
        item = make_items(1)[0]
        fetcher = FakeFetcher({item.link: "<html>nothing useful</html>"})
        enricher = make_enricher(fetcher, StaticExtractor({}), content_cache)

        result = await enricher.enrich(item)

        assert result.content is None
        assert not content_cache.contains(item.link)
        assert content_cache.stats()["entries"] == 0

    @pytest.mark.asyncio
    async def test_cache_keyed_by_resolved_url(self, content_cache):
        item = FeedItem(link="https://news.example.com/item/1", title="Index")
        target = "https://blog.example.com/real-article"
        fetcher = FakeFetcher({
            item.link: f'<a class="story" href="{target}">The story</a>',
            target: "<html>article</html>",
        })
        extractor = StaticExtractor({target: "<p>real article</p>"})

        await make_enricher(fetcher, extractor, content_cache).enrich(
            item, SelectorConfig(selector="a.story")
        )

        assert item.content == "<p>real article</p>"
        assert content_cache.get(target) == "<p>real article</p>"
        assert not content_cache.contains(item.link)

    @pytest.mark.asyncio
    async def test_unresolved_item_keeps_original_content(self, content_cache):
        item = FeedItem(
            link="https://news.example.com/item/2",
            summary="teaser",
            content="<p>feed body</p>",
        )
        fetcher = FakeFetcher({item.link: "<p>no links here</p>"})
        enricher = make_enricher(fetcher, StaticExtractor({}), content_cache)

        await enricher.enrich_all([item], SelectorConfig(selector="a.story"))

        assert item.content == "<p>feed body</p>"
        assert enricher.last_summary.unresolved == 1

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_enriches(self, tmp_path):
        class ReadOnlyCache(ContentCache):
            def put(self, url, content):
                return False

        cache = ReadOnlyCache(str(tmp_path / "cache"))
        item = make_items(1)[0]
        fetcher = FakeFetcher({item.link: "<html>page</html>"})
        enricher = make_enricher(fetcher, StaticExtractor({item.link: "<p>body</p>"}), cache)

        await enricher.enrich_all([item])

        assert item.content == "<p>body</p>"
        assert enricher.last_summary.enriched == 1

    @pytest.mark.asyncio
    async def test_cache_io_runs_off_event_loop(self, tmp_path):
        class ThreadRecordingCache(ContentCache):
            def __init__(self, directory):
                super().__init__(directory)
                self.threads = []

            def get(self, url):
                self.threads.append(threading.get_ident())
                return super().get(url)

            def put(self, url, content):
                self.threads.append(threading.get_ident())
                return super().put(url, content)

        cache = ThreadRecordingCache(str(tmp_path / "cache"))
        item = make_items(1)[0]
        fetcher = FakeFetcher({item.link: "<html>page</html>"})
        enricher = make_enricher(fetcher, StaticExtractor({item.link: "<p>body</p>"}), cache)

        await enricher.enrich_all([item])

        assert item.content == "<p>body</p>"
        assert len(cache.threads) == 2
        assert threading.get_ident() not in cache.threads


class TestOutcomes:
    """Outcome bookkeeping."""

    def test_with_content_counts_cache_hits(self):
        from fullfeed.enrichment.enricher import EnrichmentSummary

        summary = EnrichmentSummary()
        for outcome in (
            EnrichmentOutcome.ENRICHED,
            EnrichmentOutcome.CACHE_HIT,
            EnrichmentOutcome.UNRESOLVED,
        ):
            summary.record(outcome)

        assert summary.total == 3
        assert summary.with_content == 2
