"""
Feed Proxy Pipeline
==================

Serves one proxied feed: fetch the source feed, enrich every item, and
serialize the result as RSS 2.0.
"""

from typing import Callable, Optional

from ..config.settings import get_settings
from ..delivery.rss_writer import RssWriter
from ..enrichment.enricher import ItemEnricher
from ..enrichment.extractor import ArticleExtractor
from ..enrichment.link_resolver import LinkResolver, SelectorConfig
from ..ingestion.feed_source import FeedSource
from ..ingestion.page_fetcher import PageFetcher
from ..storage.content_cache import ContentCache
from ..storage.response_cache import ResponseCache
from ..utils.logging import PerformanceLogger, get_logger_for_component


class FeedProxy:
    """Request-level orchestrator shared by the HTTP handler and the CLI.

    Only ``SourceFeedError`` (and ``ValidationError`` for bad input) escapes
    ``render``; item-level failures are absorbed by the enricher.
    """

    def __init__(
        self,
        content_cache: Optional[ContentCache] = None,
        extractor: Optional[ArticleExtractor] = None,
        writer: Optional[RssWriter] = None,
        feed_source: Optional[FeedSource] = None,
        response_cache: Optional[ResponseCache] = None,
        fetcher_factory: Optional[Callable[[], PageFetcher]] = None,
    ):
        self.settings = get_settings()
        self.logger = get_logger_for_component("pipeline")

        self.content_cache = content_cache or ContentCache(self.settings.cache.directory)
        self.extractor = extractor or ArticleExtractor()
        self.writer = writer or RssWriter()
        self.feed_source = feed_source or FeedSource()
        # An empty ResponseCache is falsy
        if response_cache is None:
            response_cache = ResponseCache(
                enabled=self.settings.cache.response_cache_enabled,
                ttl_seconds=self.settings.cache.response_cache_ttl_seconds,
            )
        self.response_cache = response_cache
        self.fetcher_factory = fetcher_factory or PageFetcher

    async def render(
        self, feed_url: str, selector_config: Optional[SelectorConfig] = None
    ) -> str:
        """Produce the full-content RSS document for ``feed_url``.

        Raises:
            SourceFeedError: If the source feed cannot be fetched or parsed
        """
        cache_key = (
            feed_url,
            selector_config.selector if selector_config else None,
            selector_config.selector_text if selector_config else None,
        )
        cached = self.response_cache.get(cache_key)
        if cached is not None:
            self.logger.info(f"Serving cached response for {feed_url}")
            return cached

        with PerformanceLogger(self.logger, f"render of {feed_url}", feed_url=feed_url):
            async with self.fetcher_factory() as fetcher:
                feed_meta, items = await self.feed_source.fetch_feed(feed_url, fetcher)

                enricher = ItemEnricher(
                    cache=self.content_cache,
                    resolver=LinkResolver(fetcher),
                    extractor=self.extractor,
                    fetcher=fetcher,
                    max_concurrent=self.settings.processing.parallel_items,
                )
                items = await enricher.enrich_all(items, selector_config)

            result = self.writer.to_rss2(feed_meta, items)

        self.response_cache.set(cache_key, result)
        return result
