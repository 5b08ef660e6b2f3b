"""
Item Enricher
=============

Replaces each feed item's summary-only content with the full article:
resolve link -> content cache -> fetch -> extract -> cache write.

A failure at any step leaves that item as it was; it never affects other
items or the request as a whole.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..config.settings import get_settings
from ..ingestion.feed_source import FeedItem
from ..storage.content_cache import ContentCache
from ..utils.exceptions import EnrichmentError, ErrorCode, PageFetchError
from ..utils.logging import get_logger_for_component
from .extractor import ArticleExtractor
from .link_resolver import LinkResolver, SelectorConfig


class EnrichmentOutcome(str, Enum):
    """What happened to one item."""
    ENRICHED = "enriched"
    CACHE_HIT = "cache_hit"
    UNRESOLVED = "unresolved"
    FETCH_FAILED = "fetch_failed"
    EXTRACTION_FAILED = "extraction_failed"
    ERROR = "error"


@dataclass
class EnrichmentSummary:
    """Per-request counters."""

    total: int = 0
    enriched: int = 0
    cache_hits: int = 0
    unresolved: int = 0
    fetch_failures: int = 0
    extraction_failures: int = 0
    errors: int = 0

    def record(self, outcome: EnrichmentOutcome) -> None:
        self.total += 1
        if outcome == EnrichmentOutcome.ENRICHED:
            self.enriched += 1
        elif outcome == EnrichmentOutcome.CACHE_HIT:
            self.cache_hits += 1
        elif outcome == EnrichmentOutcome.UNRESOLVED:
            self.unresolved += 1
        elif outcome == EnrichmentOutcome.FETCH_FAILED:
            self.fetch_failures += 1
        elif outcome == EnrichmentOutcome.EXTRACTION_FAILED:
            self.extraction_failures += 1
        else:
            self.errors += 1

    @property
    def with_content(self) -> int:
        return self.enriched + self.cache_hits


class ItemEnricher:
    """Runs the per-item pipeline over a feed with bounded concurrency."""

    def __init__(
        self,
        cache: ContentCache,
        resolver: LinkResolver,
        extractor: ArticleExtractor,
        fetcher,
        max_concurrent: Optional[int] = None,
    ):
        """
        Args:
            cache: Content cache keyed by resolved URL
            resolver: Link resolver bound to the request's fetcher
            extractor: Readability extractor
            fetcher: Open PageFetcher for article pages
            max_concurrent: Items processed at once (default from config)
        """
        self.cache = cache
        self.resolver = resolver
        self.extractor = extractor
        self.fetcher = fetcher
        self.max_concurrent = max_concurrent or get_settings().processing.parallel_items
        self.logger = get_logger_for_component("enricher")
        self.last_summary: Optional[EnrichmentSummary] = None

    async def enrich(
        self, item: FeedItem, selector_config: Optional[SelectorConfig] = None
    ) -> FeedItem:
        """Enrich one item in place and return it."""
        await self._enrich_item(item, selector_config)
        return item

    async def enrich_all(
        self,
        items: List[FeedItem],
        selector_config: Optional[SelectorConfig] = None,
    ) -> List[FeedItem]:
        """Enrich every item; the result has the same order as ``items``."""
        summary = EnrichmentSummary()
        self.last_summary = summary
        if not items:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def run(index: int, item: FeedItem) -> Tuple[int, FeedItem, EnrichmentOutcome]:
            async with semaphore:
                outcome = await self._enrich_item(item, selector_config)
            return index, item, outcome

        tasks = [run(index, item) for index, item in enumerate(items)]
        results: List[Optional[FeedItem]] = [None] * len(items)

        # Completion order is irrelevant; slots are filled by original index
        for completed in asyncio.as_completed(tasks):
            index, item, outcome = await completed
            results[index] = item
            summary.record(outcome)

        self.logger.info(
            f"Enriched {summary.with_content}/{summary.total} items "
            f"({summary.cache_hits} from cache, {summary.unresolved} unresolved, "
            f"{summary.fetch_failures} fetch failures, "
            f"{summary.extraction_failures} extraction failures, "
            f"{summary.errors} errors)"
        )
        return results

    async def _enrich_item(
        self, item: FeedItem, selector_config: Optional[SelectorConfig]
    ) -> EnrichmentOutcome:
        try:
            return await self._run_pipeline(item, selector_config)
        except Exception as e:
            # One item must never take down the feed
            error = EnrichmentError(
                f"Unexpected error enriching {item.link}: {e}", item_link=item.link
            )
            self.logger.error(str(error), exc_info=True, extra=error.to_dict())
            return EnrichmentOutcome.ERROR

    async def _run_pipeline(
        self, item: FeedItem, selector_config: Optional[SelectorConfig]
    ) -> EnrichmentOutcome:
        target = await self.resolver.resolve(item.link, selector_config)
        if not target:
            return EnrichmentOutcome.UNRESOLVED

        # Cache I/O is blocking file access
        cached = await asyncio.to_thread(self.cache.get, target)
        if cached is not None:
            item.content = cached
            return EnrichmentOutcome.CACHE_HIT

        self.logger.info(f"Downloading article at {target}")
        try:
            html = await self.fetcher.fetch_text(target)
        except PageFetchError as e:
            self.logger.warning(f"Article fetch failed for {target}: {e}")
            return EnrichmentOutcome.FETCH_FAILED

        # Readability is CPU-bound
        content = await asyncio.to_thread(self.extractor.extract, html, target)
        if not content:
            return EnrichmentOutcome.EXTRACTION_FAILED

        stored = await asyncio.to_thread(self.cache.put, target, content)
        if not stored:
            error = EnrichmentError(
                f"Could not cache content for {target}",
                item_link=item.link,
                error_code=ErrorCode.CACHE_WRITE_FAILED,
            )
            self.logger.warning(str(error), extra=error.to_dict())
        item.content = content
        return EnrichmentOutcome.ENRICHED
