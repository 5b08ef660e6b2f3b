"""
FullFeed Ingestion Module
========================

Outbound HTTP and source feed parsing.

This module handles:
- A shared aiohttp client with timeouts and bounded retry
- RSS/Atom download and normalization with feedparser
"""

from .feed_source import FeedItem, FeedMetadata, FeedSource
from .page_fetcher import FetchedPage, PageFetcher

__all__ = [
    "FeedItem",
    "FeedMetadata",
    "FeedSource",
    "FetchedPage",
    "PageFetcher",
]
