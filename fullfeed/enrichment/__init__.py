"""
FullFeed Enrichment Module
=========================

Per-item pipeline: link resolution, readability extraction and
orchestration over a whole feed.
"""

from .enricher import EnrichmentOutcome, EnrichmentSummary, ItemEnricher
from .extractor import ArticleExtractor
from .link_resolver import LinkResolver, SelectorConfig

__all__ = [
    'ArticleExtractor',
    'EnrichmentOutcome',
    'EnrichmentSummary',
    'ItemEnricher',
    'LinkResolver',
    'SelectorConfig',
]
