"""
FullFeed - Full-Content RSS Proxy
=================================

Turns summary-only RSS/Atom feeds into RSS 2.0 feeds carrying the full
article body of every item.

Main Components:
- Ingestion: source feed download and parsing
- Enrichment: link resolution, readability extraction, content cache
- Delivery: RSS 2.0 serialization
- Server: aiohttp endpoint ``GET /?url=...&selector=...&selectorText=...``
"""

__version__ = "1.0.0"
__author__ = "FullFeed Development Team"
__description__ = "Full-content RSS proxy"

# Core imports for easy access
from .config.settings import get_settings
from .processing.pipeline import FeedProxy
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FullFeedError

__all__ = [
    "get_settings",
    "FeedProxy",
    "configure_application_logging",
    "get_logger_for_component",
    "FullFeedError",
]
