"""
FullFeed Storage Layer
=====================

Content-addressed article cache on disk and the optional rendered-feed cache.
"""

from .content_cache import ContentCache
from .response_cache import ResponseCache

__all__ = [
    'ContentCache',
    'ResponseCache',
]
