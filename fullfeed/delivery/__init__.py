"""
FullFeed Delivery Module
=======================

Output feed serialization.
"""

from .rss_writer import RssWriter

__all__ = ['RssWriter']
