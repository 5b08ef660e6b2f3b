"""
FullFeed Processing Module
=========================

Request orchestration from source feed to full-content RSS.
"""

from .pipeline import FeedProxy

__all__ = [
    'FeedProxy',
]
