"""
FullFeed Recovery Module
=======================

Retry handling for transient outbound failures.
"""

from .retry_logic import RetryConfig, RetryManager, RetryStrategy

__all__ = [
    'RetryConfig',
    'RetryManager',
    'RetryStrategy',
]
