"""
Response Cache
==============

Optional in-memory cache of whole rendered feeds. Disabled by default:
with it off every request recomputes the feed (item content still comes
from the content cache).
"""

import time
from typing import Callable, Dict, Optional, Tuple

from ..utils.logging import get_logger_for_component

CacheKey = Tuple[str, Optional[str], Optional[str]]


class ResponseCache:
    """TTL cache keyed by ``(feed_url, selector, selector_text)``."""

    def __init__(
        self,
        enabled: bool,
        ttl_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.enabled = enabled
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, str]] = {}
        self.logger = get_logger_for_component("response_cache")

    def get(self, key: CacheKey) -> Optional[str]:
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, body = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self.logger.debug(f"Expired cached response for {key[0]}")
            return None

        return body

    def set(self, key: CacheKey, body: str) -> None:
        if not self.enabled:
            return
        self._entries[key] = (self._clock() + self.ttl_seconds, body)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
