"""
Unit Tests for Response Cache
=============================
"""

from fullfeed.storage.response_cache import ResponseCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


KEY = ("https://example.com/feed", None, None)


def test_disabled_cache_never_stores():
    cache = ResponseCache(enabled=False, ttl_seconds=60)
    cache.set(KEY, "<rss/>")

    assert cache.get(KEY) is None
    assert len(cache) == 0


def test_enabled_cache_returns_body_within_ttl():
    clock = FakeClock()
    cache = ResponseCache(enabled=True, ttl_seconds=60, clock=clock)
    cache.set(KEY, "<rss/>")

    clock.now += 59
    assert cache.get(KEY) == "<rss/>"


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = ResponseCache(enabled=True, ttl_seconds=60, clock=clock)
    cache.set(KEY, "<rss/>")

    clock.now += 60
    assert cache.get(KEY) is None
    assert len(cache) == 0


def test_selector_is_part_of_key():
    cache = ResponseCache(enabled=True, ttl_seconds=60)
    cache.set(KEY, "plain")
    cache.set(("https://example.com/feed", "a.story", None), "selected")

    assert cache.get(KEY) == "plain"
    assert cache.get(("https://example.com/feed", "a.story", None)) == "selected"
    assert cache.get(("https://example.com/feed", "a.story", "More")) is None


def test_clear():
    cache = ResponseCache(enabled=True, ttl_seconds=60)
    cache.set(KEY, "<rss/>")
    cache.clear()

    assert cache.get(KEY) is None
