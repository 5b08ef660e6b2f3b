"""
Unit Tests for HTTP Server
==========================

Tests for request handling and status mapping of the aiohttp app.
"""

import pytest
from aiohttp import test_utils

from fullfeed.processing.pipeline import FeedProxy
from fullfeed.server.app import create_app, selector_config_from_query
from fullfeed.storage.response_cache import ResponseCache
from tests.fakes import FakeFetcher, SAMPLE_RSS_FEED, StaticExtractor


FEED_URL = "https://example.com/feed.xml"


class BrokenProxy(FeedProxy):
    async def render(self, feed_url, selector_config=None):
        raise RuntimeError("something unexpected")


def make_proxy(content_cache, responses, proxy_class=FeedProxy):
    fetcher = FakeFetcher(responses)
    proxy = proxy_class(
        content_cache=content_cache,
        extractor=StaticExtractor({"http://example.com/article1": "<p>hello</p>"}),
        response_cache=ResponseCache(enabled=False, ttl_seconds=60),
        fetcher_factory=lambda: fetcher,
    )
    return proxy, fetcher


class TestFeedEndpoint:

    @pytest.mark.asyncio
    async def test_returns_xml(self, content_cache):
        proxy, _ = make_proxy(content_cache, {
            FEED_URL: SAMPLE_RSS_FEED,
            "http://example.com/article1": "<html/>",
        })

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get("/", params={"url": FEED_URL})
            body = await resp.text()

        assert resp.status == 200
        assert resp.content_type == "text/xml"
        assert "<![CDATA[<p>hello</p>]]>" in body

    @pytest.mark.asyncio
    async def test_missing_url_is_bad_request(self, content_cache):
        proxy, fetcher = make_proxy(content_cache, {})

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get("/")

        assert resp.status == 400
        assert fetcher.requests == []

    @pytest.mark.asyncio
    async def test_non_http_url_is_bad_request(self, content_cache):
        proxy, _ = make_proxy(content_cache, {})

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get("/", params={"url": "file:///etc/passwd"})

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_unavailable_source_is_bad_gateway(self, content_cache):
        proxy, _ = make_proxy(content_cache, {})

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get("/", params={"url": FEED_URL})
            body = await resp.text()

        assert resp.status == 502
        assert "Source feed unavailable" in body

    @pytest.mark.asyncio
    async def test_unexpected_error_is_server_error(self, content_cache):
        proxy, _ = make_proxy(content_cache, {}, proxy_class=BrokenProxy)

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get("/", params={"url": FEED_URL})

        assert resp.status == 500

    @pytest.mark.asyncio
    async def test_selector_parameters_are_applied(self, content_cache):
        article = "https://blog.example.com/full"
        proxy, fetcher = make_proxy(content_cache, {
            FEED_URL: SAMPLE_RSS_FEED,
            "http://example.com/article1": f'<a class="x" href="{article}">Full story</a>',
            article: "<html/>",
        })

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get(
                "/", params={"url": FEED_URL, "selector": "a.x", "selectorText": "Full"}
            )

        assert resp.status == 200
        assert fetcher.count(article) == 1


class TestHealthEndpoint:

    @pytest.mark.asyncio
    async def test_health(self, content_cache):
        content_cache.put("https://example.com/a", "<p>a</p>")
        proxy, _ = make_proxy(content_cache, {})

        async with test_utils.TestClient(test_utils.TestServer(create_app(proxy))) as client:
            resp = await client.get("/health")
            data = await resp.json()

        assert resp.status == 200
        assert data == {"status": "ok", "cache_entries": 1}


class TestQueryParsing:

    def test_no_selector(self):
        assert selector_config_from_query({}) is None

    def test_selector_text_alone_is_ignored(self):
        assert selector_config_from_query({"selectorText": "More"}) is None

    def test_selector_with_text(self):
        config = selector_config_from_query({"selector": " a.x ", "selectorText": "More"})

        assert config.selector == "a.x"
        assert config.selector_text == "More"
