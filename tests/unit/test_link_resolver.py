"""
Unit Tests for Link Resolver
============================

Tests for selector-driven article link discovery on index pages.
"""

import pytest

from fullfeed.enrichment.link_resolver import LinkResolver, SelectorConfig
from fullfeed.utils.exceptions import ErrorCode, PageFetchError
from tests.fakes import FakeFetcher


INDEX_URL = "https://news.example.com/item/42"

INDEX_PAGE = '''<html><body>
    <div class="links">
        <a class="out" href="https://a.example.com/one">Comments</a>
        <a class="out" href="/story/full">Read the full story</a>
        <a class="out" href="https://c.example.com/three">Share</a>
    </div>
</body></html>'''


@pytest.fixture
def fetcher():
    return FakeFetcher({INDEX_URL: INDEX_PAGE})


@pytest.fixture
def resolver(fetcher):
    return LinkResolver(fetcher)


class TestResolve:
    """Resolution with and without a selector."""

    @pytest.mark.asyncio
    async def test_without_selector_returns_item_link(self, resolver, fetcher):
        assert await resolver.resolve(INDEX_URL) == INDEX_URL
        assert fetcher.requests == []

    @pytest.mark.asyncio
    async def test_selector_text_picks_matching_anchor(self, resolver):
        config = SelectorConfig(selector="a.out", selector_text="full story")

        target = await resolver.resolve(INDEX_URL, config)

        assert target == "https://news.example.com/story/full"

    @pytest.mark.asyncio
    async def test_selector_without_text_picks_first_match(self, resolver):
        target = await resolver.resolve(INDEX_URL, SelectorConfig(selector="a.out"))

        assert target == "https://a.example.com/one"

    @pytest.mark.asyncio
    async def test_no_text_match_is_unresolved(self, resolver):
        config = SelectorConfig(selector="a.out", selector_text="nowhere to be found")

        assert await resolver.resolve(INDEX_URL, config) is None

    @pytest.mark.asyncio
    async def test_no_selector_match_is_unresolved(self, resolver):
        assert await resolver.resolve(INDEX_URL, SelectorConfig(selector="a.missing")) is None

    @pytest.mark.asyncio
    async def test_malformed_selector_is_unresolved(self, resolver):
        assert await resolver.resolve(INDEX_URL, SelectorConfig(selector="a[href")) is None

    @pytest.mark.asyncio
    async def test_fetch_failure_is_unresolved(self):
        fetcher = FakeFetcher({
            INDEX_URL: PageFetchError(
                "timeout", url=INDEX_URL, error_code=ErrorCode.PAGE_TIMEOUT
            )
        })
        resolver = LinkResolver(fetcher)

        assert await resolver.resolve(INDEX_URL, SelectorConfig(selector="a")) is None

    @pytest.mark.asyncio
    async def test_index_page_fetched_on_every_call(self, resolver, fetcher):
        config = SelectorConfig(selector="a.out")

        await resolver.resolve(INDEX_URL, config)
        await resolver.resolve(INDEX_URL, config)

        assert fetcher.count(INDEX_URL) == 2


class TestFindLink:
    """Selection on an already downloaded page."""

    def test_container_element_uses_descendant_anchor(self, resolver):
        html = '<div class="entry"><span>Title</span><a href="/post">Open</a></div>'

        target = resolver.find_link(html, "https://blog.example.com/", SelectorConfig("div.entry"))

        assert target == "https://blog.example.com/post"

    def test_element_without_href_is_unresolved(self, resolver):
        html = '<div class="entry">No link here</div>'

        assert resolver.find_link(html, "https://blog.example.com/", SelectorConfig("div.entry")) is None

    def test_non_http_link_is_rejected(self, resolver):
        html = '<a class="x" href="mailto:someone@example.com">Mail</a>'

        assert resolver.find_link(html, "https://blog.example.com/", SelectorConfig("a.x")) is None

    def test_text_match_is_case_sensitive_substring(self, resolver):
        html = '<a href="/lower">read more</a><a href="/upper">Read More</a>'

        target = resolver.find_link(
            html, "https://blog.example.com/", SelectorConfig("a", selector_text="Read More")
        )

        assert target == "https://blog.example.com/upper"
