"""
Page Fetcher
============

Shared aiohttp client for every outbound request made while serving one
feed: the source feed itself, intermediate index pages and article pages.
"""

import asyncio
import ssl
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import aiohttp
import certifi

from ..config.settings import get_settings
from ..recovery.retry_logic import RetryConfig, RetryManager
from ..utils.exceptions import PageFetchError, ErrorCode
from ..utils.logging import get_logger_for_component


@dataclass
class FetchedPage:
    """A downloaded document."""

    url: str
    final_url: str
    body: Union[str, bytes]
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


class PageFetcher:
    """Async HTTP client with timeouts and optional bounded retry.

    Use as an async context manager; the session lives for the duration of
    the ``async with`` block::

        async with PageFetcher() as fetcher:
            html = await fetcher.fetch_text(url)
    """

    def __init__(
        self,
        timeout: Optional[int] = None,
        max_attempts: Optional[int] = None,
        max_connections: Optional[int] = None,
    ):
        """Initialize page fetcher.

        Args:
            timeout: Total request timeout in seconds (default from config)
            max_attempts: Attempts per request (default from config)
            max_connections: Connection pool size (default from config)
        """
        settings = get_settings()
        self.timeout = timeout or settings.fetch.request_timeout
        self.user_agent = settings.fetch.user_agent
        self.max_connections = max_connections or settings.processing.parallel_items * 2
        self.logger = get_logger_for_component("page_fetcher")

        self.retry_manager = RetryManager(
            RetryConfig(
                max_attempts=max_attempts or settings.fetch.max_attempts,
                base_delay=settings.fetch.retry_base_delay,
                strategy=settings.fetch.retry_strategy,
            )
        )

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "PageFetcher":
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.max_connections,
            limit_per_host=5,
            enable_cleanup_closed=True,
        )

        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html, application/xhtml+xml, application/rss+xml, "
            "application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8",
            "Accept-Encoding": "gzip, deflate",
        }

        self._session = aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=headers,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch_page(self, url: str) -> FetchedPage:
        """Download a document and decode it as text.

        Raises:
            PageFetchError: On non-success status, timeout or network error
        """
        return await self.retry_manager.retry_async(
            self._request, url, as_text=True, operation=f"fetch {url}"
        )

    async def fetch_text(self, url: str) -> str:
        """Download a document and return its decoded body."""
        page = await self.fetch_page(url)
        return page.body

    async def fetch_raw(self, url: str) -> FetchedPage:
        """Download a document without decoding it (feeds carry their own encoding)."""
        return await self.retry_manager.retry_async(
            self._request, url, as_text=False, operation=f"fetch {url}"
        )

    async def _request(self, url: str, as_text: bool) -> FetchedPage:
        if self._session is None:
            raise RuntimeError("PageFetcher must be used inside 'async with'")

        self.logger.debug(f"Downloading {url}")

        try:
            async with self._session.get(url) as response:
                if response.status >= 400:
                    raise PageFetchError(
                        f"HTTP {response.status}: {response.reason} for {url}",
                        url=url,
                        status=response.status,
                        error_code=ErrorCode.PAGE_HTTP_ERROR,
                    )

                if as_text:
                    body = await response.text(errors="replace")
                else:
                    body = await response.read()

                return FetchedPage(
                    url=url,
                    final_url=str(response.url),
                    body=body,
                    status=response.status,
                    headers=dict(response.headers),
                )

        except asyncio.TimeoutError as e:
            raise PageFetchError(
                f"Request timeout after {self.timeout}s for {url}",
                url=url,
                error_code=ErrorCode.PAGE_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise PageFetchError(
                f"Fetch error for {url}: {e}",
                url=url,
                error_code=ErrorCode.PAGE_NETWORK_ERROR,
            ) from e
