"""
Feed Source
===========

Downloads the caller's RSS/Atom feed and normalizes it with feedparser into
feed metadata plus an ordered list of items.

Supports RSS 0.9x/1.0/2.0 and Atom; items keep the order of the source
document.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import feedparser

from ..utils.exceptions import (
    ErrorCode,
    PageFetchError,
    SourceFeedError,
    ValidationError,
)
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator


@dataclass
class FeedItem:
    """One feed entry. ``content`` is replaced by the enricher on success."""

    link: str
    title: str = ""
    summary: str = ""
    content: Optional[str] = None
    published: Optional[str] = None
    author: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    guid: Optional[str] = None
    enclosures: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class FeedMetadata:
    """Channel-level data carried over to the output feed."""

    title: str
    link: str
    description: str = ""
    language: Optional[str] = None
    updated: Optional[datetime] = None
    image: Optional[Dict[str, Any]] = None


_STATUS_ERROR_CODES = {
    401: ErrorCode.FEED_ACCESS_DENIED,
    403: ErrorCode.FEED_ACCESS_DENIED,
    404: ErrorCode.FEED_NOT_FOUND,
    410: ErrorCode.FEED_NOT_FOUND,
}


class FeedSource:
    """Fetches and parses source feeds."""

    def __init__(self):
        self.logger = get_logger_for_component("feed_source")

    async def fetch_feed(
        self, feed_url: str, fetcher
    ) -> Tuple[FeedMetadata, List[FeedItem]]:
        """
        Fetch and parse a feed.

        Args:
            feed_url: RSS/Atom feed URL
            fetcher: Open PageFetcher used for the download

        Returns:
            Tuple of (feed_metadata, items in source order)

        Raises:
            SourceFeedError: If the feed cannot be fetched or is not a feed
        """
        try:
            feed_url = URLValidator.validate_feed_url(feed_url)
        except ValidationError as e:
            raise SourceFeedError(
                f"Invalid feed URL: {e}",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_INVALID_URL,
            ) from e

        self.logger.info(f"Fetching source feed: {feed_url}")
        start_time = time.time()

        try:
            page = await fetcher.fetch_raw(feed_url)
        except PageFetchError as e:
            if e.error_code == ErrorCode.PAGE_TIMEOUT:
                code = ErrorCode.FEED_FETCH_TIMEOUT
            else:
                code = _STATUS_ERROR_CODES.get(e.status, ErrorCode.FEED_NETWORK_ERROR)
            raise SourceFeedError(
                f"Failed to fetch feed {feed_url}: {e}",
                feed_url=feed_url,
                error_code=code,
            ) from e

        self.logger.debug(
            f"Feed fetched in {time.time() - start_time:.2f}s, "
            f"size: {len(page.body)} bytes"
        )

        return self.parse_feed(page.body, feed_url, response_headers=page.headers)

    def parse_feed(
        self,
        content,
        feed_url: str,
        response_headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[FeedMetadata, List[FeedItem]]:
        """Parse a downloaded feed document.

        Raises:
            SourceFeedError: If the document is not a readable feed
        """
        parsed_feed = feedparser.parse(content, response_headers=response_headers or {})

        has_entries = bool(getattr(parsed_feed, "entries", None))
        feed_data = getattr(parsed_feed, "feed", {}) or {}

        if parsed_feed.bozo:
            if not has_entries and not feed_data.get("title"):
                raise SourceFeedError(
                    f"Feed parse error for {feed_url}: {parsed_feed.bozo_exception}",
                    feed_url=feed_url,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                )
            # Many feeds have minor formatting issues
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {parsed_feed.bozo_exception}"
            )

        if not parsed_feed.get("version") and not has_entries:
            raise SourceFeedError(
                f"Document at {feed_url} is not an RSS or Atom feed",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_PARSE_ERROR,
            )

        feed_metadata = self._extract_feed_metadata(feed_data, feed_url)

        items = []
        for entry in parsed_feed.entries:
            try:
                item = self._extract_item(entry)
            except (AttributeError, TypeError, ValueError) as e:
                self.logger.warning(f"Failed to parse entry in {feed_url}: {e}")
                continue

            if item is None:
                self.logger.warning(
                    f"Entry missing link in feed {feed_url}, skipping",
                    extra={"entry_title": getattr(entry, "title", "Unknown")},
                )
                continue
            items.append(item)

        self.logger.info(f"Parsed {len(items)} items from {feed_url}")
        return feed_metadata, items

    def _extract_feed_metadata(self, feed_data: Any, feed_url: str) -> FeedMetadata:
        """Extract and normalize channel metadata."""
        title = getattr(feed_data, "title", "") or ""
        link = getattr(feed_data, "link", "") or feed_url
        description = getattr(feed_data, "description", "") or getattr(
            feed_data, "subtitle", ""
        ) or ""
        language = getattr(feed_data, "language", None)

        updated = None
        updated_parsed = getattr(feed_data, "updated_parsed", None)
        if updated_parsed:
            try:
                updated = datetime(*updated_parsed[:6], tzinfo=timezone.utc)
            except (ValueError, TypeError):
                self.logger.warning(f"Invalid updated date in feed: {feed_url}")

        image = None
        raw_image = getattr(feed_data, "image", None)
        if isinstance(raw_image, dict) and (raw_image.get("href") or raw_image.get("url")):
            image = {
                "url": raw_image.get("href") or raw_image.get("url"),
                "title": raw_image.get("title", "") or title,
                "link": raw_image.get("link", "") or link,
            }

        return FeedMetadata(
            title=title.strip(),
            link=link,
            description=description.strip(),
            language=language,
            updated=updated,
            image=image,
        )

    def _extract_item(self, entry: Any) -> Optional[FeedItem]:
        """Normalize one entry, or None when it has no link."""
        link = (getattr(entry, "link", "") or "").strip()
        if not link:
            return None

        summary = getattr(entry, "summary", "") or getattr(entry, "description", "") or ""

        # Atom content / RSS content:encoded
        content = None
        raw_content = getattr(entry, "content", None)
        if isinstance(raw_content, list) and raw_content:
            content = raw_content[0].get("value") or None

        author = getattr(entry, "author", None)
        if not author:
            author_detail = getattr(entry, "author_detail", None)
            if isinstance(author_detail, dict):
                author = author_detail.get("name") or author_detail.get("email")

        categories = []
        for tag in getattr(entry, "tags", None) or []:
            term = tag.get("term", "") if isinstance(tag, dict) else str(tag)
            if term and term.strip():
                categories.append(term.strip())

        enclosures = []
        for enc in getattr(entry, "enclosures", None) or []:
            if isinstance(enc, dict) and enc.get("href"):
                enclosures.append(
                    {
                        "url": enc.get("href"),
                        "type": enc.get("type", ""),
                        "length": enc.get("length", 0),
                    }
                )

        guid = getattr(entry, "id", None) or getattr(entry, "guid", None)

        return FeedItem(
            link=link,
            title=(getattr(entry, "title", "") or "").strip(),
            summary=summary.strip(),
            content=content,
            published=self._extract_date(entry),
            author=author.strip() if author else None,
            categories=categories,
            guid=guid,
            enclosures=enclosures,
        )

    def _extract_date(self, entry: Any) -> Optional[str]:
        """ISO-8601 date when feedparser could parse one, else the raw string."""
        for field_name in ("published", "updated", "created"):
            date_tuple = getattr(entry, f"{field_name}_parsed", None)
            if date_tuple:
                try:
                    return datetime(*date_tuple[:6], tzinfo=timezone.utc).isoformat()
                except (ValueError, TypeError):
                    pass

            raw = getattr(entry, field_name, None)
            if raw:
                return raw

        return None
