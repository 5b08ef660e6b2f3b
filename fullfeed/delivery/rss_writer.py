"""
RSS Writer
==========

Serializes feed metadata and (enriched) items into an RSS 2.0 document.
Bad or missing optional values are dropped field by field; the document
itself is always produced.
"""

import re
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import List, Optional

from lxml import etree

from ..config.settings import get_settings
from ..ingestion.feed_source import FeedItem, FeedMetadata
from ..utils.logging import get_logger_for_component

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"
RSS_DOCS_URL = "https://validator.w3.org/feed/docs/rss2.html"

# Characters not allowed in XML 1.0 documents
_INVALID_XML_CHARS = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def xml_safe(value: Optional[str]) -> str:
    """Strip characters that cannot appear in XML."""
    if not value:
        return ""
    return _INVALID_XML_CHARS.sub("", str(value))


def parse_date(value) -> Optional[datetime]:
    """Parse an ISO-8601 or RFC 822 date; None if it is missing or invalid.

    Naive datetimes are taken as UTC.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError, IndexError, OverflowError):
                return None
        if parsed is None:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # Offset pushes the value outside the datetime range
        return None


class RssWriter:
    """Builds RSS 2.0 documents with full article bodies in content:encoded."""

    def __init__(self, generator: Optional[str] = None):
        if generator is None:
            settings = get_settings()
            generator = f"{settings.app_name}/{settings.version}"
        self.generator = generator
        self.logger = get_logger_for_component("rss_writer")

    def to_rss2(
        self,
        feed_meta: FeedMetadata,
        items: List[FeedItem],
        build_date: Optional[datetime] = None,
    ) -> str:
        """Render the output feed.

        Args:
            feed_meta: Source channel metadata
            items: Items in output order
            build_date: lastBuildDate (defaults to now)

        Returns:
            RSS 2.0 XML document as a string
        """
        rss = etree.Element(
            "rss", version="2.0", nsmap={"content": CONTENT_NS, "dc": DC_NS}
        )
        channel = etree.SubElement(rss, "channel")

        title = xml_safe(feed_meta.title)
        self._add_text(channel, "title", title)
        self._add_text(channel, "link", xml_safe(feed_meta.link))
        # description is mandatory in RSS 2.0
        self._add_text(channel, "description", xml_safe(feed_meta.description) or title)
        if feed_meta.language:
            self._add_text(channel, "language", xml_safe(feed_meta.language))
        if title:
            self._add_text(channel, "copyright", title)
        self._add_text(
            channel,
            "lastBuildDate",
            format_datetime(parse_date(build_date) or datetime.now(timezone.utc), usegmt=True),
        )
        self._add_text(channel, "docs", RSS_DOCS_URL)
        self._add_text(channel, "generator", xml_safe(self.generator))

        if feed_meta.image and feed_meta.image.get("url"):
            image = etree.SubElement(channel, "image")
            self._add_text(image, "url", xml_safe(feed_meta.image["url"]))
            self._add_text(image, "title", xml_safe(feed_meta.image.get("title")) or title)
            self._add_text(image, "link", xml_safe(feed_meta.image.get("link")) or xml_safe(feed_meta.link))

        for item in items:
            self._add_item(channel, item)

        return etree.tostring(
            rss, xml_declaration=True, encoding="utf-8", pretty_print=True
        ).decode("utf-8")

    def _add_item(self, channel, item: FeedItem) -> None:
        element = etree.SubElement(channel, "item")
        link = xml_safe(item.link)

        if item.title:
            self._add_text(element, "title", xml_safe(item.title))
        self._add_text(element, "link", link)

        guid_value = xml_safe(item.guid) or link
        guid = self._add_text(element, "guid", guid_value)
        guid.set("isPermaLink", "true" if guid_value == link else "false")

        pub_date = self._format_date(item.published)
        if pub_date:
            self._add_text(element, "pubDate", pub_date)
        elif item.published:
            self.logger.debug(f"Dropping unparseable date {item.published!r} for {item.link}")

        if item.author:
            self._add_text(element, f"{{{DC_NS}}}creator", xml_safe(item.author))

        for category in item.categories:
            if category:
                self._add_text(element, "category", xml_safe(category))

        if item.summary:
            self._add_text(element, "description", xml_safe(item.summary))

        body = item.content or item.summary
        if body:
            self._add_cdata(element, f"{{{CONTENT_NS}}}encoded", xml_safe(body))

        if item.enclosures:
            enclosure = item.enclosures[0]
            if enclosure.get("url"):
                etree.SubElement(
                    element,
                    "enclosure",
                    url=xml_safe(enclosure["url"]),
                    type=xml_safe(enclosure.get("type")) or "application/octet-stream",
                    length=str(enclosure.get("length") or 0),
                )

    @staticmethod
    def _format_date(value) -> Optional[str]:
        """RFC 822 form of a date, or None when it cannot be represented."""
        published = parse_date(value)
        if published is None:
            return None
        try:
            return format_datetime(published, usegmt=True)
        except (OverflowError, ValueError):
            return None

    @staticmethod
    def _add_text(parent, tag: str, text: str):
        element = etree.SubElement(parent, tag)
        element.text = text
        return element

    @staticmethod
    def _add_cdata(parent, tag: str, text: str):
        element = etree.SubElement(parent, tag)
        # "]]>" cannot live inside a CDATA section; fall back to escaped text
        element.text = text if "]]>" in text else etree.CDATA(text)
        return element
