"""
Link Resolver
=============

Decides which URL an item's article is extracted from. Without a selector
that is the item link itself; with one, the item link is treated as an
index/teaser page and the real article link is picked out of it.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from ..utils.exceptions import PageFetchError
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator


@dataclass(frozen=True)
class SelectorConfig:
    """Request-scoped selector settings.

    Attributes:
        selector: CSS selector matching candidate link elements
        selector_text: Optional substring the chosen element's text must contain
    """

    selector: str
    selector_text: Optional[str] = None


class LinkResolver:
    """Resolves item links to article URLs."""

    def __init__(self, fetcher):
        """
        Args:
            fetcher: Open PageFetcher used for intermediate pages
        """
        self.fetcher = fetcher
        self.logger = get_logger_for_component("link_resolver")
        self.parser = "html.parser"

    async def resolve(
        self, item_link: str, selector_config: Optional[SelectorConfig] = None
    ) -> Optional[str]:
        """Return the URL to extract for ``item_link``, or None if none is found.

        Intermediate pages are fetched on every call. Failures are logged and
        reported as None; nothing is raised.
        """
        if selector_config is None:
            return item_link

        try:
            page = await self.fetcher.fetch_page(item_link)
        except PageFetchError as e:
            self.logger.warning(f"Could not fetch index page {item_link}: {e}")
            return None

        target = self.find_link(
            page.body, page.final_url or item_link, selector_config
        )
        if target is None:
            self.logger.info(
                f"No target found on {item_link} for selector "
                f"{selector_config.selector!r}"
                + (
                    f" containing {selector_config.selector_text!r}"
                    if selector_config.selector_text
                    else ""
                )
            )
        else:
            self.logger.debug(f"Resolved {item_link} -> {target}")
        return target

    def find_link(
        self, html: str, page_url: str, selector_config: SelectorConfig
    ) -> Optional[str]:
        """Apply the selector to an already-downloaded page."""
        try:
            soup = BeautifulSoup(html, self.parser)
            candidates = soup.select(selector_config.selector)
        except (SelectorSyntaxError, NotImplementedError) as e:
            self.logger.warning(f"Malformed selector {selector_config.selector!r}: {e}")
            return None
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Could not parse {page_url}: {e}")
            return None

        if selector_config.selector_text:
            chosen = next(
                (
                    element
                    for element in candidates
                    if selector_config.selector_text in element.get_text()
                ),
                None,
            )
        else:
            chosen = candidates[0] if candidates else None

        if chosen is None:
            return None

        href = self._href_of(chosen)
        if not href:
            return None

        target = urljoin(page_url, href)
        if not URLValidator.is_fetchable(target):
            self.logger.warning(f"Ignoring unfetchable link {target!r} on {page_url}")
            return None
        return target

    @staticmethod
    def _href_of(element) -> Optional[str]:
        """The element's own href, else that of its first descendant link."""
        href = element.get("href")
        if not href:
            anchor = element.find("a", href=True)
            href = anchor.get("href") if anchor is not None else None

        if isinstance(href, list):
            href = href[0] if href else None
        return href.strip() if href else None
