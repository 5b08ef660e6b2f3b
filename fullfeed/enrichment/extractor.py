"""
Article Extractor
=================

Wraps readability-lxml behind ``extract(html, base_url)``. The scoring
heuristic is the library's; this module only decides what counts as a
usable result.
"""

from typing import Optional

from lxml import etree
from lxml import html as lxml_html
from readability import Document
from readability.readability import Unparseable

from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component


class ArticleExtractor:
    """Readability-based main-content extraction."""

    def __init__(self, min_text_length: Optional[int] = None):
        """
        Args:
            min_text_length: Minimum visible characters in a usable
                extraction (default from config)
        """
        if min_text_length is None:
            min_text_length = get_settings().extraction.min_text_length
        self.min_text_length = max(1, min_text_length)
        self.logger = get_logger_for_component("extractor")

    def extract(self, html: str, base_url: str) -> Optional[str]:
        """Extract the article fragment from a page.

        Relative links and images in the result are made absolute against
        ``base_url``.

        Returns:
            Article HTML, or None when no article could be found
        """
        if not html or not html.strip():
            self.logger.debug(f"Empty document for {base_url}")
            return None

        try:
            document = Document(html, url=base_url)
            fragment = document.summary(html_partial=True)
        except (Unparseable, etree.LxmlError, ValueError, TypeError) as e:
            self.logger.warning(f"Readability failed for {base_url}: {e}")
            return None

        if not fragment or not self._has_enough_text(fragment):
            self.logger.info(f"No article content found at {base_url}")
            return None

        return fragment

    def _has_enough_text(self, fragment: str) -> bool:
        try:
            text = lxml_html.fromstring(fragment).text_content()
        except (etree.LxmlError, ValueError):
            return False

        visible = " ".join(text.split())
        return len(visible) >= self.min_text_length
