"""
HTML parsing into a small queryable document interface.
"""

import re
import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


ICON_REL_PATTERN = re.compile(r'icon', re.IGNORECASE)


class ParsedDocument:
    """
    A parsed page that can select image, icon and anchor elements and
    resolve their attributes to absolute URLs.

    Relative references are resolved against the page URL, or against the
    document's <base href> if it declares one.
    """

    def __init__(self, url: str, soup: BeautifulSoup):
        self.url = url
        self.soup = soup
        self.base_url = self._find_base_url(url, soup)

    @staticmethod
    def _find_base_url(url: str, soup: BeautifulSoup) -> str:
        base_tag = soup.find('base', href=True)
        if base_tag:
            href = base_tag['href'].strip()
            if href:
                return urljoin(url, href)
        return url

    def images(self) -> List[Tag]:
        """<img> elements with a src attribute."""
        return self.soup.find_all('img', src=True)

    def icon_links(self) -> List[Tag]:
        """<link> elements whose rel matches "icon" case-insensitively."""
        icons = []
        for link in self.soup.find_all('link', rel=True):
            rel = link.get('rel')
            # bs4 splits rel into a list of tokens
            rel_value = ' '.join(rel) if isinstance(rel, list) else str(rel)
            if ICON_REL_PATTERN.search(rel_value):
                icons.append(link)
        return icons

    def anchors(self) -> List[Tag]:
        """<a> elements with an href attribute."""
        return self.soup.find_all('a', href=True)

    def attr(self, element: Tag, name: str) -> str:
        """Read an attribute, returning "" if it's absent."""
        value = element.get(name)
        if value is None:
            return ""
        if isinstance(value, list):
            return ' '.join(value)
        return str(value)

    def resolve(self, element: Tag, name: str) -> str:
        """
        Resolve an attribute to an absolute URL.

        Returns "" if the attribute is missing, empty, or can't be resolved.
        """
        value = self.attr(element, name).strip()
        if not value:
            return ""
        try:
            return urljoin(self.base_url, value)
        except ValueError:
            return ""


class DocumentParser:
    """Parses HTML content into ParsedDocument instances."""

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def parse(self, url: str, html_content: Optional[str]) -> ParsedDocument:
        """
        Parse HTML content.

        Args:
            url: The URL the content was fetched from
            html_content: Raw HTML content

        Returns:
            ParsedDocument for querying elements
        """
        soup = BeautifulSoup(html_content or "", self.features)
        document = ParsedDocument(url, soup)
        self.logger.debug(f"Parsed {url}: {len(document.images())} images, "
                          f"{len(document.anchors())} links")
        return document
