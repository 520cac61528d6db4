"""
Test doubles and HTML builders shared by the crawler tests.
"""

import asyncio
from collections import Counter
from typing import Dict, Optional

from imagefinder.crawler.parser import DocumentParser
from imagefinder.exceptions import FetchError


class FakeFetcher:
    """Serves canned HTML per URL and records every fetch."""

    def __init__(self, pages: Dict[str, str], delays: Optional[Dict[str, float]] = None,
                 default_delay: float = 0.0):
        self.pages = pages
        self.delays = delays or {}
        self.default_delay = default_delay
        self.parser = DocumentParser()
        self.fetch_counts = Counter()
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def fetch_document(self, url: str):
        self.fetch_counts[url] += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, self.default_delay))
            if url not in self.pages:
                raise FetchError(url, "HTTP 404", status_code=404)
            return self.parser.parse(url, self.pages[url])
        finally:
            self.active -= 1

    async def close(self):
        self.closed = True

    @property
    def fetched(self):
        return set(self.fetch_counts)


def page(images=(), links=(), icons=(), extra=""):
    """Build a small HTML page from image (src, alt) pairs, hrefs and (rel, href) icons."""
    parts = ["<html><head>"]
    for rel, href in icons:
        parts.append(f'<link rel="{rel}" href="{href}">')
    parts.append("</head><body>")
    for src, alt in images:
        parts.append(f'<img src="{src}" alt="{alt}">')
    for href in links:
        parts.append(f'<a href="{href}">link</a>')
    parts.append(extra)
    parts.append("</body></html>")
    return "".join(parts)
