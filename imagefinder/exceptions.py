"""
Exception types for the image finder crawler.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base exception for crawler operations."""


class ConfigError(CrawlerError):
    """Raised when configuration is missing or invalid."""


class FetchError(CrawlerError):
    """Raised when a page cannot be fetched or parsed into a document."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.message = message
        self.status_code = status_code
        super().__init__(f"{url}: {message}")
