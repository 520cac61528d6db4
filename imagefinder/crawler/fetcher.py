"""
Web page fetcher built on a shared aiohttp session.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError

from .parser import DocumentParser, ParsedDocument
from ..exceptions import FetchError


MAX_CONTENT_SIZE = 10 * 1024 * 1024


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 400 and bool(self.content)


class WebFetcher:
    """
    Fetches web pages with a per-request timeout and an identifying
    User-Agent, and parses successful responses into documents.
    """

    def __init__(self, user_agent: str = "Mozilla/5.0", request_timeout: float = 10,
                 max_concurrent_requests: int = 10, parser: Optional[DocumentParser] = None):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.parser = parser or DocumentParser()

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    limit_per_host=10,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        if self.session is None:
            await self.start()

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                fetch_time = time.time() - start_time

                headers = dict(response.headers)
                content_type = response.headers.get('content-type', '').lower()

                if response.status >= 400:
                    self.stats['failed_requests'] += 1
                    self.logger.debug(f"HTTP {response.status} for {url}")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        headers=headers,
                        content_type=content_type,
                        error=f"HTTP {response.status}",
                        fetch_time=fetch_time
                    )

                if not self._is_html_content(content_type):
                    self.stats['failed_requests'] += 1
                    self.logger.debug(f"Skipping non-HTML content: {url} ({content_type})")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        headers=headers,
                        content_type=content_type,
                        error="Non-HTML content type",
                        fetch_time=fetch_time
                    )

                content = await self._read_content_safely(response)

                if content:
                    self.stats['total_bytes_downloaded'] += len(content)
                    self.stats['successful_requests'] += 1
                else:
                    self.stats['failed_requests'] += 1

                # Final location after redirects, the base for relative links
                final_url = str(response.url)
                self.logger.debug(f"Fetched {url}: {response.status} ({len(content) if content else 0} bytes)")
                return FetchResult(
                    url=final_url,
                    status_code=response.status,
                    content=content,
                    headers=headers,
                    content_type=content_type,
                    encoding=response.charset,
                    error=None if content else "Empty or oversized body",
                    fetch_time=fetch_time
                )

        except asyncio.TimeoutError:
            self.stats['failed_requests'] += 1
            error_msg = "Request timeout"
            self.logger.warning(f"Timeout fetching {url}")

        except (ClientError, ValueError) as e:
            # aiohttp raises InvalidURL (a ClientError and ValueError) for malformed URLs
            self.stats['failed_requests'] += 1
            error_msg = f"Client error: {str(e)}"
            self.logger.warning(f"Client error fetching {url}: {e}")

        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    async def fetch_document(self, url: str) -> ParsedDocument:
        """
        Fetch url and parse it into a document.

        Raises:
            FetchError: on network failure, timeout, error status, non-HTML or empty body
        """
        result = await self.fetch(url)
        if not result.ok:
            raise FetchError(url, result.error or f"HTTP {result.status_code}",
                             status_code=result.status_code or None)
        return self.parser.parse(result.url, result.content)

    def _is_html_content(self, content_type: str) -> bool:
        """Check if content type is text or an XML document."""
        if not content_type:
            # Servers that omit the header usually serve HTML
            return True

        mime_type = content_type.split(';', 1)[0].strip()
        return (mime_type.startswith('text/')
                or mime_type in ('application/xml', 'application/xhtml+xml')
                or mime_type.endswith('+xml'))

    async def _read_content_safely(self, response, max_size: int = MAX_CONTENT_SIZE) -> Optional[str]:
        """
        Safely read response content with size limit.

        Args:
            response: aiohttp response object
            max_size: Maximum content size in bytes (default 10MB)

        Returns:
            Content string or None if too large
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > max_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        # Read content in chunks to respect size limit
        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > max_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            for fallback_encoding in ['utf-8', 'latin-1']:
                try:
                    return content_bytes.decode(fallback_encoding)
                except UnicodeDecodeError:
                    continue

            return content_bytes.decode('utf-8', errors='ignore')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()

    def reset_stats(self):
        """Reset statistics counters."""
        for key in self.stats:
            self.stats[key] = 0
