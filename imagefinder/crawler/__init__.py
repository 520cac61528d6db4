"""
Crawl engine components.
"""

from .run import CrawlRun, CrawlTask, TaskCounter
from .urls import DomainPolicy, get_host
from .fetcher import WebFetcher, FetchResult
from .parser import DocumentParser, ParsedDocument
from .task import PageCrawler
from .scheduler import CrawlCoordinator, CrawlReport

__all__ = [
    'CrawlRun', 'CrawlTask', 'TaskCounter',
    'DomainPolicy', 'get_host',
    'WebFetcher', 'FetchResult',
    'DocumentParser', 'ParsedDocument',
    'PageCrawler',
    'CrawlCoordinator', 'CrawlReport'
]
