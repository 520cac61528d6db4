"""
In-memory, thread-safe URL stores for a crawl run.
"""

from .url_store import ResultSet, VisitedSet
from .results import CrawlResults, is_logo_candidate

__all__ = ['ResultSet', 'VisitedSet', 'CrawlResults', 'is_logo_candidate']
