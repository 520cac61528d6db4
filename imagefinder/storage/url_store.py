"""
Thread-safe URL sets used for visited-page deduplication and crawl results.
"""

import threading
from typing import Iterator, List, Optional, Set


class ResultSet:
    """
    Append-only set of URL strings.

    Adds are idempotent and safe from any number of asyncio tasks or OS
    threads. Readers take a copy under the lock.
    """

    def __init__(self):
        self._urls: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, url: str) -> None:
        """Insert a URL; adding an existing URL is a no-op."""
        with self._lock:
            self._urls.add(url)

    def snapshot(self) -> List[str]:
        """Return a copy of the current contents, in no particular order."""
        with self._lock:
            return list(self._urls)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())


class VisitedSet(ResultSet):
    """
    Set of visited page URLs with atomic add-if-absent.

    `add_if_absent` is the only operation that may decide whether a page gets
    fetched; membership checks are for pruning and inspection.
    """

    def __init__(self, max_size: Optional[int] = None):
        super().__init__()
        self.max_size = max_size

    def add_if_absent(self, url: str) -> bool:
        """
        Mark url as visited.

        Returns True if the URL was not present and is now marked, False if it
        was already visited or the set has reached max_size.
        """
        with self._lock:
            if url in self._urls:
                return False
            if self.max_size is not None and len(self._urls) >= self.max_size:
                return False
            self._urls.add(url)
            return True

    def add(self, url: str) -> None:
        self.add_if_absent(url)

    @property
    def is_full(self) -> bool:
        """True once max_size URLs have been visited."""
        if self.max_size is None:
            return False
        return len(self) >= self.max_size
