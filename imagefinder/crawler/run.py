"""
Per-run crawl state: the task unit, the outstanding-task counter and the
CrawlRun value shared by every task of one invocation.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import CrawlerError
from ..storage.results import CrawlResults
from ..storage.url_store import VisitedSet


@dataclass(frozen=True)
class CrawlTask:
    """A single page to crawl."""
    url: str
    depth: int
    parent_host: Optional[str] = None


class TaskCounter:
    """
    Count of submitted-but-unfinished crawl tasks.

    The zero event is set whenever the count returns to zero, which is the
    completion signal for a run.
    """

    def __init__(self):
        self._count = 0
        self._zero = asyncio.Event()
        self._zero.set()

    @property
    def value(self) -> int:
        return self._count

    def increment(self) -> int:
        self._count += 1
        self._zero.clear()
        return self._count

    def decrement(self) -> int:
        if self._count <= 0:
            raise CrawlerError("Outstanding task counter would go negative")
        self._count -= 1
        if self._count == 0:
            self._zero.set()
        return self._count

    async def wait_zero(self):
        """Block until the count reaches zero."""
        await self._zero.wait()


@dataclass
class CrawlStats:
    """Statistics for a single crawl run."""
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    pages_fetched: int = 0
    fetch_errors: int = 0
    tasks_submitted: int = 0
    tasks_skipped: int = 0
    max_depth_reached: int = 0

    @property
    def elapsed_time(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    def to_dict(self) -> dict:
        return {
            'pages_fetched': self.pages_fetched,
            'fetch_errors': self.fetch_errors,
            'tasks_submitted': self.tasks_submitted,
            'tasks_skipped': self.tasks_skipped,
            'max_depth_reached': self.max_depth_reached,
            'elapsed_time': round(self.elapsed_time, 3),
        }


class CrawlRun:
    """
    All mutable state for one crawl invocation.

    A fresh instance is created per call, so overlapping runs on the same
    coordinator never see each other's visited URLs or results.
    """

    def __init__(self, seed_url: str, max_pages: Optional[int] = None,
                 timeout: Optional[float] = None):
        self.run_id = uuid.uuid4().hex[:8]
        self.seed_url = seed_url
        self.visited = VisitedSet(max_size=max_pages)
        self.results = CrawlResults()
        self.counter = TaskCounter()
        self.queue: "asyncio.Queue[CrawlTask]" = asyncio.Queue()
        self.stats = CrawlStats()
        self.deadline = self.stats.start_time + timeout if timeout is not None else None
        self.cancelled = False
        self.timed_out = False

    def submit(self, task: CrawlTask):
        """Count a task as outstanding and queue it for a worker."""
        self.counter.increment()
        self.stats.tasks_submitted += 1
        self.queue.put_nowait(task)

    def cancel(self):
        """Stop tasks of this run from starting new fetches."""
        self.cancelled = True

    @property
    def outstanding(self) -> int:
        return self.counter.value

    def finish(self):
        self.stats.end_time = time.time()
