"""
Execution of a single crawl task: fetch one page, record its assets and
submit its same-host links as child tasks.
"""

import asyncio
import logging
from typing import Optional, Protocol

from .parser import ParsedDocument
from .run import CrawlRun, CrawlTask
from .urls import DomainPolicy, get_host
from ..exceptions import FetchError
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlMetrics


class DocumentFetcher(Protocol):
    async def fetch_document(self, url: str) -> ParsedDocument:
        ...


class PageCrawler:
    """
    Runs crawl tasks against a fetcher.

    Every call to `crawl` decrements the run's outstanding-task counter
    exactly once, whichever way the task exits.
    """

    def __init__(self, fetcher: DocumentFetcher, max_depth: int = 2,
                 politeness_delay: float = 0.1, policy: Optional[DomainPolicy] = None,
                 metrics: Optional[CrawlMetrics] = None):
        self.fetcher = fetcher
        self.max_depth = max_depth
        self.politeness_delay = politeness_delay
        self.policy = policy or DomainPolicy()
        self.metrics = metrics

    async def crawl(self, run: CrawlRun, task: CrawlTask):
        """Process one task of run."""
        log = get_crawler_logger(__name__, run_id=run.run_id)
        if self.metrics:
            self.metrics.task_started()

        try:
            if task.depth > self.max_depth or run.cancelled:
                run.stats.tasks_skipped += 1
                return

            if not run.visited.add_if_absent(task.url):
                run.stats.tasks_skipped += 1
                return

            if self.politeness_delay > 0:
                await asyncio.sleep(self.politeness_delay)

            if run.cancelled:
                return

            try:
                document = await self.fetcher.fetch_document(task.url)
            except FetchError as e:
                run.stats.fetch_errors += 1
                if self.metrics:
                    self.metrics.record_fetch_error()
                log.log_url_event(logging.WARNING, task.url, f"Failed to crawl: {task.url} -> {e.message}")
                return

            run.stats.pages_fetched += 1
            run.stats.max_depth_reached = max(run.stats.max_depth_reached, task.depth)
            if self.metrics:
                self.metrics.record_page_fetched()

            self._collect_images(run, document)
            self._collect_favicons(run, document)
            children = self._submit_links(run, task, document)

            log.debug(f"Crawled {task.url} at depth {task.depth} "
                      f"(linked from {task.parent_host}), queued {children} links")

        except asyncio.CancelledError:
            raise
        except Exception:
            run.stats.fetch_errors += 1
            log.exception(f"Unexpected error crawling {task.url}")
        finally:
            run.counter.decrement()
            if self.metrics:
                self.metrics.task_finished()

    def _collect_images(self, run: CrawlRun, document: ParsedDocument):
        for img in document.images():
            image_url = document.resolve(img, 'src')
            if not image_url:
                continue
            is_logo = run.results.add_image(image_url, document.attr(img, 'alt'))
            if self.metrics:
                self.metrics.record_asset('image')
                if is_logo:
                    self.metrics.record_asset('logo')

    def _collect_favicons(self, run: CrawlRun, document: ParsedDocument):
        for icon in document.icon_links():
            icon_url = document.resolve(icon, 'href')
            if icon_url:
                run.results.add_favicon(icon_url)
                if self.metrics:
                    self.metrics.record_asset('favicon')

    def _submit_links(self, run: CrawlRun, task: CrawlTask, document: ParsedDocument) -> int:
        """Queue same-host links found on the page. Returns the number queued."""
        child_depth = task.depth + 1
        if child_depth > self.max_depth:
            return 0

        page_host = get_host(task.url)
        submitted = 0
        for anchor in document.anchors():
            link = document.resolve(anchor, 'href')
            if not link:
                continue
            if not self.policy.allows(link, task.url):
                continue
            # Pruning only; add_if_absent in the child decides whether it fetches
            if link in run.visited:
                continue
            run.submit(CrawlTask(url=link, depth=child_depth, parent_host=page_host))
            submitted += 1
        return submitted
