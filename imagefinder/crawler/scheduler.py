"""
Crawl coordinator: runs a bounded worker pool over a per-run task queue and
decides when a crawl is complete or has timed out.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .fetcher import WebFetcher
from .run import CrawlRun, CrawlTask
from .task import DocumentFetcher, PageCrawler
from .urls import get_host
from ..utils.config import CrawlerConfig
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlMetrics


@dataclass
class CrawlReport:
    """Everything a crawl run found."""
    seed_url: str
    images: List[str] = field(default_factory=list)
    logos: List[str] = field(default_factory=list)
    favicons: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    timed_out: bool = False

    def assets(self) -> Dict[str, List[str]]:
        return {
            'images': self.images,
            'logos': self.logos,
            'favicons': self.favicons,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {'seed_url': self.seed_url, 'timed_out': self.timed_out}
        data.update(self.assets())
        data['stats'] = self.stats
        return data


class CrawlCoordinator:
    """
    Coordinates crawl runs.

    Each call to `crawl` builds its own CrawlRun, so one coordinator can
    serve overlapping runs. The fetcher (and its HTTP session) is shared.
    """

    def __init__(self, config: Optional[CrawlerConfig] = None,
                 fetcher: Optional[DocumentFetcher] = None,
                 metrics: Optional[CrawlMetrics] = None):
        self.config = config or CrawlerConfig()
        self.metrics = metrics
        self.logger = logging.getLogger(__name__)

        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or WebFetcher(
            user_agent=self.config.user_agent,
            request_timeout=self.config.request_timeout,
            max_concurrent_requests=self.config.max_workers
        )
        self.page_crawler = PageCrawler(
            self.fetcher,
            max_depth=self.config.max_depth,
            politeness_delay=self.config.politeness_delay,
            metrics=metrics
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the fetcher if this coordinator created it."""
        if self._owns_fetcher:
            await self.fetcher.close()

    async def run_crawl(self, seed_url: str, timeout: Optional[float] = None) -> List[str]:
        """
        Crawl from seed_url and return the image URLs found.

        Returns once every submitted task has finished or the timeout
        elapses, whichever comes first.
        """
        report = await self.crawl(seed_url, timeout)
        return report.images

    async def crawl(self, seed_url: str, timeout: Optional[float] = None) -> CrawlReport:
        """
        Crawl from seed_url and return images, logos, favicons and stats.

        Args:
            seed_url: Absolute URL to start from
            timeout: Overall crawl timeout in seconds (defaults to config.crawl_timeout)

        Returns:
            CrawlReport; partial if the run timed out
        """
        if timeout is None:
            timeout = self.config.crawl_timeout

        run = CrawlRun(seed_url, max_pages=self.config.max_pages, timeout=timeout)
        log = get_crawler_logger(__name__, run_id=run.run_id, seed_url=seed_url)

        seed_host = get_host(seed_url)
        if seed_host is None:
            log.warning(f"Cannot crawl {seed_url!r}: no host in seed URL")
            run.finish()
            self._record_run(run, 'invalid_seed')
            return self._build_report(run)

        log.info(f"Starting crawl for: {seed_url}")
        run.submit(CrawlTask(url=seed_url, depth=0, parent_host=seed_host))

        workers = [
            asyncio.create_task(self._worker(run, f"worker-{i}"))
            for i in range(self.config.max_workers)
        ]

        try:
            await asyncio.wait_for(run.counter.wait_zero(), timeout=timeout)
        except asyncio.TimeoutError:
            run.timed_out = True
            log.warning(f"Crawling timed out after {timeout} seconds "
                        f"({run.outstanding} tasks outstanding)")
        finally:
            run.cancel()
            await self._stop_workers(workers)
            run.finish()

        self._record_run(run, 'timed_out' if run.timed_out else 'completed')
        report = self._build_report(run)

        log.info(
            f"Crawl finished for {seed_url}: "
            f"pages={run.stats.pages_fetched}, "
            f"errors={run.stats.fetch_errors}, "
            f"images={len(report.images)}, "
            f"logos={len(report.logos)}, "
            f"favicons={len(report.favicons)}, "
            f"time={run.stats.elapsed_time:.2f}s"
        )
        return report

    async def _worker(self, run: CrawlRun, worker_id: str):
        """Worker coroutine that drains the run's task queue until cancelled."""
        self.logger.debug(f"Worker {worker_id} started for run {run.run_id}")
        while True:
            task = await run.queue.get()
            try:
                await self.page_crawler.crawl(run, task)
            finally:
                run.queue.task_done()

    async def _stop_workers(self, workers: List[asyncio.Task]):
        """Cancel and wait for worker tasks."""
        for worker in workers:
            if not worker.done():
                worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    def _record_run(self, run: CrawlRun, outcome: str):
        if self.metrics:
            self.metrics.record_run(outcome, run.stats.elapsed_time)

    def _build_report(self, run: CrawlRun) -> CrawlReport:
        assets = run.results.to_dict()
        return CrawlReport(
            seed_url=run.seed_url,
            images=assets['images'],
            logos=assets['logos'],
            favicons=assets['favicons'],
            stats=run.stats.to_dict(),
            timed_out=run.timed_out
        )
