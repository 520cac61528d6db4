"""
Prometheus metrics for crawl runs.
"""

import logging
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class CrawlMetrics:
    """
    Crawl counters, gauges and histograms registered in a private registry.

    Each instance owns its registry, so several coordinators (or tests) can
    create metrics without clashing on the process-wide default registry.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.pages_fetched = Counter(
            'imagefinder_pages_fetched_total',
            'Pages fetched and parsed successfully',
            registry=self.registry
        )
        self.fetch_errors = Counter(
            'imagefinder_fetch_errors_total',
            'Pages that could not be fetched',
            registry=self.registry
        )
        self.assets_found = Counter(
            'imagefinder_assets_found_total',
            'Asset references found on crawled pages',
            ['kind'],
            registry=self.registry
        )
        self.active_tasks = Gauge(
            'imagefinder_active_tasks',
            'Crawl tasks currently executing',
            registry=self.registry
        )
        self.crawl_runs = Counter(
            'imagefinder_crawl_runs_total',
            'Crawl runs by outcome',
            ['outcome'],
            registry=self.registry
        )
        self.crawl_duration = Histogram(
            'imagefinder_crawl_duration_seconds',
            'Wall-clock duration of crawl runs',
            buckets=(0.5, 1, 2.5, 5, 10, 20, 30, 60, 120),
            registry=self.registry
        )

    def record_page_fetched(self):
        self.pages_fetched.inc()

    def record_fetch_error(self):
        self.fetch_errors.inc()

    def record_asset(self, kind: str):
        """Count an asset reference; kind is image, logo or favicon."""
        self.assets_found.labels(kind=kind).inc()

    def task_started(self):
        self.active_tasks.inc()

    def task_finished(self):
        self.active_tasks.dec()

    def record_run(self, outcome: str, duration: float):
        self.crawl_runs.labels(outcome=outcome).inc()
        self.crawl_duration.observe(duration)
        self.logger.debug(f"Recorded crawl run: outcome={outcome}, duration={duration:.2f}s")

    def get_sample(self, name: str, labels: Optional[dict] = None) -> float:
        """Read a single sample value, 0.0 if it hasn't been recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def render(self) -> bytes:
        """Prometheus text exposition of all metrics."""
        return generate_latest(self.registry)
