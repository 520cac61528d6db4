"""
Shared fixtures for crawler tests.
"""

import pytest

from imagefinder.crawler.scheduler import CrawlCoordinator
from imagefinder.utils.config import CrawlerConfig
from imagefinder.utils.monitoring import CrawlMetrics

from .helpers import FakeFetcher


@pytest.fixture
def crawler_config():
    return CrawlerConfig(
        max_depth=2,
        max_workers=4,
        crawl_timeout=5,
        politeness_delay=0,
        request_timeout=2,
    )


@pytest.fixture
def make_coordinator(crawler_config):
    """Factory for coordinators backed by a FakeFetcher."""

    def factory(pages, delays=None, default_delay=0.0, metrics=None, **overrides):
        for key, value in overrides.items():
            setattr(crawler_config, key, value)
        fetcher = FakeFetcher(pages, delays=delays, default_delay=default_delay)
        coordinator = CrawlCoordinator(crawler_config, fetcher=fetcher, metrics=metrics)
        return coordinator, fetcher

    return factory


@pytest.fixture
def metrics():
    return CrawlMetrics()
