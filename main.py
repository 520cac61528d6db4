#!/usr/bin/env python3
"""
Main entry point for the image finder crawler.
"""

import asyncio
import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Optional

from imagefinder import __version__
from imagefinder.crawler.scheduler import CrawlCoordinator
from imagefinder.exceptions import ConfigError
from imagefinder.server import PLACEHOLDER_IMAGES, run_server
from imagefinder.utils.config import Config, ConfigManager, load_config
from imagefinder.utils.logger import setup_logging
from imagefinder.utils.monitoring import CrawlMetrics


class CrawlerApp:
    """Main application class for the image finder."""

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

    async def crawl_once(self, url: str, assets: bool = False) -> int:
        """Run a single crawl and print the result as JSON on stdout."""
        if not url:
            result = {'images': PLACEHOLDER_IMAGES, 'logos': [], 'favicons': []} if assets else PLACEHOLDER_IMAGES
            print(json.dumps(result))
            return 0

        self.logger.info(f"Max depth: {self.config.crawler.max_depth}")
        self.logger.info(f"Workers: {self.config.crawler.max_workers}")
        self.logger.info(f"Politeness delay: {self.config.crawler.politeness_delay}s")
        self.logger.info(f"Crawl timeout: {self.config.crawler.crawl_timeout}s")

        metrics = CrawlMetrics() if self.config.monitoring.metrics_enabled else None
        async with CrawlCoordinator(self.config.crawler, metrics=metrics) as coordinator:
            if assets:
                report = await coordinator.crawl(url)
                print(json.dumps(report.assets()))
            else:
                images = await coordinator.run_crawl(url)
                print(json.dumps(images))
        return 0

    def serve(self) -> int:
        run_server(self.config)
        return 0


def apply_overrides(config: Config, max_depth: Optional[int] = None,
                    timeout: Optional[float] = None, workers: Optional[int] = None) -> Config:
    """Apply command line overrides to the crawler section and re-validate."""
    data = asdict(config)
    if max_depth is not None:
        data['crawler']['max_depth'] = max_depth
    if timeout is not None:
        data['crawler']['crawl_timeout'] = timeout
    if workers is not None:
        data['crawler']['max_workers'] = workers
    return ConfigManager().from_dict(data)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Image Finder Crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --url https://example.com              # Print image URLs as JSON
  python main.py --url https://example.com --assets     # Include logos and favicons
  python main.py --url https://example.com --max-depth 1
  python main.py --serve                                 # Run the HTTP server
        """
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (default: config.yaml if present)'
    )

    parser.add_argument(
        '--url',
        help='Seed URL to crawl once'
    )

    parser.add_argument(
        '--assets',
        action='store_true',
        help='Print images, logos and favicons instead of only images'
    )

    parser.add_argument(
        '--serve',
        action='store_true',
        help='Run the HTTP server'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum link depth from the seed'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        help='Overall crawl timeout in seconds'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help='Number of concurrent crawl workers'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Image Finder Crawler {__version__}'
    )

    args = parser.parse_args()

    if args.url is None and not args.serve:
        parser.error("one of --url or --serve is required")

    try:
        config = load_config(args.config or 'config.yaml', required=args.config is not None)
        config = apply_overrides(config, args.max_depth, args.timeout, args.workers)
        setup_logging(config.logging)
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    app = CrawlerApp(config)
    try:
        if args.serve:
            return app.serve()
        return asyncio.run(app.crawl_once(args.url, assets=args.assets))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
