"""
HTTP request boundary: an aiohttp web application that runs crawls on demand.
"""

import json
import logging
from functools import partial
from typing import List, Optional

from aiohttp import web

from .crawler.scheduler import CrawlCoordinator
from .utils.config import Config
from .utils.monitoring import CrawlMetrics


# Fixed response for requests without a seed URL
PLACEHOLDER_IMAGES: List[str] = [
    "https://via.placeholder.com/150",
    "https://via.placeholder.com/200",
]

COORDINATOR_KEY = web.AppKey("coordinator", CrawlCoordinator)
METRICS_KEY = web.AppKey("metrics", CrawlMetrics)

logger = logging.getLogger(__name__)

compact_dumps = partial(json.dumps, separators=(",", ":"))


async def _seed_url(request: web.Request) -> str:
    """Read the url parameter from the query string or a form body."""
    url = request.query.get('url')
    if not url and request.method == 'POST' and request.can_read_body:
        form = await request.post()
        url = form.get('url')
    if not isinstance(url, str):
        return ''
    return url.strip()


async def handle_main(request: web.Request) -> web.Response:
    """Crawl the given url and respond with a JSON array of image URLs."""
    url = await _seed_url(request)
    if not url:
        return web.json_response(PLACEHOLDER_IMAGES, dumps=compact_dumps)

    coordinator = request.app[COORDINATOR_KEY]
    images = await coordinator.run_crawl(url)
    return web.json_response(images, dumps=compact_dumps)


async def handle_assets(request: web.Request) -> web.Response:
    """Crawl the given url and respond with images, logos and favicons."""
    url = await _seed_url(request)
    if not url:
        empty = {'images': PLACEHOLDER_IMAGES, 'logos': [], 'favicons': []}
        return web.json_response(empty, dumps=compact_dumps)

    coordinator = request.app[COORDINATOR_KEY]
    report = await coordinator.crawl(url)
    return web.json_response(report.assets(), dumps=compact_dumps)


async def handle_metrics(request: web.Request) -> web.Response:
    metrics = request.app.get(METRICS_KEY)
    if metrics is None:
        raise web.HTTPNotFound(text="Metrics disabled")
    return web.Response(body=metrics.render(), headers={'Content-Type': metrics.content_type})


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({'status': 'ok'}, dumps=compact_dumps)


def create_app(config: Optional[Config] = None,
               coordinator: Optional[CrawlCoordinator] = None) -> web.Application:
    """
    Build the web application.

    Args:
        config: Application configuration (defaults apply when omitted)
        coordinator: Pre-built coordinator, e.g. one with a fake fetcher in tests
    """
    config = config or Config()
    app = web.Application()

    metrics = None
    if config.monitoring.metrics_enabled:
        metrics = coordinator.metrics if coordinator and coordinator.metrics else CrawlMetrics()
        app[METRICS_KEY] = metrics

    app[COORDINATOR_KEY] = coordinator or CrawlCoordinator(config.crawler, metrics=metrics)

    async def close_coordinator(app: web.Application):
        await app[COORDINATOR_KEY].close()

    app.on_cleanup.append(close_coordinator)

    for path, handler in (('/main', handle_main), ('/main/assets', handle_assets)):
        app.router.add_get(path, handler)
        app.router.add_post(path, handler)
    app.router.add_get('/metrics', handle_metrics)
    app.router.add_get('/health', handle_health)

    logger.debug("Web application created")
    return app


def run_server(config: Config):
    """Serve the application until interrupted."""
    app = create_app(config)
    logger.info(f"Serving on http://{config.server.host}:{config.server.port}/main")
    web.run_app(app, host=config.server.host, port=config.server.port, print=None)
