"""Tests for executing individual crawl tasks."""

from imagefinder.crawler.run import CrawlRun, CrawlTask
from imagefinder.crawler.task import PageCrawler

from .helpers import FakeFetcher, page


SEED = "https://example.com/"


def drain(run):
    """Pop every queued task."""
    tasks = []
    while not run.queue.empty():
        tasks.append(run.queue.get_nowait())
    return tasks


async def crawl_one(crawler, run, task):
    """Submit and execute a single task the way a worker would."""
    run.submit(task)
    queued = run.queue.get_nowait()
    await crawler.crawl(run, queued)


class TestPageCrawler:
    """Tests for PageCrawler.crawl."""

    async def test_seed_page_scenario(self):
        """Three images and three links: only the two same-host links are queued."""
        fetcher = FakeFetcher({
            SEED: page(
                images=[
                    ("https://example.com/img/one.png", "one"),
                    ("https://cdn.example.net/two.png", "two"),
                    ("img/three.png", "three"),
                ],
                links=[
                    "https://example.com/about",
                    "/contact",
                    "https://elsewhere.org/",
                ],
            )
        })
        crawler = PageCrawler(fetcher, max_depth=2, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert sorted(run.results.image_urls()) == [
            "https://cdn.example.net/two.png",
            "https://example.com/img/one.png",
            "https://example.com/img/three.png",
        ]
        children = drain(run)
        assert sorted(t.url for t in children) == [
            "https://example.com/about",
            "https://example.com/contact",
        ]
        assert all(t.depth == 1 for t in children)
        assert all(t.parent_host == "example.com" for t in children)
        assert run.outstanding == 2

    async def test_collects_logos_and_favicons(self):
        fetcher = FakeFetcher({
            SEED: page(
                images=[("/static/logo.svg", ""), ("/static/brand.png", "Company Logo"),
                        ("/static/photo.jpg", "photo")],
                icons=[("icon", "/favicon.ico"), ("stylesheet", "/site.css")],
            )
        })
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert sorted(run.results.logos.snapshot()) == [
            "https://example.com/static/brand.png",
            "https://example.com/static/logo.svg",
        ]
        assert run.results.favicons.snapshot() == ["https://example.com/favicon.ico"]
        assert set(run.results.logos.snapshot()) <= set(run.results.image_urls())

    async def test_skips_empty_sources(self):
        fetcher = FakeFetcher({SEED: page(images=[("", "empty")], links=[""])})
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert run.results.image_urls() == []
        assert drain(run) == []

    async def test_depth_beyond_max_is_not_fetched(self):
        fetcher = FakeFetcher({SEED: page()})
        crawler = PageCrawler(fetcher, max_depth=1, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 2, "example.com"))

        assert fetcher.fetch_counts[SEED] == 0
        assert run.outstanding == 0
        assert run.stats.tasks_skipped == 1

    async def test_children_beyond_max_depth_not_submitted(self):
        fetcher = FakeFetcher({SEED: page(links=["/deeper"])})
        crawler = PageCrawler(fetcher, max_depth=0, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert fetcher.fetch_counts[SEED] == 1
        assert drain(run) == []
        assert run.outstanding == 0

    async def test_already_visited_is_not_fetched(self):
        fetcher = FakeFetcher({SEED: page()})
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)
        run.visited.add_if_absent(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert fetcher.fetch_counts[SEED] == 0
        assert run.outstanding == 0

    async def test_visited_links_not_resubmitted(self):
        fetcher = FakeFetcher({SEED: page(links=["/seen", "/new"])})
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)
        run.visited.add_if_absent("https://example.com/seen")

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert [t.url for t in drain(run)] == ["https://example.com/new"]

    async def test_fetch_failure_abandons_branch(self):
        fetcher = FakeFetcher({})
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert fetcher.fetch_counts[SEED] == 1
        assert run.outstanding == 0
        assert run.stats.fetch_errors == 1
        assert drain(run) == []
        assert SEED in run.visited

    async def test_cancelled_run_does_not_fetch(self):
        fetcher = FakeFetcher({SEED: page()})
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)
        run.cancel()

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert fetcher.fetch_counts[SEED] == 0
        assert run.outstanding == 0

    async def test_links_compared_against_current_page_host(self):
        """The comparison uses the page's own host, not the parent host it carries."""
        page_url = "https://other.example.org/start"
        fetcher = FakeFetcher({
            page_url: page(links=["https://other.example.org/next", "https://example.com/back"])
        })
        crawler = PageCrawler(fetcher, politeness_delay=0)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(page_url, 1, "example.com"))

        children = drain(run)
        assert [t.url for t in children] == ["https://other.example.org/next"]
        assert children[0].parent_host == "other.example.org"

    async def test_metrics_recorded(self, metrics):
        fetcher = FakeFetcher({SEED: page(images=[("/logo.png", "")], icons=[("icon", "/f.ico")])})
        crawler = PageCrawler(fetcher, politeness_delay=0, metrics=metrics)
        run = CrawlRun(SEED)

        await crawl_one(crawler, run, CrawlTask(SEED, 0, "example.com"))

        assert metrics.get_sample("imagefinder_pages_fetched_total") == 1
        assert metrics.get_sample("imagefinder_assets_found_total", {"kind": "image"}) == 1
        assert metrics.get_sample("imagefinder_assets_found_total", {"kind": "logo"}) == 1
        assert metrics.get_sample("imagefinder_assets_found_total", {"kind": "favicon"}) == 1
        assert metrics.get_sample("imagefinder_active_tasks") == 0
