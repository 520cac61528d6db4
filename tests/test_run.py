"""Tests for per-run state and the outstanding-task counter."""

import asyncio

import pytest

from imagefinder.crawler.run import CrawlRun, CrawlTask, TaskCounter
from imagefinder.exceptions import CrawlerError


class TestTaskCounter:
    """Tests for TaskCounter."""

    def test_starts_at_zero(self):
        assert TaskCounter().value == 0

    def test_increment_and_decrement(self):
        counter = TaskCounter()
        assert counter.increment() == 1
        assert counter.increment() == 2
        assert counter.decrement() == 1
        assert counter.decrement() == 0

    def test_never_goes_negative(self):
        counter = TaskCounter()
        with pytest.raises(CrawlerError):
            counter.decrement()
        assert counter.value == 0

    async def test_wait_zero_returns_immediately_when_idle(self):
        await asyncio.wait_for(TaskCounter().wait_zero(), timeout=1)

    async def test_wait_zero_wakes_on_last_decrement(self):
        counter = TaskCounter()
        counter.increment()
        counter.increment()

        waiter = asyncio.create_task(counter.wait_zero())
        await asyncio.sleep(0)
        counter.decrement()
        await asyncio.sleep(0)
        assert not waiter.done()

        counter.decrement()
        await asyncio.wait_for(waiter, timeout=1)

    async def test_wait_zero_blocks_after_reincrement(self):
        counter = TaskCounter()
        counter.increment()
        counter.decrement()
        counter.increment()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(counter.wait_zero(), timeout=0.05)


class TestCrawlRun:
    """Tests for CrawlRun."""

    async def test_fresh_state(self):
        run = CrawlRun("https://example.com/", timeout=10)
        assert run.outstanding == 0
        assert len(run.visited) == 0
        assert run.results.to_dict() == {"images": [], "logos": [], "favicons": []}
        assert run.queue.empty()
        assert run.deadline == pytest.approx(run.stats.start_time + 10)
        assert not run.cancelled

    async def test_runs_do_not_share_state(self):
        first = CrawlRun("https://a.example.com/")
        second = CrawlRun("https://b.example.com/")
        first.visited.add_if_absent("https://a.example.com/")
        first.results.add_image("https://a.example.com/logo.png")

        assert len(second.visited) == 0
        assert second.results.image_urls() == []
        assert first.run_id != second.run_id

    async def test_submit_counts_before_queueing(self):
        run = CrawlRun("https://example.com/")
        task = CrawlTask("https://example.com/", 0, "example.com")
        run.submit(task)

        assert run.outstanding == 1
        assert run.stats.tasks_submitted == 1
        assert run.queue.get_nowait() == task

    async def test_max_pages_caps_visited_set(self):
        run = CrawlRun("https://example.com/", max_pages=1)
        assert run.visited.add_if_absent("https://example.com/")
        assert not run.visited.add_if_absent("https://example.com/other")

    async def test_cancel_sets_flag(self):
        run = CrawlRun("https://example.com/")
        run.cancel()
        assert run.cancelled
