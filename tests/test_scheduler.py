"""Tests for batched execution."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from cache_warmer.models import Outcome, OutcomeStatus, UrlRecord
from cache_warmer.scheduler import BatchScheduler, make_batches
from cache_warmer.session_runner import SessionRunner


def records(count):
    return [UrlRecord(url=f"https://example.test/page/{i}") for i in range(count)]


class TestMakeBatches:
    """Test cases for make_batches()."""

    def test_fixed_size_slices(self):
        batches = make_batches(records(120), 50)
        assert [len(batch) for batch in batches] == [50, 50, 20]

    def test_order_preserved(self):
        items = records(7)
        batches = make_batches(items, 3)
        assert [r for batch in batches for r in batch] == items

    def test_empty(self):
        assert make_batches([], 50) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            make_batches(records(3), 0)


class TestBatchSchedulerSequential:
    """Test cases for the sequential-within-batch model."""

    @pytest.mark.asyncio
    async def test_one_session_per_batch(self, fast_config, session_factory_cls):
        config = fast_config.model_copy(update={"batch_size": 50})
        factory = session_factory_cls()
        scheduler = BatchScheduler(config, session_factory=factory)

        stats = await scheduler.run(records(120))

        assert len(factory.sessions) == 3
        assert all(s.entered and s.exited for s in factory.sessions)
        assert [len(s.opened) for s in factory.sessions] == [50, 50, 20]
        assert stats.total == 120
        assert stats.success == 120
        assert stats.failed == 0

    @pytest.mark.asyncio
    async def test_visits_in_order(self, fast_config, session_factory_cls):
        visited = []

        class RecordingRunner(SessionRunner):
            async def visit(self, record, session):
                visited.append(record.url)
                return Outcome(url=record.url, status=OutcomeStatus.SUCCESS, cache_generated=True)

        items = records(5)
        config = fast_config.model_copy(update={"batch_size": 2})
        scheduler = BatchScheduler(config, runner=RecordingRunner(config), session_factory=session_factory_cls())

        stats = await scheduler.run(items)

        assert visited == [r.url for r in items]
        assert stats.cache_generated == 5

    @pytest.mark.asyncio
    async def test_failures_counted(self, fast_config, session_factory_cls, fake_page_cls):
        results = [[200], [500], [PlaywrightError("reset")], [200]]
        factory = session_factory_cls(page_factory=lambda: fake_page_cls(results=results.pop(0)))
        scheduler = BatchScheduler(fast_config, session_factory=factory)

        stats = await scheduler.run(records(4))

        assert stats.total == 4
        assert stats.success == 2
        assert stats.failed == 2
        assert stats.execution_time_seconds >= 0

    @pytest.mark.asyncio
    async def test_launch_failure_skips_only_that_batch(self, fast_config, session_factory_cls):
        config = fast_config.model_copy(update={"batch_size": 2})
        factory = session_factory_cls(fail_on={1})
        scheduler = BatchScheduler(config, session_factory=factory)

        stats = await scheduler.run(records(5))

        assert len(factory.sessions) == 3
        assert stats.total == 5
        assert stats.failed == 2
        assert stats.success == 3

    @pytest.mark.asyncio
    async def test_empty_input(self, fast_config, session_factory_cls):
        factory = session_factory_cls()
        stats = await BatchScheduler(fast_config, session_factory=factory).run([])

        assert stats.total == 0
        assert factory.sessions == []


class TestBatchSchedulerPool:
    """Test cases for the bounded worker pool model."""

    @pytest.fixture
    def pool_config(self, fast_config):
        return fast_config.model_copy(update={"execution_mode": "pool", "max_concurrency": 3})

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, pool_config, session_factory_cls, fake_page_cls):
        factory = session_factory_cls(page_factory=lambda: fake_page_cls(results=[200], delay=0.01))
        scheduler = BatchScheduler(pool_config, session_factory=factory)

        stats = await scheduler.run(records(10))

        session = factory.sessions[0]
        assert 1 < session.max_active <= 3
        assert session.active == 0
        assert stats.success == 10

    @pytest.mark.asyncio
    async def test_no_lost_updates(self, pool_config, session_factory_cls):
        class YieldingRunner(SessionRunner):
            async def visit(self, record, session):
                await asyncio.sleep(0)
                status = OutcomeStatus.SUCCESS if record.url.endswith(("0", "2", "4", "6", "8")) \
                    else OutcomeStatus.NETWORK_ERROR
                return Outcome(url=record.url, status=status, cache_generated=status == OutcomeStatus.SUCCESS)

        config = pool_config.model_copy(update={"batch_size": 7})
        scheduler = BatchScheduler(config, runner=YieldingRunner(config), session_factory=session_factory_cls())

        stats = await scheduler.run(records(100))

        assert stats.success + stats.failed == 100
        assert stats.success == 50
        assert stats.cache_generated == 50

    @pytest.mark.asyncio
    async def test_batches_recycle_browser(self, pool_config, session_factory_cls):
        config = pool_config.model_copy(update={"batch_size": 4})
        factory = session_factory_cls()

        await BatchScheduler(config, session_factory=factory).run(records(10))

        assert [len(s.opened) for s in factory.sessions] == [4, 4, 2]
        assert all(s.exited for s in factory.sessions)

    @pytest.mark.asyncio
    async def test_worker_failures_are_independent(self, pool_config, session_factory_cls, fake_page_cls):
        pages = iter([PlaywrightError("down")] * 2 + [200] * 4)
        factory = session_factory_cls(page_factory=lambda: fake_page_cls(results=[next(pages)]))

        stats = await BatchScheduler(pool_config, session_factory=factory).run(records(6))

        assert stats.failed == 2
        assert stats.success == 4


class TestDefaultSession:
    """Test cases for the browser session built from configuration."""

    def test_tls_errors_not_ignored_by_default(self, fast_config):
        session = BatchScheduler(fast_config).session_factory()
        assert session.ignore_https_errors is False

    def test_session_follows_config(self, fast_config):
        config = fast_config.model_copy(update={"ignore_https_errors": True, "headless": False})
        session = BatchScheduler(config).session_factory()

        assert session.ignore_https_errors is True
        assert session.headless is False
        assert session.launch_args == config.launch_args
