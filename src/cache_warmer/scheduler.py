"""
Batched execution of page visits.

BatchScheduler splits the prioritized URLs into fixed-size batches and runs
each batch under a fresh browser process. Long-lived browsers accumulate
memory and state over large crawls; recycling per batch bounds that growth.

Two execution models are supported:
- sequential: pages of a batch are visited one after another
- pool: max_concurrency workers pull from a shared queue and visit pages
  concurrently, each in its own browser context of the batch's browser
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

from .infrastructure.browser_session import BrowserSession
from .models import Outcome, Statistics, UrlRecord
from .session_runner import SessionRunner

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], BrowserSession]


def make_batches(records: Sequence[UrlRecord], batch_size: int) -> List[List[UrlRecord]]:
    """Split records into contiguous slices of at most batch_size."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [list(records[i:i + batch_size]) for i in range(0, len(records), batch_size)]


class BatchScheduler:
    """
    Runs SessionRunner over batches of URLs and aggregates their outcomes.

    Statistics of one run() call are updated under a lock so concurrent
    workers never lose an increment.
    """

    def __init__(
        self,
        config,
        runner: Optional[SessionRunner] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            config: WarmerConfig
            runner: Page visitor (defaults to SessionRunner(config))
            session_factory: Creates one browser session per batch
        """
        self.config = config
        self.runner = runner or SessionRunner(config)
        self.session_factory = session_factory or self._default_session
        self._stats_lock = asyncio.Lock()

    def _default_session(self) -> BrowserSession:
        return BrowserSession(
            headless=self.config.headless,
            launch_args=self.config.launch_args,
            ignore_https_errors=self.config.ignore_https_errors,
        )

    @property
    def mode(self) -> str:
        return self.config.execution_mode

    async def run(self, records: Sequence[UrlRecord]) -> Statistics:
        """
        Warm every record.

        Args:
            records: Prioritized URLs

        Returns:
            Statistics for this call
        """
        start_time = time.time()
        stats = Statistics(total=len(records))
        batches = make_batches(records, self.config.batch_size)

        for index, batch in enumerate(batches, start=1):
            logger.info(f"Processing batch {index}/{len(batches)} ({len(batch)} URLs, mode={self.mode})")
            visited_before = stats.success + stats.failed
            try:
                async with self.session_factory() as session:
                    if self.mode == "pool":
                        await self._run_pool(batch, session, stats)
                    else:
                        await self._run_sequential(batch, session, stats)
            except Exception as e:
                # Browser failed to launch or crashed; URLs not yet visited count as failed
                remaining = len(batch) - (stats.success + stats.failed - visited_before)
                logger.error(f"Batch {index} aborted, {remaining} URLs not warmed - {type(e).__name__}: {e}")
                await self._fail_remaining(stats, remaining)
            else:
                logger.info(f"Browser closed after batch {index}")

        stats.execution_time_seconds = time.time() - start_time
        return stats

    async def _run_sequential(self, batch: List[UrlRecord], session, stats: Statistics) -> None:
        for record in batch:
            outcome = await self.runner.visit(record, session)
            await self._record(stats, outcome)

    async def _run_pool(self, batch: List[UrlRecord], session, stats: Statistics) -> None:
        queue: asyncio.Queue = asyncio.Queue()
        for record in batch:
            queue.put_nowait(record)

        async def worker() -> None:
            while True:
                try:
                    record = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    outcome = await self.runner.visit(record, session)
                    await self._record(stats, outcome)
                finally:
                    queue.task_done()

        worker_count = min(self.config.max_concurrency, len(batch))
        await asyncio.gather(*(worker() for _ in range(worker_count)))

    async def _record(self, stats: Statistics, outcome: Outcome) -> None:
        async with self._stats_lock:
            stats.record(outcome)

    async def _fail_remaining(self, stats: Statistics, remaining: int) -> None:
        async with self._stats_lock:
            stats.failed += remaining