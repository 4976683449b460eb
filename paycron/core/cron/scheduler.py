"""PaymentScheduler — single control loop dispatching due jobs as asyncio tasks."""

from __future__ import annotations

import asyncio
import copy
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable

from loguru import logger

from paycron.core.cron.job import Clock, Job, utcnow

if TYPE_CHECKING:
    from paycron.core.config.schema import ConnectionConfig
    from paycron.lnurl.negotiator import InvoiceNegotiator
    from paycron.nodes.executor import PaymentExecutor

Sleep = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    SELECTING = "selecting"
    DRAINING = "draining"  # no job has a pending next_run
    STOPPED = "stopped"  # stop() interrupted the wait


class PaymentScheduler:
    """Owns the jobs and is the only writer of their ``next_run``/``last_run``.

    Each iteration picks the most imminent due job, sleeps until it is due,
    advances it and hands a deep copy to a background task. The loop never
    awaits those tasks, so a slow payment cannot delay the next job.
    """

    def __init__(
        self,
        jobs: list[Job],
        connection: ConnectionConfig,
        negotiator: InvoiceNegotiator | None = None,
        executor: PaymentExecutor | None = None,
        clock: Clock = utcnow,
        sleep: Sleep = asyncio.sleep,
    ):
        from paycron.lnurl.negotiator import InvoiceNegotiator
        from paycron.nodes.executor import PaymentExecutor

        self.jobs = jobs
        self.connection = connection
        self.negotiator = negotiator or InvoiceNegotiator()
        self.executor = executor or PaymentExecutor()
        self.clock = clock
        self._sleep = sleep
        self.state = SchedulerState.SELECTING
        self._tasks: set[asyncio.Task] = set()
        self._wait: asyncio.Task | None = None
        self._stopping = False

    # ── Selection ─────────────────────────────────────────────

    def select_next(self) -> Job | None:
        """Due job with the earliest ``next_run``; first registered wins ties."""
        due = [job for job in self.jobs if job.is_due]
        if not due:
            return None
        # min() keeps the first of equal keys
        return min(due, key=lambda job: job.next_run)

    # ── Loop ──────────────────────────────────────────────────

    async def run(self) -> SchedulerState:
        """Run until no job is due (DRAINING) or ``stop()`` is called (STOPPED)."""
        logger.info(f"PaymentScheduler started with {len(self.jobs)} jobs")
        while not self._stopping:
            job = self.select_next()
            if job is None:
                self.state = SchedulerState.DRAINING
                logger.info("No more jobs to execute, scheduler drained")
                return self.state

            delay = (job.next_run - self.clock()).total_seconds()
            if delay > 0:
                logger.info(
                    f"Waiting {delay:.0f}s to run job {job.name} at {job.next_run.isoformat()}"
                )
                if not await self._wait_for(delay):
                    break

            job.advance()
            self.dispatch(job)

        self.state = SchedulerState.STOPPED
        logger.info("PaymentScheduler stopped")
        return self.state

    async def _wait_for(self, delay: float) -> bool:
        """Sleep ``delay`` seconds. False if ``stop()`` cancelled the wait."""
        self._wait = asyncio.ensure_future(self._sleep(delay))
        try:
            await self._wait
        except asyncio.CancelledError:
            if not self._stopping:
                raise
            return False
        finally:
            self._wait = None
        return not self._stopping

    def dispatch(self, job: Job) -> asyncio.Task:
        """Start ``execute()`` on a snapshot of ``job`` without waiting for it."""
        snapshot = copy.deepcopy(job)
        connection = self.connection.model_copy()
        task = asyncio.create_task(
            snapshot.execute(connection, self.negotiator, self.executor),
            name=f"paycron:{job.name}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Dispatched job {job.name} (next run {job.next_run})")
        return task

    # ── Lifecycle ─────────────────────────────────────────────

    def stop(self) -> None:
        """Interrupt the pending wait; no further jobs are dispatched."""
        self._stopping = True
        if self._wait is not None:
            self._wait.cancel()

    @property
    def running_count(self) -> int:
        """Number of dispatched executions still in flight."""
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Wait for all dispatched executions to finish."""
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} running jobs to finish")
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
