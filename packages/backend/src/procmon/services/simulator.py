"""Execution simulator — completes in-progress runs in the background.

Learn: Nothing real executes behind the dashboard, so this worker plays
the integration engine. Every tick it walks the "In Progress" records;
each one finishes with probability `completion_probability`, and a
finished run succeeds with probability `success_rate`:

  In Progress → Success
              → Failed (ERR_TIMEOUT, retryable)

Each completion is pushed as a process-update (status-change) event,
followed by one dashboard-update with a fresh summary per tick.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Optional

import structlog

from procmon.events.types import DASHBOARD_UPDATE, PROCESS_UPDATE, UPDATE_STATUS_CHANGE
from procmon.realtime.pubsub import publish_event
from procmon.schemas.process import ErrorDetails, ProcessExecution
from procmon.services.dashboard import build_dashboard_summary
from procmon.store import ProcessStore

logger = structlog.get_logger()


def timeout_error(now: datetime) -> ErrorDetails:
    return ErrorDetails(
        error_code="ERR_TIMEOUT",
        error_type="Connection timeout",
        message="Connection timeout after 30 seconds",
        timestamp=now,
        retryable=True,
        retry_count=0,
    )


def complete_process(process: ProcessExecution, success: bool, now: datetime) -> None:
    """Finish a run in place."""
    process.status = "Success" if success else "Failed"
    process.end_time = now
    process.execution_time = int((now - process.start_time).total_seconds() * 1000)
    process.updated_at = now
    if not success:
        process.error_details = timeout_error(now)


class ExecutionSimulator:
    """Background worker that flips in-progress runs to a final status.

    Usage:
        simulator = ExecutionSimulator(store)
        asyncio.create_task(simulator.run_loop())
    """

    def __init__(
        self,
        store: ProcessStore,
        interval: float = 10.0,
        completion_probability: float = 0.1,
        success_rate: float = 0.8,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.interval = interval
        self.completion_probability = completion_probability
        self.success_rate = success_rate
        self.rng = rng or random.Random()
        self._running = False

    async def run_loop(self) -> None:
        """Main worker loop — one tick per interval until stopped."""
        self._running = True
        logger.info("simulator.started", interval=self.interval)

        while self._running:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("simulator.error")

    async def tick(self, now: Optional[datetime] = None) -> list[ProcessExecution]:
        """Run one simulation step. Returns the runs it completed."""
        now = now or datetime.now(timezone.utc)
        completed = []

        for process in self.store.in_progress():
            if self.rng.random() >= self.completion_probability:
                continue
            success = self.rng.random() < self.success_rate
            complete_process(process, success, now)
            completed.append(process)

            logger.info(
                "process.completed",
                process_id=process.process_id,
                status=process.status,
                execution_time=process.execution_time,
            )
            await publish_event(PROCESS_UPDATE, {
                "type": UPDATE_STATUS_CHANGE,
                "process": process.model_dump(mode="json", by_alias=True),
            })

        if completed:
            summary = build_dashboard_summary(self.store.all(), now)
            await publish_event(DASHBOARD_UPDATE, {
                "summary": summary.model_dump(mode="json", by_alias=True),
            })
        return completed

    def stop(self) -> None:
        """Signal the worker to stop."""
        self._running = False
        logger.info("simulator.stopping")
