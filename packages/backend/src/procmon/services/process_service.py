"""Process service — business logic behind the process endpoints.

Learn: Routes translate HTTP to service calls; the service works on the
store and publishes realtime events. Failures are domain exceptions
(ProcessNotFoundError, RetryNotAllowedError) that the routes map to
404 / 400, so the service never imports HTTP concepts.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from procmon.events.types import PROCESS_UPDATE, UPDATE_RETRY
from procmon.realtime.pubsub import publish_event
from procmon.schemas.process import (
    ENVIRONMENTS,
    STATUSES,
    DashboardSummary,
    FilterOptions,
    LogEntry,
    ProcessExecution,
    ProcessFilters,
    ProcessPage,
    ProcessQuery,
)
from procmon.services.dashboard import build_dashboard_summary
from procmon.services.mock_data import build_execution_logs, generate_process
from procmon.store import ProcessStore

logger = structlog.get_logger()


class ProcessNotFoundError(Exception):
    """Raised when no process has the requested id."""

    def __init__(self, process_id):
        super().__init__("Process not found")
        self.process_id = process_id


class RetryNotAllowedError(Exception):
    """Raised when retrying a process that has not failed."""


class ProcessService:
    """Queries and actions over the process store."""

    def __init__(self, store: ProcessStore):
        self.store = store

    # ─── Read ────────────────────────────────────────────

    def list_processes(self, query: ProcessQuery) -> ProcessPage:
        data, pagination = self.store.query(query)
        filters = ProcessFilters(
            environment=query.environment,
            status=query.status,
            trading_partner=query.trading_partner,
            start_date=query.start_date,
            end_date=query.end_date,
            search=query.search,
        )
        return ProcessPage(data=data, pagination=pagination, filters=filters)

    def export_processes(self, query: ProcessQuery) -> list[ProcessExecution]:
        """Every filtered record in sort order, ignoring pagination."""
        return self.store.filter(query)

    def get_process(self, process_id) -> ProcessExecution:
        process = self.store.get(process_id)
        if not process:
            raise ProcessNotFoundError(process_id)
        return process

    def get_logs(self, process_id) -> list[LogEntry]:
        return build_execution_logs(self.get_process(process_id))

    def filter_options(self) -> FilterOptions:
        return FilterOptions(
            environments=ENVIRONMENTS,
            statuses=STATUSES,
            trading_partners=self.store.trading_partners(),
        )

    def dashboard_summary(self, now: Optional[datetime] = None) -> DashboardSummary:
        return build_dashboard_summary(self.store.all(), now)

    # ─── Actions ─────────────────────────────────────────

    async def retry_process(self, process_id, actor: Optional[str] = None) -> ProcessExecution:
        """Start a new run of a failed process.

        Learn: The failed record is left untouched — a retry is a brand-new
        "In Progress" record (processId + "_RETRY") at the front of the
        store, which the simulator will complete on a later tick.
        """
        original = self.get_process(process_id)
        if original.status != "Failed":
            raise RetryNotAllowedError("Only failed processes can be retried")

        now = datetime.now(timezone.utc)
        retry = generate_process(
            self.store.next_id(),
            now=now,
            status="In Progress",
            start_time=now,
            process_id=f"{original.process_id}_RETRY",
            process_name=original.process_name,
            environment=original.environment,
            trading_partner=original.trading_partner,
        )
        self.store.add(retry)

        logger.info(
            "process.retry_started",
            original_id=original.id,
            retry_id=retry.id,
            process_id=retry.process_id,
            actor=actor,
        )
        await publish_event(PROCESS_UPDATE, {
            "type": UPDATE_RETRY,
            "process": retry.model_dump(mode="json", by_alias=True),
        })
        return retry
