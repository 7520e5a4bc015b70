"""In-memory process store — the single record set behind the API.

Learn: There is no database. The store holds a plain list of
ProcessExecution records, newest first, and answers the list/filter
queries the API needs. Records are mutated in place (by the simulator
or a retry) and never deleted.

Everything here runs on the event loop thread, so there is no locking.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from procmon.schemas.process import (
    Pagination,
    ProcessExecution,
    ProcessQuery,
)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored times."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# sortBy value → record attribute
_SORT_KEYS = {
    "startTime": lambda p: p.start_time,
    "processName": lambda p: p.process_name,
    "status": lambda p: p.status,
    "environment": lambda p: p.environment,
}


class ProcessStore:
    """List-backed store of process executions."""

    def __init__(self, records: Optional[Iterable[ProcessExecution]] = None):
        self._records: list[ProcessExecution] = list(records or [])

    def __len__(self) -> int:
        return len(self._records)

    # ─── Write ───────────────────────────────────────────

    def seed(self, records: Iterable[ProcessExecution]) -> None:
        """Replace the whole record set."""
        self._records = list(records)

    def add(self, record: ProcessExecution) -> ProcessExecution:
        """Insert a record at the front (newest first)."""
        self._records.insert(0, record)
        return record

    def next_id(self) -> int:
        return max((p.id for p in self._records), default=0) + 1

    # ─── Read ────────────────────────────────────────────

    def all(self) -> list[ProcessExecution]:
        return list(self._records)

    def get(self, process_id) -> Optional[ProcessExecution]:
        """Look up by id. The id is compared as a string, so "7" finds 7."""
        key = str(process_id)
        for record in self._records:
            if str(record.id) == key:
                return record
        return None

    def in_progress(self) -> list[ProcessExecution]:
        return [p for p in self._records if p.status == "In Progress"]

    def trading_partners(self) -> list[str]:
        return sorted({p.trading_partner for p in self._records})

    # ─── Query ───────────────────────────────────────────

    def filter(self, query: ProcessQuery) -> list[ProcessExecution]:
        """Apply the query's filters and sort order (no pagination)."""
        matches = [p for p in self._records if _matches(p, query)]
        return sorted(
            matches,
            key=_SORT_KEYS[query.sort_by],
            reverse=query.sort_order == "desc",
        )

    def query(self, query: ProcessQuery) -> tuple[list[ProcessExecution], Pagination]:
        """Filter, sort and slice out one page.

        Learn: Pages never overlap and are at most `limit` long; walking
        page=1..totalPages visits every filtered record exactly once.
        A page past the end is simply empty.
        """
        matches = self.filter(query)
        start = (query.page - 1) * query.limit
        page = matches[start:start + query.limit]

        total_items = len(matches)
        total_pages = math.ceil(total_items / query.limit)
        pagination = Pagination(
            current_page=query.page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=query.limit,
            has_next_page=query.page < total_pages,
            has_prev_page=query.page > 1,
        )
        return page, pagination


def _matches(process: ProcessExecution, query: ProcessQuery) -> bool:
    if query.environment and process.environment != query.environment:
        return False
    if query.status and process.status != query.status:
        return False
    if query.trading_partner and process.trading_partner != query.trading_partner:
        return False
    if query.start_date and process.start_time < as_utc(query.start_date):
        return False
    if query.end_date and process.start_time > as_utc(query.end_date):
        return False
    if query.search:
        needle = query.search.lower()
        return (
            needle in process.process_name.lower()
            or needle in process.process_id.lower()
            or needle in process.trading_partner.lower()
        )
    return True


# Singleton — seeded in the app lifespan
process_store = ProcessStore()


def get_store() -> ProcessStore:
    """FastAPI dependency — the shared process store."""
    return process_store
