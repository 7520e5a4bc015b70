"""Pydantic schemas for process executions and the dashboard.

Learn: Internally everything is snake_case; on the wire the dashboard
client speaks camelCase (processId, startTime, ...). The shared
CamelModel config handles that with an alias generator, and
populate_by_name lets Python code keep using the snake_case names.

- ProcessExecution: the one entity — a simulated run record
- ProcessQuery: validated filter/sort/pagination parameters
- ProcessPage: what GET /processes returns (page + pagination + filters)
- DashboardSummary: the time-windowed aggregation
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


ENVIRONMENTS = ["Dev", "Test", "Prod"]
STATUSES = ["Success", "Failed", "In Progress", "Warning"]
SORT_FIELDS = ["startTime", "processName", "status", "environment"]

Environment = Literal["Dev", "Test", "Prod"]
ProcessStatus = Literal["Success", "Failed", "In Progress", "Warning"]
SortField = Literal["startTime", "processName", "status", "environment"]
SortOrder = Literal["asc", "desc"]
LogLevel = Literal["INFO", "DEBUG", "WARN", "ERROR"]


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# ─── Process executions ──────────────────────────────────

class ErrorDetails(CamelModel):
    error_code: str
    error_type: str
    message: str
    stack_trace: Optional[str] = None
    timestamp: datetime
    retryable: bool
    retry_count: int = 0


class ProcessWarning(CamelModel):
    warning_code: str
    message: str
    timestamp: datetime


class ProcessExecution(CamelModel):
    """One simulated process run.

    endTime and executionTime stay null while the run is "In Progress";
    errorDetails is only set on failed runs, warnings only on runs that
    finished with status "Warning".
    """
    id: int
    process_id: str
    process_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: ProcessStatus
    environment: Environment
    trading_partner: str
    execution_time: Optional[int] = None  # milliseconds
    records_processed: int
    error_details: Optional[ErrorDetails] = None
    warnings: Optional[list[ProcessWarning]] = None
    created_at: datetime
    updated_at: datetime


class LogEntry(CamelModel):
    id: int
    timestamp: datetime
    level: LogLevel
    message: str
    component: str
    details: Optional[ErrorDetails] = None


class ProcessLogs(CamelModel):
    logs: list[LogEntry]


# ─── Querying ────────────────────────────────────────────

class ProcessQuery(CamelModel):
    """Filter, sort and pagination parameters for listing processes."""
    environment: Optional[Environment] = None
    status: Optional[ProcessStatus] = None
    trading_partner: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = Field(None, min_length=1, max_length=100)
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort_by: SortField = "startTime"
    sort_order: SortOrder = "desc"


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class ProcessFilters(CamelModel):
    """The filters that produced a page, echoed back to the client."""
    environment: Optional[Environment] = None
    status: Optional[ProcessStatus] = None
    trading_partner: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None


class ProcessPage(CamelModel):
    data: list[ProcessExecution]
    pagination: Pagination
    filters: ProcessFilters


class FilterOptions(CamelModel):
    environments: list[Environment]
    statuses: list[ProcessStatus]
    trading_partners: list[str]


class RetryResponse(CamelModel):
    message: str
    new_process: ProcessExecution


# ─── Dashboard ───────────────────────────────────────────

class WindowStats(CamelModel):
    total: int
    success: int
    failed: int
    in_progress: int
    warning: int


class PeriodStats(WindowStats):
    avg_execution_time: int  # milliseconds


class EnvironmentStats(CamelModel):
    total: int
    success: int
    failed: int
    in_progress: int


class DailyTrend(CamelModel):
    date: str  # YYYY-MM-DD
    total: int
    success: int
    failed: int
    avg_execution_time: int


class DashboardSummary(CamelModel):
    total_processes: int
    today_stats: WindowStats
    weekly_stats: PeriodStats
    monthly_stats: PeriodStats
    environment_breakdown: dict[str, EnvironmentStats]
    daily_trends: list[DailyTrend]
