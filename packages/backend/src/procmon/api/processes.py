"""Process API routes.

Learn: These routes are the HTTP interface to the process service.
The service does the work; routes validate input, translate domain
errors into status codes, and shape responses.

Key patterns:
- Query params for filtering/sorting/pagination, validated up front
  (unknown params are rejected, bad values → 400 via the error handlers)
- Static paths (/dashboard, /export, /metadata/filters) are declared
  before /{process_id} so they are never read as an id
- Retry is the only write and is restricted to admins
"""

import csv
import io
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response

from procmon.auth.dependencies import CurrentIdentity, require_role
from procmon.schemas.process import (
    DashboardSummary,
    Environment,
    FilterOptions,
    ProcessExecution,
    ProcessLogs,
    ProcessPage,
    ProcessQuery,
    ProcessStatus,
    RetryResponse,
    SortField,
    SortOrder,
)
from procmon.services.process_service import (
    ProcessNotFoundError,
    ProcessService,
    RetryNotAllowedError,
)
from procmon.store import ProcessStore, get_store

router = APIRouter(prefix="/processes")

QUERY_PARAMS = {
    "environment", "status", "tradingPartner", "startDate", "endDate",
    "search", "page", "limit", "sortBy", "sortOrder",
}

EXPORT_COLUMNS = [
    "id", "processId", "processName", "status", "environment", "tradingPartner",
    "startTime", "endTime", "executionTime", "recordsProcessed", "errorCode", "errorMessage",
]


def _svc(store: ProcessStore = Depends(get_store)) -> ProcessService:
    return ProcessService(store)


def process_query(
    request: Request,
    environment: Optional[Environment] = Query(None),
    status: Optional[ProcessStatus] = Query(None),
    trading_partner: Optional[str] = Query(None, alias="tradingPartner", min_length=1),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: SortField = Query("startTime", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
) -> ProcessQuery:
    """Collect and validate the list/export query parameters."""
    unknown = sorted(set(request.query_params) - QUERY_PARAMS)
    if unknown:
        raise RequestValidationError([
            {"type": "extra_forbidden", "loc": ("query", name), "msg": "is not allowed", "input": None}
            for name in unknown
        ])
    return ProcessQuery(
        environment=environment,
        status=status,
        trading_partner=trading_partner,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Process not found")


# ═══════════════════════════════════════════════════════════
# Collection
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=ProcessPage)
async def list_processes(
    query: ProcessQuery = Depends(process_query),
    svc: ProcessService = Depends(_svc),
):
    """Fetch processes with filtering, pagination, and sorting."""
    return svc.list_processes(query)


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(svc: ProcessService = Depends(_svc)):
    """Dashboard summary statistics over the whole record set."""
    return svc.dashboard_summary()


@router.get("/export")
async def export_processes(
    query: ProcessQuery = Depends(process_query),
    svc: ProcessService = Depends(_svc),
):
    """Download the filtered, sorted record set as CSV (no pagination)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for p in svc.export_processes(query):
        writer.writerow([
            p.id,
            p.process_id,
            p.process_name,
            p.status,
            p.environment,
            p.trading_partner,
            p.start_time.isoformat(),
            p.end_time.isoformat() if p.end_time else "",
            p.execution_time if p.execution_time is not None else "",
            p.records_processed,
            p.error_details.error_code if p.error_details else "",
            p.error_details.message if p.error_details else "",
        ])
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="processes.csv"'},
    )


@router.get("/metadata/filters", response_model=FilterOptions)
async def get_filter_options(svc: ProcessService = Depends(_svc)):
    """Available filter values (trading partners come from the live data)."""
    return svc.filter_options()


# ═══════════════════════════════════════════════════════════
# Single process
# ═══════════════════════════════════════════════════════════


@router.get("/{process_id}", response_model=ProcessExecution)
async def get_process(process_id: str, svc: ProcessService = Depends(_svc)):
    """Get detailed information about a specific process."""
    try:
        return svc.get_process(process_id)
    except ProcessNotFoundError:
        raise _not_found()


@router.get("/{process_id}/logs", response_model=ProcessLogs)
async def get_process_logs(process_id: str, svc: ProcessService = Depends(_svc)):
    """Get execution logs for a specific process."""
    try:
        return ProcessLogs(logs=svc.get_logs(process_id))
    except ProcessNotFoundError:
        raise _not_found()


@router.post("/{process_id}/retry", response_model=RetryResponse)
async def retry_process(
    process_id: str,
    identity: CurrentIdentity = Depends(require_role("admin")),
    svc: ProcessService = Depends(_svc),
):
    """Retry a failed process (admin only).

    Learn: 404 for an unknown id, 400 when the process has not failed —
    the request is well-formed but the record is not retryable.
    """
    try:
        retry = await svc.retry_process(process_id, actor=identity.username)
    except ProcessNotFoundError:
        raise _not_found()
    except RetryNotAllowedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RetryResponse(message="Process retry initiated", new_process=retry)
