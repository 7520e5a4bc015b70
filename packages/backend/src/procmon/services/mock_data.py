"""Mock data generator for integration process executions.

Learn: There is no integration engine behind this dashboard — every
record is produced here. The generator draws from a random.Random
instance passed in by the caller, so a fixed seed (PROCMON_RANDOM_SEED,
or a seeded rng in tests) gives the same record set every time.

Generated records respect the model's invariants:
- "In Progress" runs have no endTime / executionTime
- only "Failed" runs carry errorDetails
- only "Warning" runs carry warnings
"""

import random
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from procmon.schemas.process import (
    ENVIRONMENTS,
    STATUSES,
    ErrorDetails,
    LogEntry,
    ProcessExecution,
    ProcessWarning,
)

TRADING_PARTNERS = [
    "Amazon", "Walmart", "Target", "Best Buy", "Home Depot",
    "Costco", "Kroger", "CVS", "Walgreens", "FedEx",
]

PROCESS_NAMES = [
    "Customer Order Processing",
    "Inventory Sync",
    "Payment Processing",
    "Shipping Label Generation",
    "Product Catalog Update",
    "Invoice Generation",
    "Return Processing",
    "Price Update Sync",
    "Customer Data Sync",
    "Financial Reporting",
]

ERROR_TYPES = [
    "Connection timeout",
    "Authentication failed",
    "Data validation error",
    "File not found",
    "Permission denied",
    "SQL constraint violation",
    "Memory allocation error",
    "Network unreachable",
]

_WORDS = (
    "record batch payload mapping connector endpoint schema field partner "
    "document shipment order invoice queue listener response request "
    "upstream downstream transform lookup segment envelope"
).split()

LOG_COMPONENT = "ExecutionEngine"
DEFAULT_RUN_MS = 60_000


def _code(rng: random.Random, length: int) -> str:
    return "".join(rng.choices(string.ascii_uppercase + string.digits, k=length))


def _sentence(rng: random.Random) -> str:
    words = rng.sample(_WORDS, rng.randint(4, 8))
    return " ".join(words).capitalize() + "."


def generate_stack_trace(rng: random.Random) -> str:
    return "\n".join([
        f"    at ProcessExecutor.execute(ProcessExecutor.java:{rng.randint(100, 999)})",
        f"    at ConnectorManager.processData(ConnectorManager.java:{rng.randint(50, 500)})",
        f"    at DataProcessor.transform(DataProcessor.java:{rng.randint(20, 200)})",
        f"    at ExecutionEngine.run(ExecutionEngine.java:{rng.randint(10, 100)})",
    ])


def generate_error_details(rng: random.Random, timestamp: datetime) -> ErrorDetails:
    error_type = rng.choice(ERROR_TYPES)
    return ErrorDetails(
        error_code=f"ERR_{_code(rng, 6)}",
        error_type=error_type,
        message=f"{error_type}: {_sentence(rng)}",
        stack_trace=generate_stack_trace(rng),
        timestamp=timestamp,
        retryable=rng.random() < 0.5,
        retry_count=rng.randint(0, 3),
    )


def generate_warnings(rng: random.Random, timestamp: datetime) -> list[ProcessWarning]:
    return [
        ProcessWarning(
            warning_code=f"WARN_{_code(rng, 6)}",
            message=_sentence(rng),
            timestamp=timestamp,
        )
    ]


def generate_process(
    process_id: int,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    **overrides,
) -> ProcessExecution:
    """Generate one process execution.

    Keyword overrides (snake_case field names) win over generated values.
    status and start_time are applied before the derived fields
    (end time, duration, error details) are computed, so an override
    like status="In Progress" still yields a consistent record.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    status = overrides.pop("status", None) or rng.choice(STATUSES)
    start_time = overrides.pop("start_time", None) or (
        now - timedelta(seconds=rng.uniform(0, 30 * 24 * 3600))
    )
    end_time = min(start_time + timedelta(milliseconds=rng.randint(1000, 300_000)), now)
    finished = status != "In Progress"

    fields = {
        "id": process_id,
        "process_id": f"PROC_{_code(rng, 8)}",
        "process_name": rng.choice(PROCESS_NAMES),
        "start_time": start_time,
        "end_time": end_time if finished else None,
        "status": status,
        "environment": rng.choice(ENVIRONMENTS),
        "trading_partner": rng.choice(TRADING_PARTNERS),
        "execution_time": _millis(end_time - start_time) if finished else None,
        "records_processed": rng.randint(10, 50_000),
        "error_details": generate_error_details(rng, end_time) if status == "Failed" else None,
        "warnings": generate_warnings(rng, end_time) if status == "Warning" else None,
        "created_at": start_time,
        "updated_at": end_time if finished else now,
    }
    fields.update(overrides)
    return ProcessExecution(**fields)


def generate_processes(
    count: int = 100,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    in_progress: int = 3,
) -> list[ProcessExecution]:
    """Generate `count` random runs plus a few fresh in-progress ones.

    The extra in-progress runs started 10s–10min ago so the simulator
    has something to complete right after startup. Newest first.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    processes = [generate_process(i + 1, rng, now) for i in range(count)]
    for i in range(in_progress):
        processes.append(generate_process(
            count + i + 1,
            rng,
            now,
            status="In Progress",
            start_time=now - timedelta(milliseconds=rng.randint(10_000, 600_000)),
        ))

    processes.sort(key=lambda p: p.start_time, reverse=True)
    return processes


def build_execution_logs(process: ProcessExecution) -> list[LogEntry]:
    """Derive execution log lines from a process record.

    Learn: Logs are not stored anywhere — they are rebuilt from the
    record on every request, so the same record always yields the same
    lines. Failed runs get 15 lines ending in an ERROR carrying the
    error details; lines past 70% of a "Warning" run are WARN.
    """
    count = 15 if process.status == "Failed" else 10
    run_ms = process.execution_time or DEFAULT_RUN_MS

    logs = []
    for i in range(count):
        level = "INFO"
        message = "Process execution step completed successfully"
        details = None

        if i == count - 1 and process.status == "Failed":
            level = "ERROR"
            details = process.error_details
            message = details.message if details else "Process execution failed"
        elif i > count * 0.7 and process.status == "Warning":
            level = "WARN"
            message = "Performance threshold exceeded, consider optimization"

        logs.append(LogEntry(
            id=i + 1,
            timestamp=process.start_time + timedelta(milliseconds=i * run_ms / count),
            level=level,
            message=message,
            component=LOG_COMPONENT,
            details=details,
        ))
    return logs


def _millis(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)
