"""Dashboard aggregation — counts and averages over time windows.

Learn: All windows are anchored at UTC midnight of "now":
- today:   [midnight, ∞)
- weekly:  [midnight - 7 days, ∞)
- monthly: [midnight - 30 days, ∞)
Daily trends cover the 7 calendar days ending today, oldest first.

Averages only count runs with a recorded (non-zero) execution time,
so in-progress runs never drag the mean down. Empty input gives zeros.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from procmon.schemas.process import (
    ENVIRONMENTS,
    DailyTrend,
    DashboardSummary,
    EnvironmentStats,
    PeriodStats,
    ProcessExecution,
    WindowStats,
)

TREND_DAYS = 7


def average_execution_time(processes: Sequence[ProcessExecution]) -> int:
    """Rounded mean executionTime (ms) over completed runs, 0 if none."""
    times = [p.execution_time for p in processes if p.execution_time]
    if not times:
        return 0
    return round(sum(times) / len(times))


def _count(processes: Sequence[ProcessExecution], status: str) -> int:
    return sum(1 for p in processes if p.status == status)


def window_stats(processes: Sequence[ProcessExecution]) -> WindowStats:
    return WindowStats(
        total=len(processes),
        success=_count(processes, "Success"),
        failed=_count(processes, "Failed"),
        in_progress=_count(processes, "In Progress"),
        warning=_count(processes, "Warning"),
    )


def period_stats(processes: Sequence[ProcessExecution]) -> PeriodStats:
    return PeriodStats(
        **window_stats(processes).model_dump(),
        avg_execution_time=average_execution_time(processes),
    )


def environment_breakdown(
    processes: Sequence[ProcessExecution],
) -> dict[str, EnvironmentStats]:
    breakdown = {}
    for env in ENVIRONMENTS:
        env_processes = [p for p in processes if p.environment == env]
        breakdown[env] = EnvironmentStats(
            total=len(env_processes),
            success=_count(env_processes, "Success"),
            failed=_count(env_processes, "Failed"),
            in_progress=_count(env_processes, "In Progress"),
        )
    return breakdown


def daily_trends(
    processes: Sequence[ProcessExecution],
    now: datetime,
    days: int = TREND_DAYS,
) -> list[DailyTrend]:
    today = _midnight(now)
    trends = []
    for offset in range(days - 1, -1, -1):
        day_start = today - timedelta(days=offset)
        day_end = day_start + timedelta(days=1)
        day = [p for p in processes if day_start <= p.start_time < day_end]
        trends.append(DailyTrend(
            date=day_start.date().isoformat(),
            total=len(day),
            success=_count(day, "Success"),
            failed=_count(day, "Failed"),
            avg_execution_time=average_execution_time(day),
        ))
    return trends


def build_dashboard_summary(
    processes: Sequence[ProcessExecution],
    now: Optional[datetime] = None,
) -> DashboardSummary:
    now = now or datetime.now(timezone.utc)
    today = _midnight(now)
    last_7_days = today - timedelta(days=7)
    last_30_days = today - timedelta(days=30)

    return DashboardSummary(
        total_processes=len(processes),
        today_stats=window_stats([p for p in processes if p.start_time >= today]),
        weekly_stats=period_stats([p for p in processes if p.start_time >= last_7_days]),
        monthly_stats=period_stats([p for p in processes if p.start_time >= last_30_days]),
        environment_breakdown=environment_breakdown(processes),
        daily_trends=daily_trends(processes, now),
    )


def _midnight(now: datetime) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
