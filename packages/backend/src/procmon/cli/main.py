"""procmon CLI — query the process monitor from a terminal.

Usage:
    procmon serve                                # Run the API server (uvicorn)
    procmon login admin admin123                 # Print an access token
    procmon processes --status Failed            # List processes (filters as in the API)
    procmon processes --since 2024-06-01         # ...started on or after a date
    procmon summary                              # Dashboard summary
    procmon show 42                              # One process as JSON
    procmon logs 42                              # Execution logs
    procmon retry 42                             # Retry a failed process (admin)
    procmon filters                              # Available filter values
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("PROCMON_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the procmon backend."""
    token = token or os.environ.get("PROCMON_TOKEN")
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. CliRunner inside an async test)
    by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _check(r: httpx.Response) -> None:
    """Exit with the API's error message on a non-2xx response."""
    if r.is_success:
        return
    try:
        body = r.json()
        message = body.get("message", r.text)
        if body.get("details"):
            message = f"{message}: {body['details']}"
    except ValueError:
        message = r.text
    click.secho(f"Error {r.status_code}: {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def format_duration(milliseconds: Optional[int]) -> str:
    """1234567 → '20m 34s'. None/0 → 'N/A'."""
    if not milliseconds:
        return "N/A"
    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    """Map process statuses to click colors."""
    colors = {
        "Success": "green",
        "Failed": "red",
        "In Progress": "yellow",
        "Warning": "magenta",
        "INFO": "white",
        "DEBUG": "blue",
        "WARN": "yellow",
        "ERROR": "red",
    }
    return colors.get(status, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="procmon")
def main():
    """procmon — monitor integration process executions."""


# ---------------------------------------------------------------------------
# procmon serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: PROCMON_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: PROCMON_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from procmon.config import settings

    uvicorn.run(
        "procmon.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# procmon login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("password")
def login(username: str, password: str):
    """Log in and print an access token (export it as PROCMON_TOKEN)."""
    _run(_login_impl(username, password))


async def _login_impl(username: str, password: str):
    async with _client() as c:
        r = await c.post("/api/auth/login", json={"username": username, "password": password})
        _check(r)
        body = r.json()
        click.secho(f"Logged in as {body['user']['username']} ({body['user']['role']})", fg="green", err=True)
        click.echo(body["token"])


# ---------------------------------------------------------------------------
# procmon processes
# ---------------------------------------------------------------------------


@main.command()
@click.option("--environment", "-e", type=click.Choice(["Dev", "Test", "Prod"]))
@click.option("--status", "-s", type=click.Choice(["Success", "Failed", "In Progress", "Warning"]))
@click.option("--partner", "-p", "trading_partner", help="Trading partner")
@click.option("--search", "-q", help="Search name, process id or partner")
@click.option("--start-date", "--since", type=click.DateTime(), help="Started at or after (YYYY-MM-DD[THH:MM:SS], UTC)")
@click.option("--end-date", "--until", type=click.DateTime(), help="Started at or before (YYYY-MM-DD[THH:MM:SS], UTC)")
@click.option("--sort-by", type=click.Choice(["startTime", "processName", "status", "environment"]))
@click.option("--asc", is_flag=True, help="Ascending order (default: descending)")
@click.option("--page", default=1, show_default=True)
@click.option("--limit", "-n", default=20, show_default=True)
@click.option("--token", help="Access token (or set PROCMON_TOKEN)")
def processes(environment, status, trading_partner, search, start_date, end_date,
              sort_by, asc, page, limit, token):
    """List process executions."""
    params = {
        "environment": environment,
        "status": status,
        "tradingPartner": trading_partner,
        "search": search,
        "startDate": start_date.isoformat() if start_date else None,
        "endDate": end_date.isoformat() if end_date else None,
        "sortBy": sort_by,
        "sortOrder": "asc" if asc else None,
        "page": page,
        "limit": limit,
    }
    _run(_processes_impl({k: v for k, v in params.items() if v is not None}, token))


async def _processes_impl(params: dict, token: Optional[str]):
    async with _client(token) as c:
        r = await c.get("/api/processes", params=params)
        _check(r)
        body = r.json()

    rows = [
        {
            **p,
            "duration": format_duration(p["executionTime"]),
            "started": p["startTime"][:19].replace("T", " "),
        }
        for p in body["data"]
    ]
    if not rows:
        click.echo("No processes match.")
        return

    _print_table(rows, [
        ("ID", "id", 5),
        ("PROCESS", "processId", 20),
        ("NAME", "processName", 26),
        ("STATUS", "status", 11),
        ("ENV", "environment", 4),
        ("PARTNER", "tradingPartner", 10),
        ("STARTED", "started", 19),
        ("DURATION", "duration", 10),
    ])
    pg = body["pagination"]
    click.echo(f"\nPage {pg['currentPage']}/{pg['totalPages']} — {pg['totalItems']} processes")


# ---------------------------------------------------------------------------
# procmon summary
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Access token (or set PROCMON_TOKEN)")
def summary(token: Optional[str]):
    """Show the dashboard summary."""
    _run(_summary_impl(token))


async def _summary_impl(token: Optional[str]):
    async with _client(token) as c:
        r = await c.get("/api/processes/dashboard")
        _check(r)
        s = r.json()

    click.secho(f"Total processes: {s['totalProcesses']}", bold=True)
    t = s["todayStats"]
    click.echo(
        f"Today:    {t['total']} total | "
        f"{click.style(str(t['success']), fg='green')} ok | "
        f"{click.style(str(t['failed']), fg='red')} failed | "
        f"{click.style(str(t['inProgress']), fg='yellow')} running | "
        f"{t['warning']} warning"
    )
    for label, key in (("7 days", "weeklyStats"), ("30 days", "monthlyStats")):
        w = s[key]
        click.echo(
            f"{label + ':':<9} {w['total']} total | {w['success']} ok | {w['failed']} failed"
            f" | avg {format_duration(w['avgExecutionTime'])}"
        )

    click.echo()
    click.secho("By environment", bold=True)
    for env, b in s["environmentBreakdown"].items():
        click.echo(f"  {env:<5} {b['total']:>5} total  {b['success']:>5} ok  "
                   f"{b['failed']:>5} failed  {b['inProgress']:>3} running")

    click.echo()
    click.secho("Daily trend", bold=True)
    for day in s["dailyTrends"]:
        click.echo(f"  {day['date']}  {day['total']:>4} runs  {day['failed']:>3} failed  "
                   f"avg {format_duration(day['avgExecutionTime'])}")


# ---------------------------------------------------------------------------
# procmon show / logs / retry
# ---------------------------------------------------------------------------


@main.command()
@click.argument("process_id")
@click.option("--token", help="Access token (or set PROCMON_TOKEN)")
def show(process_id: str, token: Optional[str]):
    """Show one process as JSON."""
    _run(_show_impl(process_id, token))


async def _show_impl(process_id: str, token: Optional[str]):
    async with _client(token) as c:
        r = await c.get(f"/api/processes/{process_id}")
        _check(r)
        click.echo(_pretty_json(r.json()))


@main.command()
@click.argument("process_id")
@click.option("--token", help="Access token (or set PROCMON_TOKEN)")
def logs(process_id: str, token: Optional[str]):
    """Show execution logs for a process."""
    _run(_logs_impl(process_id, token))


async def _logs_impl(process_id: str, token: Optional[str]):
    async with _client(token) as c:
        r = await c.get(f"/api/processes/{process_id}/logs")
        _check(r)
        entries = r.json()["logs"]

    for entry in entries:
        level = click.style(f"{entry['level']:<5}", fg=_status_color(entry["level"]))
        click.echo(f"{entry['timestamp'][:23]}  {level}  [{entry['component']}] {entry['message']}")


@main.command()
@click.argument("process_id")
@click.option("--token", help="Access token (or set PROCMON_TOKEN)")
def retry(process_id: str, token: Optional[str]):
    """Retry a failed process (admin only)."""
    _run(_retry_impl(process_id, token))


async def _retry_impl(process_id: str, token: Optional[str]):
    async with _client(token) as c:
        r = await c.post(f"/api/processes/{process_id}/retry")
        _check(r)
        body = r.json()
    new = body["newProcess"]
    click.secho(f"{body['message']}: #{new['id']} {new['processId']}", fg="green")


# ---------------------------------------------------------------------------
# procmon filters
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Access token (or set PROCMON_TOKEN)")
def filters(token: Optional[str]):
    """Show available filter values."""
    _run(_filters_impl(token))


async def _filters_impl(token: Optional[str]):
    async with _client(token) as c:
        r = await c.get("/api/processes/metadata/filters")
        _check(r)
        options = r.json()
    click.echo(f"Environments:     {', '.join(options['environments'])}")
    click.echo(f"Statuses:         {', '.join(options['statuses'])}")
    click.echo(f"Trading partners: {', '.join(options['tradingPartners'])}")


if __name__ == "__main__":
    main()
