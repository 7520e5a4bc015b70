"""CLI tests — formatting helpers and commands against a mocked API.

Learn: Commands talk to the backend through httpx, so _client is
patched to return an AsyncClient bound to the ASGI app itself. No
server is started.
"""

from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner
from httpx import ASGITransport, AsyncClient

from procmon.cli import main as cli
from procmon.main import app
from procmon.store import get_store


@pytest.mark.parametrize(
    "ms, expected",
    [
        (None, "N/A"),
        (0, "N/A"),
        (999, "0s"),
        (45_000, "45s"),
        (125_000, "2m 5s"),
        (3_725_000, "1h 2m 5s"),
    ],
)
def test_format_duration(ms, expected):
    assert cli.format_duration(ms) == expected


def test_help_lists_commands():
    result = CliRunner().invoke(cli.main, ["--help"])
    assert result.exit_code == 0
    for command in ("serve", "login", "processes", "summary", "show", "logs", "retry", "filters"):
        assert command in result.output


@pytest.fixture()
def api(store, monkeypatch):
    """Point the CLI's HTTP client at the in-process app."""
    app.dependency_overrides[get_store] = lambda: store

    def _client(token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)

    monkeypatch.setattr(cli, "_client", _client)
    yield
    app.dependency_overrides.clear()


def _token(runner: CliRunner) -> str:
    result = runner.invoke(cli.main, ["login", "admin", "admin123"])
    assert result.exit_code == 0, result.output
    return result.stdout.strip().splitlines()[-1]


def test_login_and_list(api):
    runner = CliRunner()
    token = _token(runner)

    result = runner.invoke(cli.main, ["processes", "--status", "Failed", "--token", token])
    assert result.exit_code == 0, result.output
    assert "PROC_TEST0002" in result.output
    assert "PROC_TEST0005" in result.output
    assert "PROC_TEST0001" not in result.output
    assert "2 processes" in result.output


def test_list_by_date_range(api):
    runner = CliRunner()
    token = _token(runner)
    since = (datetime.now(timezone.utc) - timedelta(minutes=150)).strftime("%Y-%m-%dT%H:%M:%S")

    result = runner.invoke(cli.main, ["processes", "--since", since, "--token", token])
    assert result.exit_code == 0, result.output
    assert "PROC_TEST0001" in result.output
    assert "PROC_TEST0002" in result.output
    assert "PROC_TEST0003" not in result.output
    assert "2 processes" in result.output

    result = runner.invoke(cli.main, ["processes", "--until", "2000-01-01", "--token", token])
    assert result.exit_code == 0, result.output
    assert "No processes match." in result.output


def test_filters_command(api):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["filters", "--token", _token(runner)])
    assert result.exit_code == 0, result.output
    assert "Dev, Test, Prod" in result.output
    assert "Amazon" in result.output


def test_unauthenticated_call_exits_with_message(api, monkeypatch):
    monkeypatch.delenv("PROCMON_TOKEN", raising=False)
    result = CliRunner().invoke(cli.main, ["summary"])
    assert result.exit_code == 1
    assert "Access token required" in result.output
