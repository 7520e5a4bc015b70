"""Test fixtures — a deterministic process store and auth overrides.

Learn: Testing pattern for the in-memory backend:

1. Environment is pinned before procmon is imported: no Redis (events go
   straight into the in-process hub), no background simulator, and
   cheap bcrypt rounds.
2. Each test gets its own ProcessStore, injected by overriding the
   get_store dependency, so nothing leaks between tests.
3. `client` / `viewer_client` override get_current_user with an admin /
   viewer identity; `unauthenticated_client` leaves auth untouched to
   exercise the real JWT flow.
"""

import os

os.environ["PROCMON_REDIS_URL"] = ""
os.environ["PROCMON_SIMULATION_ENABLED"] = "false"
os.environ["PROCMON_BCRYPT_ROUNDS"] = "4"
os.environ["PROCMON_ENVIRONMENT"] = "development"

import random
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from procmon.auth.dependencies import CurrentIdentity, get_current_user
from procmon.auth.users import build_demo_directory, get_user_directory
from procmon.main import app
from procmon.schemas.process import ErrorDetails, ProcessExecution
from procmon.services.mock_data import generate_processes
from procmon.store import ProcessStore, get_store


def make_process(id: int, **overrides) -> ProcessExecution:
    """Hand-built record with sensible defaults; overrides win."""
    start = overrides.pop("start_time", datetime.now(timezone.utc) - timedelta(hours=id))
    status = overrides.pop("status", "Success")
    finished = status != "In Progress"
    fields = {
        "id": id,
        "process_id": f"PROC_TEST{id:04d}",
        "process_name": "Inventory Sync",
        "start_time": start,
        "end_time": start + timedelta(seconds=30) if finished else None,
        "status": status,
        "environment": "Prod",
        "trading_partner": "Amazon",
        "execution_time": 30_000 if finished else None,
        "records_processed": 100,
        "error_details": ErrorDetails(
            error_code="ERR_ABC123",
            error_type="File not found",
            message="File not found: inbound/orders.csv",
            timestamp=start + timedelta(seconds=30),
            retryable=True,
            retry_count=1,
        ) if status == "Failed" else None,
        "created_at": start,
        "updated_at": start + timedelta(seconds=30) if finished else start,
    }
    fields.update(overrides)
    return ProcessExecution(**fields)


@pytest.fixture()
def seeded_store() -> ProcessStore:
    """150 generated records from a fixed seed (plus 3 in progress)."""
    return ProcessStore(generate_processes(150, rng=random.Random(1234)))


@pytest.fixture()
def small_store() -> ProcessStore:
    """Five hand-built records with known values, newest first."""
    return ProcessStore([
        make_process(1, process_name="Customer Order Processing", trading_partner="Walmart", environment="Dev"),
        make_process(2, status="Failed", process_name="Payment Processing", trading_partner="Target"),
        make_process(3, status="In Progress", process_name="Inventory Sync", trading_partner="Amazon", environment="Test"),
        make_process(4, status="Warning", process_name="Invoice Generation", trading_partner="FedEx"),
        make_process(5, status="Failed", process_name="Return Processing", trading_partner="Costco", environment="Dev"),
    ])


@pytest.fixture()
def store(small_store) -> ProcessStore:
    """The store the API fixtures serve — override in a module to swap it."""
    return small_store


def _identity(role: str) -> CurrentIdentity:
    return CurrentIdentity(user_id=1 if role == "admin" else 2, username=role, role=role)


@pytest_asyncio.fixture()
async def client(store):
    """HTTP client with the store injected and an admin identity.

    Learn: We override get_current_user to return a fixed identity so all
    protected routes work without real JWT tokens.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_user] = lambda: _identity("admin")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def viewer_client(store):
    """HTTP client authenticated as a read-only viewer."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_user] = lambda: _identity("viewer")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(store):
    """HTTP client WITHOUT auth override — for testing real JWT flows.

    Gets a fresh demo user directory so registrations don't leak
    between tests.
    """
    directory = build_demo_directory()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_user_directory] = lambda: directory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
