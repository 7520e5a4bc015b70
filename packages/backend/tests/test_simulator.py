"""Execution simulator — completion outcomes and the events they emit.

Learn: tick() takes an explicit `now`, and the simulator takes its own
rng, so outcomes are pinned by setting the probabilities to 0 or 1.
Events land in the in-process hub (no Redis in tests); the tests join a
queue to the dashboard room and read what was broadcast.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from procmon.events.types import DASHBOARD_ROOM
from procmon.realtime.hub import hub
from procmon.services.simulator import ExecutionSimulator
from procmon.store import ProcessStore

from conftest import make_process

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def running_store():
    return ProcessStore([
        make_process(1, status="In Progress", start_time=NOW - timedelta(seconds=45)),
        make_process(2, status="In Progress", start_time=NOW - timedelta(seconds=90)),
        make_process(3, start_time=NOW - timedelta(hours=1)),
    ])


@pytest.fixture()
def dashboard_queue():
    queue = hub.connect()
    hub.join(DASHBOARD_ROOM, queue)
    yield queue
    hub.leave(queue)


def _drain(queue) -> list[dict]:
    messages = []
    while not queue.empty():
        messages.append(json.loads(queue.get_nowait()))
    return messages


@pytest.mark.asyncio
async def test_all_complete_successfully(running_store):
    sim = ExecutionSimulator(running_store, completion_probability=1.0, success_rate=1.0)
    completed = await sim.tick(NOW)

    assert [p.id for p in completed] == [1, 2]
    assert running_store.in_progress() == []
    first = running_store.get(1)
    assert first.status == "Success"
    assert first.end_time == NOW
    assert first.execution_time == 45_000
    assert first.updated_at == NOW
    assert first.error_details is None


@pytest.mark.asyncio
async def test_failures_get_timeout_error(running_store):
    sim = ExecutionSimulator(running_store, completion_probability=1.0, success_rate=0.0)
    await sim.tick(NOW)

    failed = running_store.get(2)
    assert failed.status == "Failed"
    assert failed.execution_time == 90_000
    assert failed.error_details.error_code == "ERR_TIMEOUT"
    assert failed.error_details.message == "Connection timeout after 30 seconds"
    assert failed.error_details.retryable is True
    assert failed.error_details.retry_count == 0


@pytest.mark.asyncio
async def test_zero_probability_changes_nothing(running_store, dashboard_queue):
    sim = ExecutionSimulator(running_store, completion_probability=0.0)
    assert await sim.tick(NOW) == []
    assert len(running_store.in_progress()) == 2
    assert _drain(dashboard_queue) == []


@pytest.mark.asyncio
async def test_finished_runs_are_left_alone(running_store):
    sim = ExecutionSimulator(running_store, completion_probability=1.0, success_rate=0.0)
    await sim.tick(NOW)
    untouched = running_store.get(3)
    assert untouched.status == "Success"
    assert untouched.error_details is None


@pytest.mark.asyncio
async def test_tick_publishes_updates(running_store, dashboard_queue):
    sim = ExecutionSimulator(running_store, completion_probability=1.0, success_rate=1.0)
    await sim.tick(NOW)

    messages = _drain(dashboard_queue)
    assert [m["event"] for m in messages] == ["process-update", "process-update", "dashboard-update"]

    update = messages[0]["data"]
    assert update["type"] == "status-change"
    assert update["process"]["id"] == 1
    assert update["process"]["status"] == "Success"
    assert update["process"]["executionTime"] == 45_000

    summary = messages[-1]["data"]["summary"]
    assert summary["totalProcesses"] == 3
    assert summary["todayStats"]["inProgress"] == 0


@pytest.mark.asyncio
async def test_stop_ends_loop(running_store):
    sim = ExecutionSimulator(running_store, interval=0.01, completion_probability=0.0)
    task = asyncio.create_task(sim.run_loop())
    await asyncio.sleep(0.05)
    sim.stop()
    await asyncio.wait_for(task, timeout=1)
    assert len(running_store.in_progress()) == 2
