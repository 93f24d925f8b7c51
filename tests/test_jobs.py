import asyncio
import json
import os
import sys
from unittest.mock import AsyncMock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from cachegate.modules.jobs import JobModule, generate_task_id


def published(redis, event_type):
    """Decode events of one type from the publish mock's calls."""
    events = []
    for call in redis.publish.call_args_list:
        channel, payload = call.args
        assert channel == "events:jobs"
        event = json.loads(payload)
        if event["type"] == event_type:
            events.append(event["data"])
    return events


@pytest.mark.asyncio
async def test_run_reports_ten_progress_steps(mock_redis):
    """Test a run emits steps 1..10 with progress in tens, in order."""
    jobs = JobModule(mock_redis, steps=10, step_seconds=0)

    await jobs.run("api_job_test")

    progress = published(mock_redis, "job.progress")
    assert [p["seconds_elapsed"] for p in progress] == list(range(1, 11))
    assert [p["progress_percent"] for p in progress] == [i * 10 for i in range(1, 11)]
    assert all(p["task_id"] == "api_job_test" for p in progress)

    assert published(mock_redis, "job.started") == [{"task_id": "api_job_test"}]
    assert published(mock_redis, "job.completed") == [{"task_id": "api_job_test"}]


@pytest.mark.asyncio
async def test_run_keeps_event_history(mock_redis_with_data):
    """Test events are kept in the capped job:events list, newest first."""
    jobs = JobModule(mock_redis_with_data, steps=3, step_seconds=0)

    await jobs.run("api_job_hist")

    history = [json.loads(e) for e in mock_redis_with_data._lists["job:events"]]
    assert [e["type"] for e in history] == [
        "job.completed",
        "job.progress",
        "job.progress",
        "job.progress",
        "job.started",
    ]
    assert history[1]["data"]["progress_percent"] == 100


@pytest.mark.asyncio
async def test_progress_percent_for_uneven_steps(mock_redis):
    """Test progress uses integer division and ends at 100."""
    jobs = JobModule(mock_redis, steps=3, step_seconds=0)

    await jobs.run("api_job_three")

    progress = published(mock_redis, "job.progress")
    assert [p["progress_percent"] for p in progress] == [33, 66, 100]


@pytest.mark.asyncio
async def test_run_without_redis():
    """Test a job runs to completion with no event sink."""
    jobs = JobModule(None, steps=2, step_seconds=0)

    await jobs.run("api_job_quiet")


@pytest.mark.asyncio
async def test_publish_failure_does_not_stop_job(mock_redis):
    """Test a broken event sink is logged and the job still completes."""
    mock_redis.publish = AsyncMock(side_effect=ConnectionError("redis down"))
    jobs = JobModule(mock_redis, steps=10, step_seconds=0)

    await jobs.run("api_job_broken")

    assert mock_redis.publish.call_count == 12


@pytest.mark.asyncio
async def test_dispatch_returns_immediately_and_drain_waits(mock_redis):
    """Test dispatch schedules the job in the background and drain awaits it."""
    jobs = JobModule(mock_redis, steps=2, step_seconds=0.01)

    task_id = jobs.dispatch("api_job_bg")

    assert task_id == "api_job_bg"
    assert jobs.running == 1
    assert published(mock_redis, "job.completed") == []

    await jobs.drain()

    assert jobs.running == 0
    assert published(mock_redis, "job.completed") == [{"task_id": "api_job_bg"}]


@pytest.mark.asyncio
async def test_dispatch_generates_task_id_when_empty(mock_redis):
    """Test an empty task id is replaced by a generated one."""
    jobs = JobModule(mock_redis, steps=1, step_seconds=0)

    task_id = jobs.dispatch()
    await jobs.drain()

    assert task_id.startswith("api_job")
    assert len(task_id) > len("api_job")


@pytest.mark.asyncio
async def test_concurrent_jobs_are_independent(mock_redis):
    """Test several dispatched jobs all complete."""
    jobs = JobModule(mock_redis, steps=2, step_seconds=0)

    ids = [jobs.dispatch(f"api_job_{i}") for i in range(3)]
    await jobs.drain()

    completed = {e["task_id"] for e in published(mock_redis, "job.completed")}
    assert completed == set(ids)


@pytest.mark.asyncio
async def test_drain_with_no_jobs():
    """Test drain is a no-op when nothing is running."""
    jobs = JobModule(None)

    await asyncio.wait_for(jobs.drain(), timeout=1)


def test_generate_task_id_prefix():
    """Test task ids carry the prefix and a hex time component."""
    task_id = generate_task_id()

    assert task_id.startswith("api_job")
    int(task_id[len("api_job"):], 16)
    assert generate_task_id("batch").startswith("batch")
