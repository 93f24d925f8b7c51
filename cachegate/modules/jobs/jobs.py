import asyncio
import json
import logging
import time
from datetime import UTC, datetime
from typing import Set

logger = logging.getLogger("cachegate.jobs")


def generate_task_id(prefix: str = "api_job") -> str:
    """Time-based task id, e.g. api_job6710a2b40c3f1."""
    now = time.time()
    seconds = int(now)
    micros = int((now - seconds) * 1_000_000)
    return f"{prefix}{seconds:08x}{micros:05x}"


class JobModule:
    def __init__(
        self,
        redis_client=None,
        steps: int = 10,
        step_seconds: float = 1.0,
    ):
        """
        Initialize job module.

        Args:
            redis_client: Optional async Redis client for progress events
            steps: Number of progress steps per job
            step_seconds: Pause before each step
        """
        self.redis = redis_client
        self.steps = steps
        self.step_seconds = step_seconds
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self, task_id: str = "") -> str:
        """
        Schedule a job on the running event loop and return immediately.

        Args:
            task_id: Caller-supplied id; generated when empty

        Returns:
            The job's task id
        """
        task_id = task_id or generate_task_id()

        # Hold a reference so the task is not garbage collected mid-run
        task = asyncio.create_task(self.run(task_id), name=f"job:{task_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info(f"Dispatched job {task_id}")
        return task_id

    async def run(self, task_id: str) -> None:
        """
        Execute the job: fixed number of paused steps with progress reporting.

        Args:
            task_id: Job identifier
        """
        logger.info("Job started", extra={"task_id": task_id})
        await self._publish_event("job.started", {"task_id": task_id})

        for i in range(1, self.steps + 1):
            await asyncio.sleep(self.step_seconds)

            progress = {
                "task_id": task_id,
                "seconds_elapsed": i,
                "progress_percent": i * 100 // self.steps,
            }
            logger.info(
                f"Job {task_id} progress: {progress['progress_percent']}%", extra=progress
            )
            await self._publish_event("job.progress", progress)

        logger.info("Job completed", extra={"task_id": task_id})
        await self._publish_event("job.completed", {"task_id": task_id})

    @property
    def running(self) -> int:
        """Number of jobs still in flight."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every dispatched job to finish (used at shutdown)."""
        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} running job(s) to finish")
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _publish_event(self, event_type: str, data: dict):
        """Publish job event for monitoring"""
        if not self.redis:
            return

        event = {"type": event_type, "timestamp": datetime.now(UTC).isoformat(), "data": data}

        try:
            await self.redis.publish("events:jobs", json.dumps(event))
            await self.redis.lpush("job:events", json.dumps(event))
            await self.redis.ltrim("job:events", 0, 999)  # Keep last 1000
        except Exception as e:
            # Progress events are best-effort; the job always runs to completion
            logger.warning(f"Failed to publish {event_type} for {data.get('task_id')}: {e}")
