from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from app.core.errors import JobCancelled
from app.core.types import VideoResult

from .errors import VIDEO_FAILURE_NOTICE, map_studio_error

logger = logging.getLogger(__name__)

VideoRunner = Callable[[asyncio.Event], Awaitable[VideoResult]]


@dataclass
class VideoJob:
    id: str
    task: asyncio.Task[VideoResult]
    cancel_event: asyncio.Event
    created: int = field(default_factory=lambda: int(time.time()))
    finished_at: float | None = None

    @property
    def status(self) -> str:
        if not self.task.done():
            return "cancelling" if self.cancel_event.is_set() else "running"
        if self.task.cancelled() or isinstance(self.task.exception(), JobCancelled):
            return "cancelled"
        if self.task.exception() is not None:
            return "failed"
        return "completed"

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "object": "video.job",
            "created": self.created,
            "status": self.status,
            "uri": None,
            "error": None,
        }

        if self.status == "completed":
            payload["uri"] = self.task.result().uri
        elif self.status == "failed":
            payload["error"] = map_studio_error(
                self.task.exception(), VIDEO_FAILURE_NOTICE
            ).to_error()

        return payload


class VideoJobRegistry:
    """In-memory handles for video jobs running as background tasks.

    Finished jobs stay readable for `retention_seconds` after they end, and at
    most `max_finished` of them are kept. Older ones are dropped on the next
    submission. Running jobs are never dropped.
    """

    def __init__(
        self,
        *,
        retention_seconds: float = 3600.0,
        max_finished: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._jobs: dict[str, VideoJob] = {}
        self._retention_seconds = retention_seconds
        self._max_finished = max_finished
        self._clock = clock

    def submit(self, runner: VideoRunner) -> VideoJob:
        self.prune()

        cancel_event = asyncio.Event()
        job_id = f"video-{uuid.uuid4().hex}"
        task = asyncio.create_task(runner(cancel_event), name=job_id)
        task.add_done_callback(_log_outcome)

        job = VideoJob(id=job_id, task=task, cancel_event=cancel_event)
        task.add_done_callback(lambda _task: self._mark_finished(job))
        self._jobs[job_id] = job
        logger.info("Started video job %s", job_id)
        return job

    def get(self, job_id: str) -> VideoJob | None:
        return self._jobs.get(job_id)

    def cancel(self, job_id: str) -> VideoJob | None:
        job = self._jobs.get(job_id)
        if job is not None and not job.task.done():
            # Honored before the next wait or status fetch.
            job.cancel_event.set()
        return job

    def prune(self) -> None:
        now = self._clock()
        finished = sorted(
            (job for job in self._jobs.values() if job.finished_at is not None),
            key=lambda job: job.finished_at,
        )
        expired = [job for job in finished if now - job.finished_at >= self._retention_seconds]
        remaining = finished[len(expired):]
        overflow = len(remaining) - self._max_finished
        if overflow > 0:
            expired.extend(remaining[:overflow])

        for job in expired:
            del self._jobs[job.id]
        if expired:
            logger.debug("Dropped %d finished video jobs", len(expired))

    def __len__(self) -> int:
        return len(self._jobs)

    def _mark_finished(self, job: VideoJob) -> None:
        job.finished_at = self._clock()

    async def shutdown(self) -> None:
        pending = [job.task for job in self._jobs.values() if not job.task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def _log_outcome(task: asyncio.Task[VideoResult]) -> None:
    if task.cancelled():
        logger.info("Video job %s was cancelled", task.get_name())
        return

    exc = task.exception()
    if exc is None:
        logger.info("Video job %s completed", task.get_name())
    elif isinstance(exc, JobCancelled):
        logger.info("Video job %s was cancelled", task.get_name())
    else:
        logger.warning("Video job %s failed: %s", task.get_name(), exc)
