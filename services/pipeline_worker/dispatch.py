"""Hand a freshly created job to whatever runs it."""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TaskScheduler(Protocol):
    """Anything with FastAPI ``BackgroundTasks.add_task`` semantics."""

    def add_task(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None: ...


class JobDispatcher(Protocol):
    def dispatch(self, video_id: str, job_id: str, scheduler: TaskScheduler) -> None: ...


class BackgroundDispatcher:
    """Runs jobs in-process after the HTTP response is sent."""

    def __init__(self, run_job: Callable[[str, str], Any]) -> None:
        self.run_job = run_job

    def dispatch(self, video_id: str, job_id: str, scheduler: TaskScheduler) -> None:
        scheduler.add_task(self.run_job, video_id, job_id)
        logger.info("job_id=%s video_id=%s dispatched=background", job_id, video_id)


class RedisStreamDispatcher:
    """Queues jobs on a Redis stream consumed by ``services.pipeline_worker.main``."""

    def __init__(self, client: Any, stream: str) -> None:
        self.client = client
        self.stream = stream

    def dispatch(self, video_id: str, job_id: str, scheduler: TaskScheduler) -> None:
        msg_id = self.client.xadd(self.stream, {"video_id": video_id, "job_id": job_id})
        logger.info("job_id=%s video_id=%s dispatched=redis msg_id=%s", job_id, video_id, msg_id)
