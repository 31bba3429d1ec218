"""Redis queue configuration and the export job broker.

The export pipeline only needs three things from a job queue: submit a
run, poll its state, and record its outcome. ``JobBroker`` captures that
capability so the pipeline can be driven without a live Redis; ``RQJobBroker``
is the production implementation on top of RQ.

The export queue must be consumed by exactly one worker process. That
single consumer is the only thing serialising writes to the shared
high-water mark row.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any
from uuid import UUID

from rq import Queue, Retry
from rq.exceptions import NoSuchJobError
from rq.job import Job

from app.core.config import settings
from app.core.redis import get_redis

# Lazy initialized queues cache
_queues: dict[str, Queue] = {}


def get_queue(name: str = "default") -> Queue:
    """Get RQ queue with specified name.

    Uses cached queue instances to avoid creating multiple connections.

    Args:
        name: Queue name. Defaults to "default".

    Returns:
        RQ Queue instance.
    """
    if name not in _queues:
        _queues[name] = Queue(name=name, connection=get_redis())
    return _queues[name]


def get_export_queue() -> Queue:
    """Get the OMOP export queue."""
    return get_queue(settings.export_queue_name)


def enqueue_job(
    func: Any,
    *args: Any,
    queue_name: str = "default",
    job_timeout: int = 600,
    job_id: str | UUID | None = None,
    retry: Retry | None = None,
    **kwargs: Any,
) -> Job:
    """Enqueue a job to the Redis queue.

    Args:
        func: The function to execute.
        *args: Positional arguments for the function.
        queue_name: Name of the queue. Defaults to "default".
        job_timeout: Job timeout in seconds. Defaults to 600 (10 minutes).
        job_id: Optional custom job ID (string or UUID).
        retry: Optional RQ retry policy owned by the broker.
        **kwargs: Keyword arguments for the function.

    Returns:
        RQ Job instance with job_id.
    """
    queue = get_queue(queue_name)
    job_id_str = str(job_id) if job_id is not None else None
    return queue.enqueue(
        func,
        *args,
        job_timeout=job_timeout,
        job_id=job_id_str,
        retry=retry,
        **kwargs,
    )


def get_job(job_id: str | UUID) -> Job | None:
    """Get job by ID.

    Args:
        job_id: The job ID to look up (string or UUID).

    Returns:
        Job instance or None if not found.
    """
    try:
        return Job.fetch(str(job_id), connection=get_redis())
    except NoSuchJobError:
        return None


def get_job_status(job_id: str | UUID) -> str | None:
    """Get the current status of a job.

    Args:
        job_id: The job ID to check (string or UUID).

    Returns:
        Job status string ('queued', 'started', 'finished', 'failed') or None if not found.
    """
    job = get_job(job_id)
    if job is None:
        return None
    status = job.get_status()
    if status is None:
        return None
    return status.value if hasattr(status, "value") else str(status)


class JobBroker(ABC):
    """Narrow job-queue capability consumed by the export pipeline."""

    @abstractmethod
    def submit(self, func: Callable[..., Any], payload: dict[str, Any], job_id: str) -> str:
        """Submit ``func(payload)`` for background execution.

        The payload is passed to the job as a single JSON-safe dictionary.

        Returns:
            The broker's job id.
        """
        ...

    @abstractmethod
    def poll(self, job_id: str) -> str | None:
        """Return the broker-side status of a job, or None if unknown."""
        ...

    @abstractmethod
    def complete(self, job_id: str, outcome: dict[str, Any]) -> None:
        """Attach the pipeline's outcome to a finished job."""
        ...


class RQJobBroker(JobBroker):
    """JobBroker backed by the RQ export queue.

    Retries (attempt count and interval) are configured here and nowhere
    else; the pipeline itself never retries.
    """

    def __init__(
        self,
        queue_name: str | None = None,
        job_timeout: int | None = None,
        max_retries: int | None = None,
        retry_interval: int | None = None,
    ):
        self.queue_name = queue_name or settings.export_queue_name
        self.job_timeout = job_timeout or settings.export_job_timeout
        self.max_retries = settings.export_job_retries if max_retries is None else max_retries
        self.retry_interval = (
            settings.export_retry_interval if retry_interval is None else retry_interval
        )

    def submit(self, func: Callable[..., Any], payload: dict[str, Any], job_id: str) -> str:
        retry = None
        if self.max_retries > 0:
            retry = Retry(max=self.max_retries, interval=self.retry_interval)
        job = enqueue_job(
            func,
            payload,
            queue_name=self.queue_name,
            job_timeout=self.job_timeout,
            job_id=job_id,
            retry=retry,
        )
        return job.id

    def poll(self, job_id: str) -> str | None:
        return get_job_status(job_id)

    def complete(self, job_id: str, outcome: dict[str, Any]) -> None:
        job = get_job(job_id)
        if job is None:
            return
        job.meta["export_outcome"] = outcome
        job.save_meta()
