"""
In-memory job registry.

The store is the single owner of all jobs. Callers only ever receive copies;
every mutation goes through a method here, guarded by one registry lock,
and is followed by a lifecycle event on the store's event bus.
"""
import asyncio
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from core.events import EventBus, EventKind, JobDeletedEvent, JobEvent
from core.exceptions import InvalidOperationError
from core.logger import setup_logger
from core.schema import TRANSITIONS, Job, JobStatus

logger = setup_logger(__name__)

ERROR_MESSAGE_KEY = "errorMessage"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    """Registry of jobs with guarded status transitions."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize the store.

        Args:
            events: Event bus to publish lifecycle events on (a new one if omitted)
            clock: Source of creation timestamps
        """
        self.events = events or EventBus()
        self._clock = clock
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.RLock()
        self._job_locks: Dict[str, asyncio.Lock] = {}

    def job_lock(self, job_id: str) -> asyncio.Lock:
        """
        Per-job lock for multi-step operations that await between mutations.

        Queue tasks and human-input resolution hold it for the whole operation,
        so they never interleave on the same job.
        """
        with self._lock:
            lock = self._job_locks.get(job_id)
            if lock is None:
                lock = asyncio.Lock()
                self._job_locks[job_id] = lock
            return lock

    # Reads

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def get_jobs(self) -> List[Job]:
        with self._lock:
            return self._snapshot()

    def count(self, status: Optional[JobStatus] = None) -> int:
        with self._lock:
            if status is None:
                return len(self._jobs)
            return sum(1 for job in self._jobs.values() if job.status == status)

    # Mutations

    def create_job(self, data: Dict[str, Any]) -> Job:
        """
        Register a new queued job.

        Args:
            data: Initial attribute bag

        Returns:
            Copy of the created job
        """
        with self._lock:
            job_id = str(uuid.uuid4())
            while job_id in self._jobs:
                job_id = str(uuid.uuid4())

            clean = {k: v for k, v in data.items() if k != ERROR_MESSAGE_KEY}
            job = Job(id=job_id, created=self._clock(), status=JobStatus.QUEUED, data=clean)
            self._jobs[job_id] = job

            logger.info(f"Job {job_id} created")
            return self._emit_job(EventKind.JOB_CREATED, job)

    def update_job_data(self, job_id: str, data: Dict[str, Any]) -> Optional[Job]:
        """
        Merge attributes into a job's data bag. Unknown ids are ignored.

        The error message is owned by ``set_failed`` and cannot be set here.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.debug(f"update_job_data: unknown job {job_id}")
                return None

            if ERROR_MESSAGE_KEY in data:
                logger.warning(f"Ignoring {ERROR_MESSAGE_KEY} in data update for job {job_id}")
                data = {k: v for k, v in data.items() if k != ERROR_MESSAGE_KEY}

            job.data = {**job.data, **data}
            return self._emit_job(EventKind.JOB_UPDATED, job)

    def set_in_progress(self, job_id: str) -> Optional[Job]:
        return self._transition(job_id, JobStatus.IN_PROGRESS)

    def set_finished(self, job_id: str) -> Optional[Job]:
        return self._transition(job_id, JobStatus.FINISHED)

    def set_human_input(self, job_id: str) -> Optional[Job]:
        return self._transition(job_id, JobStatus.HUMAN_INPUT)

    def set_failed(self, job_id: str, message: str) -> Optional[Job]:
        """Mark a job failed, recording a non-empty error message."""
        return self._transition(
            job_id,
            JobStatus.FAILED,
            error_message=(message or "").strip() or "Unknown error"
        )

    def delete_job(self, job_id: str) -> bool:
        """
        Evict a terminal job.

        Returns:
            True if deleted, False if the id is unknown

        Raises:
            InvalidOperationError: If the job is not finished or failed
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            if not job.status.is_terminal:
                raise InvalidOperationError(
                    f"Job {job_id} is {job.status.value} and cannot be deleted",
                    details={"job_id": job_id, "status": job.status.value}
                )

            del self._jobs[job_id]
            self._job_locks.pop(job_id, None)

            logger.info(f"Job {job_id} deleted")
            self.events.publish(EventKind.JOB_DELETED, JobDeletedEvent(id=job_id, jobs=self._snapshot()))
            return True

    # Internals

    def _transition(
        self,
        job_id: str,
        target: JobStatus,
        error_message: Optional[str] = None
    ) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.debug(f"Transition to {target.value}: unknown job {job_id}")
                return None

            if target not in TRANSITIONS[job.status]:
                raise InvalidOperationError(
                    f"Job {job_id} cannot move from {job.status.value} to {target.value}",
                    details={"job_id": job_id, "from": job.status.value, "to": target.value}
                )

            logger.info(f"Job {job_id}: {job.status.value} -> {target.value}")
            job.status = target
            if error_message is not None:
                job.data = {**job.data, ERROR_MESSAGE_KEY: error_message}

            return self._emit_job(EventKind.JOB_UPDATED, job)

    def _emit_job(self, kind: EventKind, job: Job) -> Job:
        self.events.publish(kind, JobEvent(job=job.model_copy(deep=True), jobs=self._snapshot()))
        return job.model_copy(deep=True)

    def _snapshot(self) -> List[Job]:
        return [job.model_copy(deep=True) for job in self._jobs.values()]
