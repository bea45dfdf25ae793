"""
Periodic eviction of old finished and failed jobs.
"""
import asyncio
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from core.exceptions import InvalidOperationError
from core.job_store import JobStore, utc_now
from core.logger import setup_logger

logger = setup_logger(__name__)


class CleanupScheduler:
    """Deletes terminal jobs older than the retention window, on a fixed period."""

    def __init__(
        self,
        store: JobStore,
        retention_seconds: float = 24 * 60 * 60,
        interval_seconds: float = 60 * 60,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.retention = timedelta(seconds=retention_seconds)
        self.interval = interval_seconds
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def run_now(self, now: Optional[datetime] = None) -> List[str]:
        """
        Run one sweep immediately.

        Args:
            now: Reference time (defaults to the scheduler's clock)

        Returns:
            Ids of the deleted jobs
        """
        now = now or self._clock()
        deleted = []

        for job in self.store.get_jobs():
            if not job.status.is_terminal or now - job.created <= self.retention:
                continue
            try:
                if self.store.delete_job(job.id):
                    deleted.append(job.id)
            except InvalidOperationError as e:
                logger.warning(f"Skipping job {job.id}: {e.message}")

        if deleted:
            logger.info(f"Cleanup removed {len(deleted)} job(s)")
        return deleted

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop(), name="job-cleanup")
        logger.info(
            f"Cleanup scheduled every {self.interval:g}s "
            f"(retention {self.retention.total_seconds():g}s)"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.run_now()
            except Exception as e:
                logger.error(f"Cleanup sweep failed: {e}", exc_info=True)
