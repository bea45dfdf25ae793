"""
Serialized task queue.
One worker drains tasks in submission order, each bounded by a timeout.
"""
import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple

from core.exceptions import CategorizerError, InvalidOperationError, JobTimeoutError
from core.job_store import JobStore
from core.logger import setup_logger

logger = setup_logger(__name__)

QueueTask = Callable[[], Awaitable[None]]
CallOutcome = Callable[[Any], Any]

DEFAULT_TIMEOUT_SECONDS = 30.0


class ProcessingQueue:
    """
    FIFO task runner with concurrency 1.

    A task that exceeds the timeout is cancelled and its job marked failed.
    A task that raises is logged and its job marked failed; the worker keeps going.

    Blocking collaborator calls made through ``run_blocking`` belong to the
    running task. A worker thread cannot be interrupted, so after a timeout the
    worker waits for the call in flight before it starts the next task.
    """

    def __init__(self, store: JobStore, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.store = store
        self.timeout = timeout
        self._queue: "asyncio.Queue[Tuple[str, QueueTask]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._current: Optional[str] = None
        self._in_flight: Optional[Tuple[asyncio.Future, Optional[CallOutcome]]] = None

    @property
    def pending(self) -> int:
        """Number of tasks waiting to start."""
        return self._queue.qsize()

    @property
    def current_job(self) -> Optional[str]:
        """Id of the job whose task is running, if any."""
        return self._current

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def enqueue(self, job_id: str, task: QueueTask) -> int:
        """
        Append a task to the queue.

        Args:
            job_id: Job the task drives
            task: Coroutine function to run

        Returns:
            Number of tasks waiting, including this one
        """
        self._queue.put_nowait((job_id, task))
        logger.info(f"Job {job_id} queued ({self.pending} pending)")
        return self.pending

    async def run_blocking(self, func: Callable[..., Any], *args, on_done: Optional[CallOutcome] = None) -> Any:
        """
        Run a blocking call in a worker thread on behalf of the current task.

        Args:
            func: Blocking callable
            *args: Positional arguments for func
            on_done: Called on the loop with the result once func returns,
                including when the task awaiting it has already timed out

        Returns:
            Whatever func returns
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, func, *args)
        self._in_flight = (future, on_done)

        result = await asyncio.shield(future)
        self._in_flight = None
        if on_done is not None:
            on_done(result)
        return result

    async def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._work(), name="processing-queue")
        logger.info(f"Processing queue started (timeout={self.timeout}s)")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Processing queue stopped")

    async def join(self) -> None:
        """Wait until every queued task has been processed."""
        await self._queue.join()

    async def _work(self) -> None:
        while True:
            job_id, task = await self._queue.get()
            self._current = job_id
            try:
                await self._run(job_id, task)
            finally:
                self._current = None
                self._in_flight = None
                self._queue.task_done()

    async def _run(self, job_id: str, task: QueueTask) -> None:
        logger.info(f"Job {job_id} started")
        try:
            await asyncio.wait_for(task(), timeout=self.timeout)
            logger.info(f"Job {job_id} success")

        except asyncio.TimeoutError:
            error = JobTimeoutError(
                f"Job timed out after {self.timeout:g}s",
                details={"job_id": job_id, "timeout": self.timeout}
            )
            logger.warning(f"Job {job_id} timeout: {error.message}")
            await self._settle_in_flight(job_id)
            self._fail(job_id, error.message)

        except Exception as e:
            logger.error(f"Job {job_id} error: {e}", exc_info=True)
            self._fail(job_id, str(e))

    async def _settle_in_flight(self, job_id: str) -> None:
        """Wait out a blocking call the timed-out task left running."""
        if self._in_flight is None:
            return
        future, on_done = self._in_flight
        self._in_flight = None

        if not future.done():
            logger.info(f"Job {job_id} waiting for in-flight call to return")
        try:
            result = await future
        except Exception as e:
            logger.warning(f"Job {job_id} in-flight call failed after timeout: {e}")
            return

        if on_done is None:
            return
        try:
            on_done(result)
        except CategorizerError as e:
            logger.warning(f"Job {job_id} could not record late result: {e.message}")

    def _fail(self, job_id: str, message: str) -> None:
        try:
            self.store.set_failed(job_id, message)
        except InvalidOperationError as e:
            # The task already moved the job past a failable state
            logger.warning(f"Could not mark job {job_id} failed: {e.message}")
