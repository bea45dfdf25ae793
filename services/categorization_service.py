"""
Categorization service.
Turns webhooks into jobs and drives each job through classification.
"""
from typing import Any, Dict, List

from core.events import CategoryInputRequest, EventKind
from core.exceptions import InvalidOperationError
from core.job_store import JobStore
from core.logger import setup_logger
from core.schema import Job
from core.webhook import validate_webhook
from services.processing_queue import ProcessingQueue

logger = setup_logger(__name__)


class CategorizationService:
    """Service for ingesting transaction webhooks and categorizing them."""

    def __init__(self, store: JobStore, queue: ProcessingQueue, ledger, classifier):
        """
        Initialize categorization service.

        Args:
            store: Job registry
            queue: Serialized task queue
            ledger: Provides get_categories() and assign_category(transaction_id, transactions, category_id)
            classifier: Provides classify(category_names, destination_name, description)
        """
        self.store = store
        self.queue = queue
        self.ledger = ledger
        self.classifier = classifier

    def submit(self, payload: Any) -> Job:
        """
        Validate a webhook payload, create a job and queue it.

        Raises:
            ValidationError: If the payload is rejected; no job is created
        """
        request = validate_webhook(payload)
        job = self.store.create_job(request.to_job_data())

        job_id = job.id
        self.queue.enqueue(job_id, lambda: self.process_job(job_id))
        return job

    async def process_job(self, job_id: str) -> None:
        """
        Run one job through the pipeline.

        Collaborator failures are recorded on the job and not re-raised.
        """
        async with self.store.job_lock(job_id):
            try:
                await self._categorize(job_id)
            except Exception as e:
                logger.error(f"Job {job_id} failed: {e}")
                self._mark_failed(job_id, getattr(e, "message", None) or str(e))

    async def _categorize(self, job_id: str) -> None:
        job = self.store.set_in_progress(job_id)
        if job is None:
            logger.warning(f"Job {job_id} no longer exists, skipping")
            return

        data = job.data

        categories: Dict[str, str] = await self.queue.run_blocking(self.ledger.get_categories)
        names: List[str] = list(categories.keys())

        result = await self.queue.run_blocking(
            self.classifier.classify,
            names,
            data["destinationName"],
            data["description"]
        )

        if result.category and result.category in categories:
            self.store.update_job_data(job_id, {
                "category": result.category,
                "prompt": result.prompt,
                "response": result.response,
            })
            # Once the write lands the job is finished, even past the timeout
            await self.queue.run_blocking(
                self.ledger.assign_category,
                data["transactionId"],
                data["transactions"],
                categories[result.category],
                on_done=lambda _: self.store.set_finished(job_id)
            )
            return

        self.store.update_job_data(job_id, {
            "category": None,
            "prompt": result.prompt,
            "response": result.response,
            "categories": names,
        })
        self.store.set_human_input(job_id)
        self.store.events.publish(
            EventKind.CATEGORY_INPUT_REQUESTED,
            CategoryInputRequest(
                job_id=job_id,
                transaction_id=data["transactionId"],
                description=data["description"],
                prompt=result.prompt,
                categories=names,
            )
        )

    def _mark_failed(self, job_id: str, message: str) -> None:
        try:
            self.store.set_failed(job_id, message)
        except InvalidOperationError as e:
            logger.warning(f"Could not mark job {job_id} failed: {e.message}")
