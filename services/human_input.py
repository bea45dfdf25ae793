"""
Operator resolution of jobs the classifier could not decide.
"""
import asyncio
from typing import Dict, Tuple

from core.exceptions import InvalidOperationError, UnknownCategoryError
from core.job_store import JobStore
from core.logger import setup_logger
from core.schema import Job, JobStatus

logger = setup_logger(__name__)


class HumanInputResolver:
    """Finishes a ``human_input`` job with an operator-chosen category."""

    def __init__(self, store: JobStore, ledger):
        self.store = store
        self.ledger = ledger

    async def resolve(self, job_id: str, category: str) -> Job:
        """
        Assign an operator-chosen category to a job waiting on human input.

        Args:
            job_id: Job to resolve
            category: Category name, or a category id from the catalog

        Returns:
            The finished job

        Raises:
            InvalidOperationError: If the job does not exist or is not waiting on human input
            UnknownCategoryError: If the category is not in the ledger catalog
            LedgerError: If the ledger update fails; the job is left unchanged
        """
        async with self.store.job_lock(job_id):
            job = self.store.get_job(job_id)
            if job is None:
                raise InvalidOperationError(f"Job {job_id} does not exist", details={"job_id": job_id})
            if job.status != JobStatus.HUMAN_INPUT:
                raise InvalidOperationError(
                    f"Job {job_id} is {job.status.value}, not waiting for human input",
                    details={"job_id": job_id, "status": job.status.value}
                )

            loop = asyncio.get_running_loop()
            categories = await loop.run_in_executor(None, self.ledger.get_categories)
            name, category_id = self._lookup(categories, category)

            await loop.run_in_executor(
                None,
                self.ledger.assign_category,
                job.data["transactionId"],
                job.data["transactions"],
                category_id
            )

            self.store.update_job_data(job_id, {"category": name})
            finished = self.store.set_finished(job_id)
            logger.info(f"Job {job_id} resolved by operator as '{name}'")
            return finished

    @staticmethod
    def _lookup(categories: Dict[str, str], category: str) -> Tuple[str, str]:
        if category in categories:
            return category, categories[category]
        for name, category_id in categories.items():
            if category_id == category:
                return name, category_id
        raise UnknownCategoryError(
            f"Category '{category}' does not exist in Firefly",
            details={"category": category}
        )
