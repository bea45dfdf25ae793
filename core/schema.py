"""
Pydantic schemas for jobs, webhook extraction and API requests.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobStatus(str, Enum):
    """Lifecycle states of a categorization job."""
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    HUMAN_INPUT = "human_input"
    FINISHED = "finished"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.FINISHED, JobStatus.FAILED})

# Allowed status transitions; terminal states have none
TRANSITIONS: Dict[JobStatus, frozenset] = {
    JobStatus.QUEUED: frozenset({JobStatus.IN_PROGRESS}),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.FINISHED, JobStatus.HUMAN_INPUT, JobStatus.FAILED}),
    JobStatus.HUMAN_INPUT: frozenset({JobStatus.FINISHED}),
    JobStatus.FINISHED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class Job(BaseModel):
    """
    A single categorization job.

    ``data`` is an open attribute bag; mutations merge into it.
    ``errorMessage`` lives in ``data`` and is only present on failed jobs.
    """
    id: str
    created: datetime
    status: JobStatus = JobStatus.QUEUED
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def error_message(self) -> Optional[str]:
        return self.data.get("errorMessage")

    def to_json(self) -> Dict[str, Any]:
        """Serialize for HTTP and websocket payloads."""
        return self.model_dump(mode="json")


class TransactionRequest(BaseModel):
    """Fields extracted from a valid webhook, used to build a job."""
    destination_name: str
    description: str
    transaction_id: str
    transactions: List[Dict[str, Any]]

    def to_job_data(self) -> Dict[str, Any]:
        return {
            "destinationName": self.destination_name,
            "description": self.description,
            "transactionId": self.transaction_id,
            "transactions": self.transactions,
        }


class ClassificationResult(BaseModel):
    """Outcome of one classification call. ``category`` is None when inconclusive."""
    category: Optional[str] = None
    prompt: str
    response: str = ""


class HumanInputRequest(BaseModel):
    """Operator-supplied category for a job waiting on human input."""
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId", min_length=1)
    category: str = Field(..., min_length=1)

    @field_validator("category")
    @classmethod
    def strip_category(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("category must not be blank")
        return v
