"""
Typed publish/subscribe for job lifecycle events.
"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Union

from core.logger import setup_logger
from core.schema import Job

logger = setup_logger(__name__)


class EventKind(str, Enum):
    """Event names, as seen by real-time subscribers."""
    JOB_CREATED = "job created"
    JOB_UPDATED = "job updated"
    JOB_DELETED = "job deleted"
    CATEGORY_INPUT_REQUESTED = "request-category-input"


@dataclass(frozen=True)
class JobEvent:
    """A job was created or changed. ``jobs`` is the full snapshot after the change."""
    job: Job
    jobs: List[Job]

    def to_json(self) -> Dict[str, Any]:
        return {"job": self.job.to_json(), "jobs": [j.to_json() for j in self.jobs]}


@dataclass(frozen=True)
class JobDeletedEvent:
    id: str
    jobs: List[Job]

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "jobs": [j.to_json() for j in self.jobs]}


@dataclass(frozen=True)
class CategoryInputRequest:
    """Operator input is needed to finish a job."""
    job_id: str
    transaction_id: str
    description: str
    prompt: str
    categories: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "transactionId": self.transaction_id,
            "description": self.description,
            "prompt": self.prompt,
            "categories": list(self.categories),
        }


EventPayload = Union[JobEvent, JobDeletedEvent, CategoryInputRequest]
Handler = Callable[[EventKind, EventPayload], None]


class EventBus:
    """
    Synchronous fan-out of events to registered handlers.

    Handlers must not block; a handler that raises is logged and skipped.
    """

    def __init__(self):
        self._handlers: Dict[EventKind, List[Handler]] = {kind: [] for kind in EventKind}
        self._lock = threading.Lock()

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        with self._lock:
            if handler not in self._handlers[kind]:
                self._handlers[kind].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        for kind in EventKind:
            self.subscribe(kind, handler)

    def unsubscribe(self, kind: EventKind, handler: Handler) -> None:
        with self._lock:
            if handler in self._handlers[kind]:
                self._handlers[kind].remove(handler)

    def unsubscribe_all(self, handler: Handler) -> None:
        for kind in EventKind:
            self.unsubscribe(kind, handler)

    def publish(self, kind: EventKind, payload: EventPayload) -> None:
        with self._lock:
            handlers = list(self._handlers[kind])

        for handler in handlers:
            try:
                handler(kind, payload)
            except Exception as e:
                logger.error(f"Event handler failed for '{kind.value}': {e}", exc_info=True)
