"""
Real-time fan-out of job events to connected subscribers.
"""
import asyncio
import uuid
from typing import Any, Dict, List, Optional, Set

from core.events import EventKind, EventPayload
from core.job_store import JobStore
from core.logger import setup_logger

logger = setup_logger(__name__)

SNAPSHOT_EVENT = "jobs"


class Subscriber:
    """One connected client. Messages that do not fit the buffer are dropped."""

    def __init__(self, maxsize: int = 100):
        self.id = str(uuid.uuid4())
        self.queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, message: Dict[str, Any]) -> bool:
        try:
            self.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Subscriber {self.id} is slow, dropped '{message['event']}'")
            return False

    async def next_message(self) -> Dict[str, Any]:
        return await self.queue.get()


def snapshot_message(jobs: List[Any]) -> Dict[str, Any]:
    return {"event": SNAPSHOT_EVENT, "data": [job.to_json() for job in jobs]}


class EventBroadcaster:
    """
    Republishes store events to every subscriber.

    Event handlers never block: delivery is scheduled on the event loop and
    each subscriber has its own bounded buffer.
    """

    def __init__(self, store: JobStore, queue_size: int = 100):
        self.store = store
        self.queue_size = queue_size
        self._subscribers: Set[Subscriber] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def attach(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Start listening to the store. Must run on the loop that serves subscribers."""
        self._loop = loop or asyncio.get_running_loop()
        self.store.events.subscribe_all(self._on_event)

    def detach(self) -> None:
        self.store.events.unsubscribe_all(self._on_event)
        self._loop = None

    def connect(self) -> Subscriber:
        """Register a subscriber, seeded with the full current job list."""
        subscriber = Subscriber(maxsize=self.queue_size)
        subscriber.offer(snapshot_message(self.store.get_jobs()))
        self._subscribers.add(subscriber)
        logger.info(f"Subscriber {subscriber.id} connected ({self.subscriber_count} total)")
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.discard(subscriber)
            logger.info(f"Subscriber {subscriber.id} disconnected ({self.subscriber_count} total)")

    def _on_event(self, kind: EventKind, payload: EventPayload) -> None:
        loop = self._loop
        if loop is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._fan_out(kind, payload)
            return

        try:
            loop.call_soon_threadsafe(self._fan_out, kind, payload)
        except RuntimeError:
            logger.debug(f"Event loop closed, dropping '{kind.value}'")

    def _fan_out(self, kind: EventKind, payload: EventPayload) -> None:
        if not self._subscribers:
            return
        message = {"event": kind.value, "data": payload.to_json()}
        for subscriber in list(self._subscribers):
            subscriber.offer(message)
