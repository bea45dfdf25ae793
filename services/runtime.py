"""
Wiring of the job pipeline components.
"""
from dataclasses import dataclass
from typing import Optional

from core.config import Settings, get_settings
from core.job_store import JobStore
from services.broadcaster import EventBroadcaster
from services.categorization_service import CategorizationService
from services.cleanup import CleanupScheduler
from services.human_input import HumanInputResolver
from services.processing_queue import ProcessingQueue


@dataclass
class Runtime:
    """Everything the API needs, sharing one job store."""
    settings: Settings
    store: JobStore
    queue: ProcessingQueue
    broadcaster: EventBroadcaster
    cleanup: CleanupScheduler
    service: CategorizationService
    resolver: HumanInputResolver

    async def start(self) -> None:
        self.broadcaster.attach()
        await self.queue.start()
        await self.cleanup.start()

    async def stop(self) -> None:
        await self.cleanup.stop()
        await self.queue.stop()
        self.broadcaster.detach()


def build_runtime(
    settings: Optional[Settings] = None,
    ledger=None,
    classifier=None,
    store: Optional[JobStore] = None
) -> Runtime:
    """
    Build the pipeline.

    Args:
        settings: Application settings (global settings if omitted)
        ledger: Ledger collaborator (Firefly client if omitted)
        classifier: Classification collaborator (OpenAI classifier if omitted)
        store: Job store (a new one if omitted)

    Returns:
        Runtime ready to be started
    """
    settings = settings or get_settings()

    if ledger is None:
        from firefly.client import FireflyClient
        ledger = FireflyClient(settings)
    if classifier is None:
        from llm.classify import TransactionClassifier
        from llm.client import OpenAIClientWrapper
        classifier = TransactionClassifier(OpenAIClientWrapper(settings))

    store = store or JobStore()
    queue = ProcessingQueue(store, timeout=settings.job_timeout_seconds)

    return Runtime(
        settings=settings,
        store=store,
        queue=queue,
        broadcaster=EventBroadcaster(store, queue_size=settings.subscriber_queue_size),
        cleanup=CleanupScheduler(
            store,
            retention_seconds=settings.job_retention_seconds,
            interval_seconds=settings.cleanup_interval_seconds
        ),
        service=CategorizationService(store, queue, ledger, classifier),
        resolver=HumanInputResolver(store, ledger),
    )
