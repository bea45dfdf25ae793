"""
Tests for the event bus.
"""
from datetime import datetime, timezone

from core.events import CategoryInputRequest, EventBus, EventKind, JobDeletedEvent, JobEvent
from core.schema import Job


def _job():
    return Job(id="job-1", created=datetime(2024, 1, 1, tzinfo=timezone.utc), data={"a": 1})


def test_handlers_receive_only_their_kind():
    bus = EventBus()
    created, deleted = [], []
    bus.subscribe(EventKind.JOB_CREATED, lambda kind, payload: created.append(payload))
    bus.subscribe(EventKind.JOB_DELETED, lambda kind, payload: deleted.append(payload))

    bus.publish(EventKind.JOB_CREATED, JobEvent(job=_job(), jobs=[_job()]))

    assert len(created) == 1
    assert deleted == []


def test_unsubscribe():
    bus = EventBus()
    seen = []

    def handler(kind, payload):
        seen.append(kind)

    bus.subscribe_all(handler)
    bus.unsubscribe_all(handler)
    bus.publish(EventKind.JOB_UPDATED, JobEvent(job=_job(), jobs=[]))

    assert seen == []


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    def broken(kind, payload):
        raise RuntimeError("boom")

    bus.subscribe(EventKind.JOB_UPDATED, broken)
    bus.subscribe(EventKind.JOB_UPDATED, lambda kind, payload: seen.append(kind))

    bus.publish(EventKind.JOB_UPDATED, JobEvent(job=_job(), jobs=[]))

    assert seen == [EventKind.JOB_UPDATED]


def test_payload_serialization():
    event = JobEvent(job=_job(), jobs=[_job()])
    data = event.to_json()
    assert data["job"]["id"] == "job-1"
    assert data["job"]["status"] == "queued"
    assert data["job"]["created"].startswith("2024-01-01T00:00:00")
    assert len(data["jobs"]) == 1

    assert JobDeletedEvent(id="job-1", jobs=[]).to_json() == {"id": "job-1", "jobs": []}

    request = CategoryInputRequest(
        job_id="job-1",
        transaction_id="42",
        description="COFFEE SHOP",
        prompt="pick one",
        categories=["Groceries"],
    )
    assert request.to_json() == {
        "jobId": "job-1",
        "transactionId": "42",
        "description": "COFFEE SHOP",
        "prompt": "pick one",
        "categories": ["Groceries"],
    }


def test_event_names():
    assert EventKind.JOB_CREATED.value == "job created"
    assert EventKind.JOB_UPDATED.value == "job updated"
    assert EventKind.JOB_DELETED.value == "job deleted"
    assert EventKind.CATEGORY_INPUT_REQUESTED.value == "request-category-input"
