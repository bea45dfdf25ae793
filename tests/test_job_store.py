"""
Tests for the in-memory job registry and its events.
"""
import threading

import pytest

from core.events import EventKind
from core.exceptions import InvalidOperationError
from core.job_store import JobStore
from core.schema import JobStatus


@pytest.fixture
def store(clock):
    return JobStore(clock=clock)


@pytest.fixture
def recorded(store):
    events = []
    store.events.subscribe_all(lambda kind, payload: events.append((kind, payload)))
    return events


def test_ids_are_unique(store):
    ids = {store.create_job({"n": i}).id for i in range(500)}
    assert len(ids) == 500


def test_create_job(store, recorded, clock):
    job = store.create_job({"destinationName": "Coffee Shop"})

    assert job.status == JobStatus.QUEUED
    assert job.created == clock.now
    assert job.data == {"destinationName": "Coffee Shop"}
    kind, payload = recorded[-1]
    assert kind is EventKind.JOB_CREATED
    assert payload.job.id == job.id
    assert [j.id for j in payload.jobs] == [job.id]


def test_update_job_data_merges(store, recorded):
    job = store.create_job({"a": 1, "b": 2})
    updated = store.update_job_data(job.id, {"b": 3, "c": 4})

    assert updated.data == {"a": 1, "b": 3, "c": 4}
    assert recorded[-1][0] is EventKind.JOB_UPDATED


def test_update_cannot_set_error_message(store):
    job = store.create_job({})
    store.update_job_data(job.id, {"errorMessage": "nope", "x": 1})
    assert store.get_job(job.id).data == {"x": 1}


def test_unknown_ids_are_noops(store, recorded):
    assert store.update_job_data("missing", {"a": 1}) is None
    assert store.set_in_progress("missing") is None
    assert store.set_failed("missing", "boom") is None
    assert store.delete_job("missing") is False
    assert recorded == []


def test_happy_path_transitions(store):
    job = store.create_job({})
    assert store.set_in_progress(job.id).status == JobStatus.IN_PROGRESS
    assert store.set_human_input(job.id).status == JobStatus.HUMAN_INPUT
    assert store.set_finished(job.id).status == JobStatus.FINISHED


def test_cannot_skip_in_progress(store):
    job = store.create_job({})
    with pytest.raises(InvalidOperationError):
        store.set_finished(job.id)
    with pytest.raises(InvalidOperationError):
        store.set_human_input(job.id)
    assert store.get_job(job.id).status == JobStatus.QUEUED


def test_terminal_states_are_final(store):
    job = store.create_job({})
    store.set_in_progress(job.id)
    store.set_finished(job.id)
    for transition in (store.set_in_progress, store.set_human_input, store.set_finished):
        with pytest.raises(InvalidOperationError):
            transition(job.id)
    with pytest.raises(InvalidOperationError):
        store.set_failed(job.id, "late")


def test_human_input_only_leaves_to_finished(store):
    job = store.create_job({})
    store.set_in_progress(job.id)
    store.set_human_input(job.id)
    with pytest.raises(InvalidOperationError):
        store.set_failed(job.id, "timeout")
    assert store.get_job(job.id).status == JobStatus.HUMAN_INPUT


def test_set_failed_records_message_and_emits(store, recorded):
    job = store.create_job({})
    store.set_in_progress(job.id)
    failed = store.set_failed(job.id, "network down")

    assert failed.status == JobStatus.FAILED
    assert failed.error_message == "network down"
    kind, payload = recorded[-1]
    assert kind is EventKind.JOB_UPDATED
    assert payload.job.data["errorMessage"] == "network down"


def test_set_failed_never_leaves_empty_message(store):
    job = store.create_job({})
    store.set_in_progress(job.id)
    assert store.set_failed(job.id, "  ").error_message == "Unknown error"


def test_error_message_only_on_failed_jobs(store):
    job = store.create_job({"errorMessage": "stale"})
    assert "errorMessage" not in store.get_job(job.id).data


def test_delete_only_terminal(store, recorded):
    job = store.create_job({})
    with pytest.raises(InvalidOperationError):
        store.delete_job(job.id)

    store.set_in_progress(job.id)
    store.set_finished(job.id)
    assert store.delete_job(job.id) is True
    assert store.get_job(job.id) is None

    kind, payload = recorded[-1]
    assert kind is EventKind.JOB_DELETED
    assert payload.id == job.id
    assert payload.jobs == []


def test_reads_return_copies(store):
    job = store.create_job({"a": 1})
    copy = store.get_job(job.id)
    copy.data["a"] = 99
    copy.status = JobStatus.FINISHED

    fresh = store.get_job(job.id)
    assert fresh.data["a"] == 1
    assert fresh.status == JobStatus.QUEUED


def test_count_by_status(store):
    first = store.create_job({})
    store.create_job({})
    store.set_in_progress(first.id)

    assert store.count() == 2
    assert store.count(JobStatus.IN_PROGRESS) == 1
    assert store.count(JobStatus.QUEUED) == 1


def test_concurrent_updates_are_not_lost(store):
    job = store.create_job({})

    def writer(prefix):
        for i in range(200):
            store.update_job_data(job.id, {f"{prefix}{i}": i})

    threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store.get_job(job.id).data) == 800


def test_job_lock_is_per_job(store):
    a = store.create_job({})
    b = store.create_job({})
    assert store.job_lock(a.id) is store.job_lock(a.id)
    assert store.job_lock(a.id) is not store.job_lock(b.id)
