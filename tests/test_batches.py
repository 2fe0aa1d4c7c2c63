# tests/test_batches.py

import asyncio
import logging

import pytest

from gradeflow.core.errors import EmptyUploadError, PersistenceError, UnsupportedFileTypeError
from gradeflow.db.models import BatchStatus
from gradeflow.schemas.submissions import UploadedFile
from gradeflow.services.batches import (
    SubmissionBatchStateMachine,
    accepted_file_types,
    check_upload,
    is_accepted,
)


@pytest.fixture
def machine(store):
    return SubmissionBatchStateMachine(store)


def test_create_batch_starts_grading_with_synthesized_name(machine, store):
    batch = asyncio.run(machine.create_batch("asg-1", "", file_count=3))

    assert batch.status is BatchStatus.GRADING
    assert batch.file_count == 3
    assert batch.name == f"Batch {batch.id}"
    assert store.row("submissions", batch.id)["batch_name"] is None
    assert store.row("submissions", batch.id)["status"] == "grading"


def test_create_batch_keeps_given_name(machine):
    batch = asyncio.run(machine.create_batch("asg-1", "  Midterm  ", file_count=1))
    assert batch.name == "Midterm"


def test_empty_upload_is_rejected(machine, store):
    with pytest.raises(EmptyUploadError):
        asyncio.run(machine.create_batch("asg-1", "X", file_count=0))

    assert machine.list_batches("asg-1") == ()
    assert ("insert", "submissions") not in store.calls


def test_list_is_newest_first(machine, store, submission_row):
    store.seed("submissions", submission_row("sub-c", 3))

    batches = asyncio.run(machine.refresh("asg-1"))

    assert [b.id for b in batches] == ["sub-c", "sub-b", "sub-a"]
    assert machine.list_batches("asg-1") == batches


def test_ties_are_broken_by_id(machine, store, submission_row):
    store.seed("submissions", submission_row("sub-x", 5))
    store.seed("submissions", submission_row("sub-y", 5))

    batches = asyncio.run(machine.refresh("asg-1"))

    assert [b.id for b in batches][:2] == ["sub-y", "sub-x"]


def test_new_batch_is_listed_first(machine):
    asyncio.run(machine.refresh("asg-1"))
    batch = asyncio.run(machine.create_batch("asg-1", None, file_count=2))

    assert machine.list_batches("asg-1")[0] == batch
    assert len(machine.list_batches("asg-1")) == 3


def test_refresh_failure_keeps_previous_list(machine, store):
    before = asyncio.run(machine.refresh("asg-1"))
    store.fail("select", "submissions")

    with pytest.raises(PersistenceError):
        asyncio.run(machine.refresh("asg-1"))

    assert machine.list_batches("asg-1") is before


def test_subscribers_receive_whole_lists(machine):
    published = []
    machine.subscribe(lambda assignment_id, batches: published.append((assignment_id, batches)))

    asyncio.run(machine.refresh("asg-1"))

    assert published == [("asg-1", machine.list_batches("asg-1"))]
    assert isinstance(published[0][1], tuple)


def test_status_changes_are_reflected_and_logged(machine, store, caplog):
    caplog.set_level(logging.INFO)
    asyncio.run(machine.refresh("asg-1"))
    store.tables["submissions"]["sub-b"]["status"] = "completed"
    store.tables["submissions"]["sub-a"]["status"] = "grading"

    batches = {b.id: b for b in asyncio.run(machine.refresh("asg-1"))}

    assert batches["sub-b"].status is BatchStatus.COMPLETED
    assert batches["sub-a"].status is BatchStatus.GRADING
    assert "batch_transition" in caplog.text
    assert "batch_state_reset" in caplog.text


def test_terminal_states_do_not_transition():
    assert BatchStatus.GRADING.can_transition_to(BatchStatus.FAILED)
    assert not BatchStatus.COMPLETED.can_transition_to(BatchStatus.GRADING)
    assert not BatchStatus.FAILED.can_transition_to(BatchStatus.COMPLETED)


def test_missing_file_count_reads_as_zero(machine, store, submission_row):
    store.seed("submissions", {**submission_row("sub-z", 9), "file_count": None})

    batches = asyncio.run(machine.refresh("asg-1"))

    assert batches[0].file_count == 0


def test_accepted_file_types():
    assert accepted_file_types("voice") == ["audio/*"]
    assert accepted_file_types("essay") == ["application/pdf"]
    assert is_accepted("audio/mpeg", ["audio/*"])
    assert not is_accepted("application/pdf", ["audio/*"])
    assert is_accepted("application/pdf", ["application/pdf"])


def test_check_upload_names_rejected_files():
    files = [
        UploadedFile(name="essay.pdf", content_type="application/pdf"),
        UploadedFile(name="notes.docx", content_type="application/msword"),
    ]

    with pytest.raises(UnsupportedFileTypeError) as exc_info:
        check_upload("essay", files)

    assert exc_info.value.rejected == ["notes.docx"]


def test_file_count_must_be_named(machine, store):
    with pytest.raises(TypeError):
        asyncio.run(machine.create_batch("asg-1", "Week 2"))
    with pytest.raises(TypeError):
        asyncio.run(machine.create_batch("asg-1", "Week 2", 3))

    assert ("insert", "submissions") not in store.calls


def test_older_refresh_cannot_overwrite_newer_one(machine, store, submission_row):
    published = []
    machine.subscribe(lambda assignment_id, batches: published.append(batches))

    async def scenario():
        gate = store.hold("select", "submissions")
        older = asyncio.create_task(machine.refresh("asg-1"))
        for _ in range(3):
            await asyncio.sleep(0)
        store.seed("submissions", submission_row("sub-c", 3))
        newer = await machine.refresh("asg-1")
        gate.set()
        return await older, newer

    older, newer = asyncio.run(scenario())

    assert [b.id for b in newer] == ["sub-c", "sub-b", "sub-a"]
    assert older is newer
    assert machine.list_batches("asg-1")[0].id == "sub-c"
    assert published == [newer]


def test_refresh_started_before_upload_keeps_new_batch(machine, store):
    async def scenario():
        gate = store.hold("select", "submissions")
        stale = asyncio.create_task(machine.refresh("asg-1"))
        for _ in range(3):
            await asyncio.sleep(0)
        batch = await machine.create_batch("asg-1", "Late", file_count=1)
        gate.set()
        await stale
        return batch

    batch = asyncio.run(scenario())

    assert machine.list_batches("asg-1")[0] == batch


def test_unreadable_insert_names_the_batch(machine, store, monkeypatch, caplog):
    async def insert(table, values):
        return {**values, "id": "sub-9", "status": "queued", "created_at": "2025-03-01T10:00:00+00:00"}

    monkeypatch.setattr(store, "insert", insert)

    with pytest.raises(PersistenceError) as exc_info:
        asyncio.run(machine.create_batch("asg-1", None, file_count=1))

    assert exc_info.value.record_id == "sub-9"
    assert "batch_unreadable" in caplog.text and "batch=sub-9" in caplog.text
    assert machine.list_batches("asg-1") == ()
