"""
Submission batches: creation on upload and the per-assignment batch list.

Batch status is owned by the external grading process. This module only
creates batches in ``grading`` and reflects whatever status it reads back.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from gradeflow.core.errors import (
    EmptyUploadError,
    PersistenceError,
    PersistenceFailure,
    UnsupportedFileTypeError,
)
from gradeflow.core.logging import log_event
from gradeflow.core.naming import to_canonical, to_persisted
from gradeflow.db.models import BatchStatus, SubmissionBatch
from gradeflow.db.store import RecordStore
from gradeflow.schemas.submissions import UploadedFile

logger = logging.getLogger(__name__)

TABLE = "submissions"

AUDIO_TYPES = "audio/*"
PDF_TYPE = "application/pdf"

Batches = Tuple[SubmissionBatch, ...]


def accepted_file_types(assignment_type: str) -> List[str]:
    return [AUDIO_TYPES] if assignment_type == "voice" else [PDF_TYPE]


def is_accepted(content_type: str, accepted: Iterable[str]) -> bool:
    content_type = (content_type or "").split(";")[0].strip().lower()
    for pattern in accepted:
        if pattern.endswith("/*"):
            if content_type.startswith(pattern[:-1]):
                return True
        elif content_type == pattern:
            return True
    return False


def check_upload(assignment_type: str, files: Iterable[UploadedFile]) -> None:
    """Raise UnsupportedFileTypeError naming every file the assignment won't take."""
    accepted = accepted_file_types(assignment_type)
    rejected = [f.name for f in files if not is_accepted(f.content_type, accepted)]
    if rejected:
        raise UnsupportedFileTypeError(rejected, accepted)


def order_batches(batches: Iterable[SubmissionBatch]) -> Batches:
    """Newest first; batches created at the same instant are ordered by id, descending."""
    return tuple(sorted(batches, key=SubmissionBatch.sort_key, reverse=True))


def parse_batch(row: dict) -> SubmissionBatch:
    try:
        return SubmissionBatch.model_validate(to_canonical(row))
    except PydanticValidationError as e:
        raise PersistenceError(
            "Submission batch record is unreadable", TABLE, PersistenceFailure.MALFORMED,
            record_id=row.get("id"),
        ) from e


class SubmissionBatchStateMachine:
    """
    Holds the committed batch list of every assignment seen in this session.

    Lists are immutable tuples and are swapped whole on every change, so a
    subscriber or a caller of ``list_batches`` never sees a half-applied
    refresh. Each assignment numbers its reads; a read that lands after a
    newer one has been committed is dropped.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self._batches: Dict[str, Batches] = {}
        self._subscribers: List[Callable[[str, Batches], None]] = []
        self._requested: Dict[str, int] = {}
        self._committed: Dict[str, int] = {}

    def subscribe(self, callback: Callable[[str, Batches], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def list_batches(self, assignment_id: str) -> Batches:
        return self._batches.get(assignment_id, ())

    async def create_batch(
        self,
        assignment_id: str,
        display_name: Optional[str] = None,
        *,
        file_count: int,
    ) -> SubmissionBatch:
        if file_count <= 0:
            log_event(logger, logging.WARNING, "upload_rejected", assignment=assignment_id, reason="empty")
            raise EmptyUploadError()

        values = to_persisted({
            "assignmentId": assignment_id,
            "batchName": (display_name or "").strip() or None,
            "fileCount": file_count,
            "status": BatchStatus.GRADING.value,
        })
        row = await self.store.insert(TABLE, values)
        try:
            batch = parse_batch(row)
        except PersistenceError as exc:
            # stored but not listed until the next refresh
            log_event(
                logger, logging.ERROR, "batch_unreadable",
                assignment=assignment_id, batch=exc.record_id, reason=exc.reason.value,
            )
            raise

        # the insert is newer than any read still in flight
        self._committed[assignment_id] = self.reserve(assignment_id)
        self._publish(assignment_id, order_batches((batch,) + self.list_batches(assignment_id)))
        log_event(
            logger, logging.INFO, "batch_created",
            assignment=assignment_id, batch=batch.id, files=batch.file_count,
        )
        return batch

    async def fetch(self, assignment_id: str) -> Batches:
        """Read the current batch list from the store without committing it."""
        rows = await self.store.select(
            TABLE,
            filters={"assignment_id": assignment_id},
            order_by="created_at",
            descending=True,
        )
        return order_batches(parse_batch(row) for row in rows)

    def reserve(self, assignment_id: str) -> int:
        """Number the next read of ``assignment_id``; pass it back to ``commit``."""
        seq = self._requested.get(assignment_id, 0) + 1
        self._requested[assignment_id] = seq
        return seq

    def commit(
        self,
        assignment_id: str,
        batches: Iterable[SubmissionBatch],
        seq: Optional[int] = None,
    ) -> Batches:
        """
        Publish ``batches`` as the assignment's list and return what is now current.

        A ``seq`` older than the last committed one leaves the list untouched.
        """
        if seq is None:
            seq = self.reserve(assignment_id)
        if seq < self._committed.get(assignment_id, 0):
            log_event(logger, logging.INFO, "refresh_superseded", assignment=assignment_id, seq=seq)
            return self.list_batches(assignment_id)
        self._committed[assignment_id] = seq

        batches = order_batches(batches)
        previous = {b.id: b for b in self.list_batches(assignment_id)}
        for batch in batches:
            old = previous.get(batch.id)
            if old is None or old.status == batch.status:
                continue
            if old.status.can_transition_to(batch.status):
                event = "batch_transition"
            else:
                # terminal states are final here; anything else is a fresh state
                event = "batch_state_reset"
            log_event(
                logger, logging.INFO, event,
                assignment=assignment_id, batch=batch.id, old=old.status.value, new=batch.status.value,
            )
        self._publish(assignment_id, batches)
        return batches

    async def refresh(self, assignment_id: str) -> Batches:
        seq = self.reserve(assignment_id)
        return self.commit(assignment_id, await self.fetch(assignment_id), seq)

    def _publish(self, assignment_id: str, batches: Batches) -> None:
        self._batches[assignment_id] = batches
        for callback in list(self._subscribers):
            callback(assignment_id, batches)
