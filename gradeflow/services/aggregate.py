"""
The assignment page state: one assignment plus its submission batches.

The view has a single commit point. ``refresh`` fetches both halves
concurrently and commits only when both arrive; a refresh that finishes
after a newer one has committed is dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from pydantic import computed_field

from gradeflow.core.errors import (
    EmptyUploadError,
    GradeflowError,
    PersistenceError,
    PersistenceFailure,
    RecordNotFoundError,
    UnsupportedFileTypeError,
)
from gradeflow.core.logging import log_event
from gradeflow.core.naming import to_canonical
from gradeflow.core.notices import Notice, NoticeChannel
from gradeflow.db.models import AssignmentRecord, CanonicalModel, SubmissionBatch
from gradeflow.db.store import RecordStore
from gradeflow.schemas.submissions import UploadedFile
from gradeflow.services.batches import SubmissionBatchStateMachine, check_upload
from gradeflow.services.batches import accepted_file_types as accepted_types_for
from gradeflow.services.mutations import MutationResult, RecordKind, RecordMutationController

logger = logging.getLogger(__name__)

ASSIGNMENTS_TABLE = "assignments"
LOAD_FAILED = "Failed to load assignment data"
UPLOAD_SUCCEEDED = "Files uploaded successfully"
UPLOAD_FAILED = "Failed to upload files"


class AssignmentSnapshot(CanonicalModel):
    assignment: AssignmentRecord
    batches: Tuple[SubmissionBatch, ...] = ()

    @computed_field(alias="acceptedFileTypes")
    @property
    def accepted_file_types(self) -> List[str]:
        return accepted_types_for(self.assignment.type)

    @computed_field(alias="submissionCount")
    @property
    def submission_count(self) -> int:
        return len(self.batches)


@dataclass(frozen=True)
class RefreshOutcome:
    committed: bool
    snapshot: Optional[AssignmentSnapshot] = None
    error: Optional[GradeflowError] = None
    notice: Optional[Notice] = None
    redirect: Optional[str] = None
    superseded: bool = False


@dataclass(frozen=True)
class UploadOutcome:
    batch: SubmissionBatch
    snapshot: AssignmentSnapshot
    notice: Notice


class AssignmentAggregateView:
    def __init__(
        self,
        assignment_id: str,
        class_id: str,
        store: RecordStore,
        batches: SubmissionBatchStateMachine,
        mutations: RecordMutationController,
        notices: Optional[NoticeChannel] = None,
    ):
        self.assignment_id = assignment_id
        self.class_id = class_id
        self.store = store
        self.batches = batches
        self.mutations = mutations
        self.notices = notices or mutations.notices
        self._snapshot: Optional[AssignmentSnapshot] = None
        self._requested = 0
        self._committed = 0
        self._subscribers: List[Callable[[AssignmentSnapshot], None]] = []

    @property
    def snapshot(self) -> Optional[AssignmentSnapshot]:
        return self._snapshot

    @property
    def parent_path(self) -> str:
        return f"/classes/{self.class_id}"

    def subscribe(self, callback: Callable[[AssignmentSnapshot], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def refresh(self) -> RefreshOutcome:
        seq = self._next_seq()
        batch_seq = self.batches.reserve(self.assignment_id)
        results = await asyncio.gather(
            self._fetch_assignment(),
            self.batches.fetch(self.assignment_id),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, GradeflowError):
                raise result

        if seq < self._committed:
            log_event(logger, logging.INFO, "refresh_superseded", assignment=self.assignment_id, seq=seq)
            return RefreshOutcome(committed=False, snapshot=self._snapshot, superseded=True)

        errors = [r for r in results if isinstance(r, GradeflowError)]
        if errors:
            return self._refresh_failed(errors[0])

        assignment, batches = results
        batches = self.batches.commit(self.assignment_id, batches, batch_seq)
        return RefreshOutcome(committed=True, snapshot=self._commit(assignment, batches, seq))

    async def edit_assignment(self, patch: dict) -> MutationResult:
        return await self._edit(RecordKind.ASSIGNMENT, patch)

    async def edit_grading_criteria(self, grading_criteria) -> MutationResult:
        """Accepts the criteria text or a ``{"gradingCriteria": ...}`` patch."""
        if isinstance(grading_criteria, str):
            grading_criteria = {"gradingCriteria": grading_criteria}
        return await self._edit(RecordKind.GRADING_CRITERIA, grading_criteria)

    async def upload(self, files: Iterable[UploadedFile], batch_name: Optional[str] = None) -> UploadOutcome:
        """
        Create a batch for ``files``.

        Raises:
            UnsupportedFileTypeError: A file doesn't match the assignment type.
            EmptyUploadError: No files were given.
            PersistenceError: The assignment or the insert failed.
        """
        files = list(files)
        if self._snapshot is None:
            outcome = await self.refresh()
            # a superseded load leaves the newer snapshot; a failed one was already reported
            if not outcome.committed and self._snapshot is None:
                raise outcome.error
        assignment = self._snapshot.assignment

        try:
            check_upload(assignment.type, files)
            batch = await self.batches.create_batch(self.assignment_id, batch_name, file_count=len(files))
        except UnsupportedFileTypeError as exc:
            log_event(
                logger, logging.WARNING, "upload_rejected",
                assignment=self.assignment_id, reason="file_type", files=exc.rejected,
            )
            self.notices.error(exc.message)
            raise
        except EmptyUploadError as exc:
            self.notices.error(exc.message)
            raise
        except PersistenceError as exc:
            log_event(
                logger, logging.ERROR, "persistence_failed",
                table=exc.table, assignment=self.assignment_id, batch=exc.record_id,
                reason=exc.reason.value, error=exc.message,
            )
            self.notices.error(exc.message or UPLOAD_FAILED)
            raise

        snapshot = self._commit(assignment, self.batches.list_batches(self.assignment_id), self._next_seq())
        return UploadOutcome(batch, snapshot, self.notices.success(UPLOAD_SUCCEEDED))

    async def _edit(self, kind: RecordKind, patch: dict) -> MutationResult:
        result = await self.mutations.update_record(kind, self.assignment_id, patch)
        if isinstance(result.error, RecordNotFoundError):
            result.error.redirect = self.parent_path
        if result.ok and self._snapshot is not None:
            self._commit(result.record, self._snapshot.batches, self._next_seq())
        return result

    async def _fetch_assignment(self) -> AssignmentRecord:
        row = await self.store.fetch(ASSIGNMENTS_TABLE, self.assignment_id)
        malformed = []
        try:
            assignment = AssignmentRecord.model_validate(to_canonical(row, malformed))
        except PydanticValidationError as e:
            raise PersistenceError(
                "Assignment record is unreadable", ASSIGNMENTS_TABLE, PersistenceFailure.MALFORMED
            ) from e
        if malformed:
            log_event(logger, logging.WARNING, "malformed_keys", table=ASSIGNMENTS_TABLE, keys=malformed)
        return assignment

    def _refresh_failed(self, error: GradeflowError) -> RefreshOutcome:
        redirect = None
        if isinstance(error, RecordNotFoundError):
            error.redirect = redirect = self.parent_path
        log_event(
            logger, logging.ERROR, "refresh_failed",
            assignment=self.assignment_id, error=type(error).__name__, detail=error.message,
        )
        notice = self.notices.error(error.message or LOAD_FAILED)
        return RefreshOutcome(
            committed=False, snapshot=self._snapshot, error=error, notice=notice, redirect=redirect
        )

    def _next_seq(self) -> int:
        self._requested += 1
        return self._requested

    def _commit(self, assignment: AssignmentRecord, batches, seq: int) -> AssignmentSnapshot:
        self._snapshot = AssignmentSnapshot(assignment=assignment, batches=tuple(batches))
        self._committed = seq
        log_event(
            logger, logging.INFO, "view_committed",
            assignment=self.assignment_id, seq=seq, batches=len(self._snapshot.batches),
        )
        for callback in list(self._subscribers):
            callback(self._snapshot)
        return self._snapshot


def example_grading_criteria(points: int) -> str:
    """Rubric template offered as a starting point when writing grading criteria."""
    return f"""Rubric Guidelines (Total: {points} points)

Content Understanding [40%]
• Complete (4pts): Demonstrates thorough understanding, accurate analysis
• Partial (2-3pts): Shows basic comprehension, some gaps present
• Limited (0-1pts): Major misconceptions or incomplete response

Organization [30%]
• Strong (3pts): Clear structure, logical flow, well-connected ideas
• Developing (2pts): Basic organization, some unclear transitions
• Needs Work (0-1pts): Unclear structure, difficult to follow

Evidence/Support [30%]
• Thorough (3pts): Strong examples, relevant details
• Basic (2pts): Some supporting evidence, needs development
• Limited (0-1pts): Lacks sufficient support

Tips:
- Break total points into clear categories
- Define specific criteria per level
- Allow for partial credit
- Include concrete examples"""
