"""
Validated partial updates of class and assignment records.

``update_record`` is the only write path for these tables: validate, stamp
``updatedAt``, convert to persisted keys, update the row by id, read the
returned row back into a typed canonical record.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Type

from pydantic import ValidationError as PydanticValidationError

from gradeflow.core.errors import (
    GradeflowError,
    PersistenceError,
    PersistenceFailure,
    RecordNotFoundError,
    ValidationError,
)
from gradeflow.core.logging import log_event
from gradeflow.core.naming import to_canonical, to_persisted
from gradeflow.core.notices import Notice, NoticeChannel
from gradeflow.db.models import AssignmentRecord, CanonicalModel, ClassRecord
from gradeflow.db.store import RecordStore
from gradeflow.schemas.assignments import AssignmentUpdate, GradingCriteriaUpdate
from gradeflow.schemas.classes import ClassUpdate
from gradeflow.schemas.validation import PatchSchema, validate_payload

logger = logging.getLogger(__name__)


class RecordKind(str, Enum):
    CLASS = "class"
    ASSIGNMENT = "assignment"
    GRADING_CRITERIA = "grading_criteria"


@dataclass(frozen=True)
class MutationRoute:
    table: str
    schema: Type[PatchSchema]
    record: Type[CanonicalModel]
    success_message: str
    failure_message: str
    # where to send the user when the record is gone
    parent_path: str = "/classes"


ROUTES: Dict[RecordKind, MutationRoute] = {
    RecordKind.CLASS: MutationRoute(
        "classes", ClassUpdate, ClassRecord,
        "Class updated successfully!", "Failed to update class",
    ),
    RecordKind.ASSIGNMENT: MutationRoute(
        "assignments", AssignmentUpdate, AssignmentRecord,
        "Assignment updated successfully", "Failed to update assignment",
    ),
    RecordKind.GRADING_CRITERIA: MutationRoute(
        "assignments", GradingCriteriaUpdate, AssignmentRecord,
        "Grading criteria updated successfully", "Failed to update grading criteria",
    ),
}


class MutationResult:
    """
    Outcome of ``update_record``.

    Attributes:
        ok (bool): Whether the patch landed.
        record (CanonicalModel | None): The refreshed record on success.
        error (GradeflowError | None): ValidationError or PersistenceError on failure.
        notice (Notice | None): The single notice published for this call.
    """

    def __init__(
        self,
        ok: bool,
        record: Optional[CanonicalModel] = None,
        error: Optional[GradeflowError] = None,
        notice: Optional[Notice] = None,
    ):
        self.ok = ok
        self.record = record
        self.error = error
        self.notice = notice

    @classmethod
    def succeed(cls, record: CanonicalModel, notice: Optional[Notice] = None) -> "MutationResult":
        return cls(ok=True, record=record, notice=notice)

    @classmethod
    def fail(cls, error: GradeflowError, notice: Optional[Notice] = None) -> "MutationResult":
        return cls(ok=False, error=error, notice=notice)

    def unwrap(self) -> CanonicalModel:
        if not self.ok:
            raise self.error
        return self.record

    def __repr__(self) -> str:
        if self.ok:
            return f"MutationResult(ok, {type(self.record).__name__} {self.record.id})"
        return f"MutationResult(failed, {type(self.error).__name__}: {self.error.message})"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordMutationController:
    def __init__(
        self,
        store: RecordStore,
        notices: Optional[NoticeChannel] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.notices = notices or NoticeChannel()
        self.clock = clock

    async def update_record(self, kind: RecordKind, record_id: str, patch: dict) -> MutationResult:
        kind = RecordKind(kind)
        route = ROUTES[kind]

        try:
            normalized = validate_payload(route.schema, patch)
        except ValidationError as exc:
            log_event(
                logger, logging.WARNING, "validation_failed",
                kind=kind.value, id=record_id, fields=exc.fields,
            )
            return MutationResult.fail(exc, self.notices.error(exc.message))

        normalized["updatedAt"] = self.clock().isoformat()
        malformed = []
        values = to_persisted(normalized, malformed)

        try:
            row = await self.store.update(route.table, record_id, values)
            record = self._read_back(route, row, malformed)
        except PersistenceError as exc:
            if isinstance(exc, RecordNotFoundError) and exc.redirect is None:
                exc.redirect = route.parent_path
            log_event(
                logger, logging.ERROR, "persistence_failed",
                kind=kind.value, table=exc.table, id=record_id, reason=exc.reason.value, error=exc.message,
            )
            return MutationResult.fail(exc, self.notices.error(exc.message or route.failure_message))

        if malformed:
            log_event(logger, logging.WARNING, "malformed_keys", table=route.table, keys=malformed)
        log_event(
            logger, logging.INFO, "record_updated",
            kind=kind.value, id=record_id, fields=[k for k in normalized if k != "updatedAt"],
        )
        return MutationResult.succeed(record, self.notices.success(route.success_message))

    def _read_back(self, route: MutationRoute, row: dict, malformed: list) -> CanonicalModel:
        try:
            return route.record.model_validate(to_canonical(row, malformed))
        except PydanticValidationError as e:
            raise PersistenceError(
                f"{route.table} returned an unreadable record",
                route.table,
                PersistenceFailure.MALFORMED,
            ) from e
