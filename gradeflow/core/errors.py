"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a human-readable ``message`` that is safe to show to the
user as-is.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence


class GradeflowError(Exception):
    """Base class for every expected failure in the service."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class FieldViolation:
    field: str
    reason: str

    def to_dict(self) -> dict:
        return {"field": self.field, "reason": self.reason}


class ValidationError(GradeflowError):
    """A payload failed its schema. Never reaches the record store."""

    def __init__(self, violations: Sequence[FieldViolation], message: Optional[str] = None):
        self.violations: List[FieldViolation] = list(violations)
        if message is None:
            message = self.violations[0].reason if self.violations else "Invalid input"
        super().__init__(message)

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]


class PersistenceFailure(str, Enum):
    NETWORK = "network"
    CONSTRAINT = "constraint"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


class PersistenceError(GradeflowError):
    """A call to the record store failed; the operation was not applied."""

    def __init__(
        self,
        message: str,
        table: str,
        reason: PersistenceFailure = PersistenceFailure.NETWORK,
        code: Optional[str] = None,
        record_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.table = table
        self.reason = reason
        self.code = code
        self.record_id = record_id


class RecordNotFoundError(PersistenceError):
    """A record fetched by identifier does not exist."""

    def __init__(self, table: str, record_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{table} record {record_id} not found",
            table=table,
            reason=PersistenceFailure.NOT_FOUND,
            record_id=record_id,
        )
        # where the caller should send the user instead of rendering nothing
        self.redirect: Optional[str] = None


class EmptyUploadError(GradeflowError):
    def __init__(self, message: str = "Select at least one file to upload"):
        super().__init__(message)


class UnsupportedFileTypeError(GradeflowError):
    def __init__(self, rejected: Sequence[str], accepted: Sequence[str]):
        self.rejected = list(rejected)
        self.accepted = list(accepted)
        super().__init__(
            f"Unsupported file type for {', '.join(self.rejected)}. "
            f"Accepted: {', '.join(self.accepted)}"
        )
