import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveInt,
    computed_field,
    field_validator,
    model_validator,
)

from gradeflow.core.naming import snake_to_camel

logger = logging.getLogger(__name__)


class Department(str, Enum):
    LANGUAGE = "Language"
    COMPUTER_SCIENCE = "Computer Science"
    MATHEMATICS = "Mathematics"
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"
    BIOLOGY = "Biology"
    ENGINEERING = "Engineering"


class ClassStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BatchStatus(str, Enum):
    GRADING = "grading"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not BatchStatus.GRADING

    def can_transition_to(self, other: "BatchStatus") -> bool:
        """Only grading -> completed/failed is a transition; terminal states are final."""
        return self is BatchStatus.GRADING and other.is_terminal


# Canonical records: attribute names are snake_case, the serialized form
# (and the accepted input form) is camelCase.
class CanonicalModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=snake_to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def to_canonical_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# Class model
class ClassRecord(CanonicalModel):
    id: str
    title: str
    description: Optional[str] = None
    department: Department
    code: str
    schedule: Optional[str] = None
    term: Optional[str] = None
    status: ClassStatus = ClassStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.upper()


# Assignment model
class AssignmentRecord(CanonicalModel):
    id: str
    class_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    type: str
    points: PositiveInt
    grading_criteria: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def default_timestamps(cls, data):
        # Rows written before timestamps were tracked come back without them.
        if not isinstance(data, dict):
            return data
        missing = [
            name for name, alias in (("created_at", "createdAt"), ("updated_at", "updatedAt"))
            if not data.get(name) and not data.get(alias)
        ]
        if missing:
            logger.warning("Assignment %s missing %s, defaulting to now", data.get("id"), ", ".join(missing))
            now = datetime.now(timezone.utc)
            data = dict(data)
            for name in missing:
                data[snake_to_camel(name)] = now
        return data

    @property
    def is_voice(self) -> bool:
        return self.type == "voice"


# Submission batch model
class SubmissionBatch(CanonicalModel):
    id: str
    assignment_id: str
    batch_name: Optional[str] = None
    created_at: datetime
    status: BatchStatus = BatchStatus.GRADING
    file_count: NonNegativeInt = Field(default=0)

    @field_validator("file_count", mode="before")
    @classmethod
    def missing_count_is_zero(cls, value):
        return 0 if value is None else value

    @computed_field
    @property
    def name(self) -> str:
        return self.batch_name or f"Batch {self.id}"

    def sort_key(self):
        return (self.created_at, self.id)
