from typing import Annotated, Optional

from pydantic import StringConstraints, field_validator

from gradeflow.db.models import ClassStatus, Department
from gradeflow.schemas.validation import PatchSchema

ClassTitle = Annotated[str, StringConstraints(min_length=3, max_length=100)]
ClassDescription = Annotated[str, StringConstraints(min_length=10, max_length=500)]
ClassCode = Annotated[str, StringConstraints(min_length=2, max_length=10, pattern=r"^[A-Za-z0-9]+$")]
NonEmpty = Annotated[str, StringConstraints(min_length=1)]


class ClassUpdate(PatchSchema):
    title: Optional[ClassTitle] = None
    description: Optional[ClassDescription] = None
    department: Optional[Department] = None
    code: Optional[ClassCode] = None
    schedule: Optional[NonEmpty] = None
    term: Optional[NonEmpty] = None
    status: Optional[ClassStatus] = None

    labels = {
        "title": "Title",
        "description": "Description",
        "department": "Department",
        "code": "Class code",
        "schedule": "Schedule",
        "term": "Term",
        "status": "Status",
    }
    messages = {
        "title": {
            "string_too_short": "Title must be at least 3 characters",
            "string_too_long": "Title must be less than 100 characters",
        },
        "description": {
            "string_too_short": "Description must be at least 10 characters",
            "string_too_long": "Description must be less than 500 characters",
        },
        "department": {"enum": "Please select a department"},
        "code": {
            "string_too_short": "Class code must be at least 2 characters",
            "string_too_long": "Class code must be less than 10 characters",
            "string_pattern_mismatch": "Class code must be alphanumeric",
        },
        "schedule": {"string_too_short": "Schedule is required"},
        "term": {"string_too_short": "Term is required"},
        "status": {"enum": "Status must be active or inactive"},
    }

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value is not None else value
