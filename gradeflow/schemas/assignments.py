from typing import Annotated, Optional

from pydantic import PositiveInt, StringConstraints, field_validator

from gradeflow.schemas.validation import PatchSchema

AssignmentTitle = Annotated[str, StringConstraints(min_length=3, max_length=100)]
AssignmentDescription = Annotated[str, StringConstraints(max_length=2000)]
AssignmentType = Annotated[str, StringConstraints(min_length=1, max_length=50)]
Criteria = Annotated[str, StringConstraints(min_length=1, max_length=10000)]


class AssignmentUpdate(PatchSchema):
    # grading_criteria has its own edit path
    title: Optional[AssignmentTitle] = None
    description: Optional[AssignmentDescription] = None
    type: Optional[AssignmentType] = None
    points: Optional[PositiveInt] = None

    labels = {
        "title": "Title",
        "description": "Description",
        "type": "Assignment type",
        "points": "Points",
    }
    messages = {
        "title": {
            "string_too_short": "Title must be at least 3 characters",
            "string_too_long": "Title must be less than 100 characters",
        },
        "description": {"string_too_long": "Description must be less than 2000 characters"},
        "type": {"string_too_short": "Assignment type is required"},
        "points": {
            "greater_than": "Points must be a positive whole number",
            "int_parsing": "Points must be a positive whole number",
            "int_from_float": "Points must be a positive whole number",
            "int_type": "Points must be a positive whole number",
        },
        "gradingCriteria": {
            "extra_forbidden": "Grading criteria can only be changed from the grading criteria editor",
        },
    }

    @field_validator("type")
    @classmethod
    def lower_type(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value is not None else value


class GradingCriteriaUpdate(PatchSchema):
    grading_criteria: Criteria

    labels = {"gradingCriteria": "Grading criteria"}
    messages = {
        "gradingCriteria": {
            "missing": "Grading criteria is required",
            "string_too_short": "Grading criteria is required",
            "string_too_long": "Grading criteria must be less than 10000 characters",
        },
    }
