"""
Turn a proposed patch into a normalized payload or a list of field violations.

Schemas are plain pydantic models; this module only adds the patch rules
(partial, no explicit nulls, not empty) and the human-readable messages.
"""

from collections.abc import Mapping
from typing import ClassVar, Dict, List, Type

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from gradeflow.core.errors import FieldViolation, ValidationError
from gradeflow.core.naming import snake_to_camel


class PatchSchema(BaseModel):
    """
    Base for edit payloads. Every field is optional; only fields present in
    the payload are validated and returned.

    ``labels`` gives the display name used in generic messages, ``messages``
    overrides the message for a (field, pydantic error type) pair.
    """

    model_config = ConfigDict(
        alias_generator=snake_to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    labels: ClassVar[Dict[str, str]] = {}
    messages: ClassVar[Dict[str, Dict[str, str]]] = {}

    @classmethod
    def label_for(cls, field: str) -> str:
        return cls.labels.get(field, field)

    @classmethod
    def describe(cls, field: str, error_type: str, fallback: str) -> str:
        custom = cls.messages.get(field, {}).get(error_type)
        if custom:
            return custom
        if error_type == "extra_forbidden":
            return f"{field} cannot be changed here"
        return f"{cls.label_for(field)}: {fallback}"


def _violations_from(schema: Type[PatchSchema], exc: PydanticValidationError) -> List[FieldViolation]:
    violations = []
    for error in exc.errors():
        loc = error.get("loc") or ("patch",)
        field = str(loc[0])
        violations.append(FieldViolation(field, schema.describe(field, error["type"], error["msg"])))
    return violations


def validate_payload(schema: Type[PatchSchema], payload) -> dict:
    """
    Validate ``payload`` against ``schema``.

    Returns:
        dict: The normalized payload in canonical (camelCase) form, holding
        only the fields that were supplied. Enum members are dumped as their
        string values.

    Raises:
        ValidationError: With one violation per offending field.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError([FieldViolation("patch", "Payload must be an object")])
    if not payload:
        raise ValidationError([FieldViolation("patch", "No changes to save")])

    known = set(schema.model_fields)
    known.update(f.alias for f in schema.model_fields.values() if f.alias)
    nulls = [key for key, value in payload.items() if value is None and key in known]
    violations = [
        FieldViolation(str(key), f"{schema.label_for(str(key))} cannot be empty") for key in nulls
    ]
    supplied = {key: value for key, value in payload.items() if key not in nulls}

    try:
        model = schema.model_validate(supplied)
    except PydanticValidationError as exc:
        seen = set(nulls)
        violations.extend(v for v in _violations_from(schema, exc) if v.field not in seen)
        model = None

    if violations:
        raise ValidationError(violations)
    return model.model_dump(by_alias=True, exclude_unset=True, mode="json")
