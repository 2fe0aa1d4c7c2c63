# tests/test_naming.py

from gradeflow.core.naming import camel_to_snake, snake_to_camel, to_canonical, to_persisted
from gradeflow.db.models import ClassRecord


def test_key_conversion():
    assert snake_to_camel("grading_criteria") == "gradingCriteria"
    assert snake_to_camel("id") == "id"
    assert camel_to_snake("fileCount") == "file_count"
    assert camel_to_snake("updatedAt") == "updated_at"


def test_to_canonical_converts_nested_records():
    row = {
        "id": "asg-1",
        "updated_at": "2025-02-01",
        "class_info": {"class_code": "CS101"},
        "submission_batches": [{"file_count": 2}, {"batch_name": "created_at"}],
    }

    assert to_canonical(row) == {
        "id": "asg-1",
        "updatedAt": "2025-02-01",
        "classInfo": {"classCode": "CS101"},
        "submissionBatches": [{"fileCount": 2}, {"batchName": "created_at"}],
    }


def test_string_values_are_never_rewritten():
    assert to_persisted({"title": "someCamelText"}) == {"title": "someCamelText"}
    assert to_canonical(["snake_value"]) == ["snake_value"]


def test_key_order_is_preserved():
    row = {"updated_at": 1, "id": 2, "created_at": 3, "file_count": 4}
    assert list(to_canonical(row)) == ["updatedAt", "id", "createdAt", "fileCount"]


def test_canonical_record_round_trip(class_row):
    canonical = ClassRecord.model_validate(to_canonical(class_row)).to_canonical_dict()

    assert to_canonical(to_persisted(canonical)) == canonical


def test_persisted_record_round_trip(assignment_row):
    assert to_persisted(to_canonical(assignment_row)) == assignment_row


def test_keys_already_in_target_form_pass_through():
    malformed = []

    assert to_canonical({"fileCount": 3}, malformed) == {"fileCount": 3}
    assert to_persisted({"assignment_id": "asg-1"}, malformed) == {"assignment_id": "asg-1"}
    assert malformed == []


def test_malformed_keys_pass_through_and_are_reported():
    malformed = []
    row = {"_private": 1, "Title": 2, "line_2": 3, "nested": {"double__under": 4}}

    result = to_canonical(row, malformed)

    assert result == {"_private": 1, "Title": 2, "line_2": 3, "nested": {"double__under": 4}}
    assert malformed == ["_private", "Title", "line_2", "nested.double__under"]


def test_input_is_not_modified(assignment_row):
    original = dict(assignment_row)
    to_canonical(assignment_row)
    assert assignment_row == original


def test_colliding_keys_keep_both_values():
    malformed = []

    result = to_persisted({"createdAt": 1, "created_at": 2}, malformed)

    assert result == {"createdAt": 1, "created_at": 2}
    assert malformed == ["createdAt"]


def test_collision_is_detected_in_either_order():
    malformed = []

    result = to_canonical({"fileCount": 1, "file_count": 2}, malformed)

    assert result == {"fileCount": 1, "file_count": 2}
    assert malformed == ["file_count"]
