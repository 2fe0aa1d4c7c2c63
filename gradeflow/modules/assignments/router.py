from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from gradeflow.core.dependencies import get_workspace
from gradeflow.services.aggregate import AssignmentAggregateView, example_grading_criteria
from gradeflow.services.workspace import Workspace
from gradeflow.utils.response import success_response

router = APIRouter(tags=["Assignments"])


async def loaded_view(class_id: str, assignment_id: str, workspace: Workspace) -> AssignmentAggregateView:
    """Return the assignment's view, loading it on first access."""
    view = workspace.view(class_id, assignment_id)
    if view.snapshot is None:
        outcome = await view.refresh()
        if not outcome.committed and view.snapshot is None:
            raise outcome.error
    return view


@router.get("/{class_id}/assignments/{assignment_id}")
async def get_assignment(
    class_id: str,
    assignment_id: str,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Get the assignment together with its submission batches, newest first.
    """
    view = await loaded_view(class_id, assignment_id, workspace)
    return success_response(data=view.snapshot.to_canonical_dict())


@router.post("/{class_id}/assignments/{assignment_id}/refresh")
async def refresh_assignment(
    class_id: str,
    assignment_id: str,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Re-read the assignment and its batches. On failure the previous view is
    kept and the error is returned.
    """
    view = workspace.view(class_id, assignment_id)
    outcome = await view.refresh()
    if outcome.error is not None:
        raise outcome.error
    message = "Refresh superseded by a newer one" if outcome.superseded else "Assignment refreshed"
    return success_response(data=view.snapshot.to_canonical_dict(), message=message)


@router.patch("/{class_id}/assignments/{assignment_id}")
async def update_assignment(
    class_id: str,
    assignment_id: str,
    patch: Dict[str, Any] = Body(...),
    workspace: Workspace = Depends(get_workspace),
):
    """
    Update title, description, type or points. Grading criteria has its own endpoint.
    """
    view = workspace.view(class_id, assignment_id)
    result = await view.edit_assignment(patch)
    record = result.unwrap()
    return success_response(data=record.to_canonical_dict(), message=result.notice.message)


@router.patch("/{class_id}/assignments/{assignment_id}/grading-criteria")
async def update_grading_criteria(
    class_id: str,
    assignment_id: str,
    patch: Dict[str, Any] = Body(...),
    workspace: Workspace = Depends(get_workspace),
):
    """
    Replace the assignment's grading criteria. Body: ``{"gradingCriteria": "..."}``.
    """
    view = workspace.view(class_id, assignment_id)
    result = await view.edit_grading_criteria(patch)
    record = result.unwrap()
    return success_response(data=record.to_canonical_dict(), message=result.notice.message)


@router.get("/{class_id}/assignments/{assignment_id}/grading-criteria/example")
async def grading_criteria_example(
    class_id: str,
    assignment_id: str,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Example rubric scaled to the assignment's points.
    """
    view = await loaded_view(class_id, assignment_id, workspace)
    points = view.snapshot.assignment.points
    return success_response(data={"points": points, "example": example_grading_criteria(points)})
