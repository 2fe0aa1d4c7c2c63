from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from gradeflow.core.dependencies import get_workspace
from gradeflow.services.mutations import RecordKind
from gradeflow.services.workspace import Workspace
from gradeflow.utils.response import success_response

router = APIRouter(tags=["Classes"])


@router.get("/{class_id}")
async def get_class(class_id: str, workspace: Workspace = Depends(get_workspace)):
    """
    Get a class by ID.
    """
    record = await workspace.get_class(class_id)
    return success_response(data=record.to_canonical_dict())


@router.patch("/{class_id}")
async def update_class(
    class_id: str,
    patch: Dict[str, Any] = Body(...),
    workspace: Workspace = Depends(get_workspace),
):
    """
    Update class details. Accepts any subset of title, description,
    department, code, schedule, term and status. The code is stored upper-cased.
    """
    result = await workspace.mutations.update_record(RecordKind.CLASS, class_id, patch)
    record = result.unwrap()
    return success_response(data=record.to_canonical_dict(), message=result.notice.message)
