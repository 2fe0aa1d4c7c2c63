from fastapi import APIRouter, Depends, status

from gradeflow.core.dependencies import get_workspace
from gradeflow.modules.assignments.router import loaded_view
from gradeflow.schemas.submissions import BatchUploadRequest
from gradeflow.services.workspace import Workspace
from gradeflow.utils.response import success_response

router = APIRouter(tags=["Submissions"])


@router.get("/{class_id}/assignments/{assignment_id}/submissions")
async def list_submissions(
    class_id: str,
    assignment_id: str,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Submission batches of the assignment, newest first.
    """
    view = await loaded_view(class_id, assignment_id, workspace)
    batches = [batch.to_canonical_dict() for batch in view.snapshot.batches]
    return success_response(data=batches)


@router.post("/{class_id}/assignments/{assignment_id}/submissions", status_code=status.HTTP_201_CREATED)
async def upload_submissions(
    class_id: str,
    assignment_id: str,
    upload: BatchUploadRequest,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Register an uploaded batch of files. Voice assignments take audio files,
    every other assignment takes PDFs. The batch starts in ``grading``.
    """
    view = workspace.view(class_id, assignment_id)
    outcome = await view.upload(upload.files, upload.batch_name)
    return success_response(data=outcome.batch.to_canonical_dict(), message=outcome.notice.message)
