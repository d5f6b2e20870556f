from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse

from tracker.api import deps
from tracker.api.responses import FORBIDDEN, NOT_FOUND
from tracker.core.errors import NotFoundError
from tracker.db.repository import Repository
from tracker.models import User
from tracker.services import attachments as attachment_service
from tracker.services.audit import audit_log

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.get("/{attachment_id}", response_class=FileResponse, responses=NOT_FOUND)
def download_attachment(
    attachment_id: str,
    repo: Repository = Depends(deps.get_repository),
    _: User = Depends(deps.get_current_user),
):
    attachment = attachment_service.get_attachment(repo, attachment_id)
    path = repo.upload_path(attachment.filename)
    if not path.is_file():
        raise NotFoundError("Attachment file missing")
    return FileResponse(
        path,
        media_type=attachment.mime_type or "application/octet-stream",
        filename=attachment.original_name,
    )


@router.delete(
    "/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=FORBIDDEN | NOT_FOUND,
)
def delete_attachment(
    attachment_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    attachment = attachment_service.delete_attachment(repo, current_user, attachment_id)
    audit_log(
        "attachment_delete",
        current_user.id,
        request,
        attachment_id=attachment.id,
        issue_id=attachment.issue_id,
    )
