from fastapi import APIRouter, Depends, Request, status

from tracker.api import deps
from tracker.api.responses import BAD_REQUEST, FORBIDDEN, NOT_FOUND
from tracker.db.repository import Repository
from tracker.models import User
from tracker.schemas.comment import CommentOut, CommentUpdate
from tracker.services import comments as comment_service
from tracker.services.audit import audit_log

router = APIRouter(prefix="/comments", tags=["comments"])


@router.patch(
    "/{comment_id}",
    response_model=CommentOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def update_comment(
    comment_id: str,
    payload: CommentUpdate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    comment = comment_service.update_comment(repo, current_user, comment_id, payload.content)
    audit_log("comment_update", current_user.id, request, comment_id=comment.id)
    return comment


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=FORBIDDEN | NOT_FOUND,
)
def delete_comment(
    comment_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    comment = comment_service.delete_comment(repo, current_user, comment_id)
    audit_log("comment_delete", current_user.id, request, comment_id=comment.id, issue_id=comment.issue_id)
