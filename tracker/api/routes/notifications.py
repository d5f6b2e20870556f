from fastapi import APIRouter, Depends

from tracker.api import deps
from tracker.api.responses import NOT_FOUND, UNAUTHORIZED
from tracker.db.repository import Repository
from tracker.models import User
from tracker.schemas.notification import NotificationOut, ReadAllOut
from tracker.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationOut], responses=UNAUTHORIZED)
def list_notifications(
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    return notification_service.list_for_user(repo, current_user.id)


@router.post("/read-all", response_model=ReadAllOut, responses=UNAUTHORIZED)
def mark_all_read(
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    return ReadAllOut(updated=notification_service.mark_all_read(repo, current_user.id))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationOut,
    responses=UNAUTHORIZED | NOT_FOUND,
)
def mark_read(
    notification_id: str,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    return notification_service.mark_read(repo, current_user.id, notification_id)
