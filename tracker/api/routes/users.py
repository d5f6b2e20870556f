from fastapi import APIRouter, Depends

from tracker.api import deps
from tracker.api.responses import FORBIDDEN, UNAUTHORIZED
from tracker.db.repository import Repository
from tracker.models import User
from tracker.schemas.user import UserListItem
from tracker.services import auth as auth_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=list[UserListItem], responses=UNAUTHORIZED | FORBIDDEN)
def list_users(
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    return auth_service.list_users(repo, current_user)
