from functools import lru_cache

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tracker.core.config import settings
from tracker.core.logging import user_id_ctx
from tracker.db.repository import Repository
from tracker.db.store import Store, build_store
from tracker.models import User
from tracker.services import auth as auth_service

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_store() -> Store:
    return build_store(settings)


def get_repository() -> Repository:
    return Repository(get_store(), settings.uploads_dir)


def get_token(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_token),
    repo: Repository = Depends(get_repository),
) -> User:
    user = auth_service.resolve_session(repo, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session"
        )
    user_id_ctx.set(user.id)
    return user
