from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from tracker.api import deps
from tracker.api.responses import BAD_REQUEST, RATE_LIMITED, UNAUTHORIZED
from tracker.core.config import settings
from tracker.core.limiter import limiter
from tracker.db.repository import Repository
from tracker.models import User
from tracker.schemas.auth import LoginRequest, RegisterRequest, SessionToken
from tracker.schemas.user import UserOut
from tracker.services import auth as auth_service
from tracker.services.audit import audit_log

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | RATE_LIMITED,
)
@limiter.limit(settings.rate_limit_sensitive)
def register(
    payload: RegisterRequest,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
):
    user = auth_service.register_user(repo, payload.email, payload.password, payload.role)
    audit_log("register", user.id, request, email=user.email, role=user.role.value)
    return user


@router.post("/login", response_model=SessionToken, responses=UNAUTHORIZED | RATE_LIMITED)
@limiter.limit(settings.rate_limit_login)
def login(
    request: Request,
    payload: LoginRequest,
    repo: Repository = Depends(deps.get_repository),
):
    try:
        user = auth_service.authenticate_user(repo, payload.email, payload.password)
    except HTTPException:
        audit_log("login_failed", None, request, email=payload.email)
        raise
    token = auth_service.create_session(repo, user)
    audit_log("login_success", user.id, request)
    return SessionToken(token=token, user=UserOut.model_validate(user, from_attributes=True))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, responses=UNAUTHORIZED)
def logout(
    request: Request,
    token: str = Depends(deps.get_token),
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    auth_service.revoke_session(repo, token)
    audit_log("logout", current_user.id, request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserOut, responses=UNAUTHORIZED)
def me(current_user: User = Depends(deps.get_current_user)):
    return current_user
