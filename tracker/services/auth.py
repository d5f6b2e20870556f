import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from tracker.core.config import settings
from tracker.core.errors import ValidationError
from tracker.db.repository import Repository
from tracker.models import Session, User, UserRole
from tracker.services import security
from tracker.services.policy import Action, authorize

logger = logging.getLogger("tracker.auth")


def register_user(
    repo: Repository, email: str, password: str, role: UserRole = UserRole.developer
) -> User:
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required")
    users = repo.load(User)
    if any(u.email == email for u in users):
        raise ValidationError("User already exists")
    try:
        password_hash = security.hash_password(password)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    user = User(email=email, password_hash=password_hash, role=role)
    users.append(user)
    repo.save(User, users)
    return user


def authenticate_user(repo: Repository, email: str, password: str) -> User:
    email = (email or "").strip().lower()
    user = next((u for u in repo.load(User) if u.email == email), None)
    if not user or not security.verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    return user


def create_session(repo: Repository, user: User) -> str:
    token = secrets.token_hex(16)
    sessions = repo.load_sessions()
    sessions[token] = Session(user_id=user.id)
    repo.save_sessions(sessions)
    return token


def _expired(session: Session, now: datetime, ttl_seconds: int) -> bool:
    return now - session.created_at > timedelta(seconds=ttl_seconds)


def resolve_session(repo: Repository, token: str) -> User | None:
    """Return the session's user, evicting the session if it has expired."""
    sessions = repo.load_sessions()
    session = sessions.get(token)
    if session is None:
        return None
    if _expired(session, datetime.now(timezone.utc), settings.session_ttl_seconds):
        del sessions[token]
        repo.save_sessions(sessions)
        return None
    return repo.get(User, session.user_id)


def revoke_session(repo: Repository, token: str) -> bool:
    sessions = repo.load_sessions()
    if sessions.pop(token, None) is None:
        return False
    repo.save_sessions(sessions)
    return True


def sweep_expired_sessions(repo: Repository, ttl_seconds: int | None = None) -> int:
    ttl = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
    now = datetime.now(timezone.utc)
    sessions = repo.load_sessions()
    live = {t: s for t, s in sessions.items() if not _expired(s, now, ttl)}
    removed = len(sessions) - len(live)
    if removed:
        repo.save_sessions(live)
        logger.info("Expired sessions evicted", extra={"event": {"removed": removed}})
    return removed


def list_users(repo: Repository, actor: User) -> list[User]:
    authorize(actor, Action.user_list)
    return repo.load(User)
