import logging
from collections.abc import Iterable

from tracker.core.errors import NotFoundError
from tracker.db.repository import Repository
from tracker.models import Notification, User, UserRole

logger = logging.getLogger("tracker.notifications")

LIST_LIMIT = 50


def send(
    repo: Repository,
    user_ids: Iterable[str | None],
    message: str,
    related_entity_id: str | None = None,
    exclude: str | None = None,
) -> list[Notification]:
    """Append one unread notification per distinct recipient."""
    recipients: list[str] = []
    for user_id in user_ids:
        if user_id and user_id != exclude and user_id not in recipients:
            recipients.append(user_id)
    if not recipients:
        return []
    created = [
        Notification(user_id=user_id, message=message, related_entity_id=related_entity_id)
        for user_id in recipients
    ]
    notifications = repo.load(Notification)
    notifications.extend(created)
    repo.save(Notification, notifications)
    logger.info(
        "Notifications sent",
        extra={"event": {"recipients": len(created), "related_entity_id": related_entity_id}},
    )
    return created


def staff_ids(repo: Repository) -> list[str]:
    return [
        user.id
        for user in repo.load(User)
        if user.role in (UserRole.admin, UserRole.project_manager)
    ]


def list_for_user(repo: Repository, user_id: str, limit: int = LIST_LIMIT) -> list[Notification]:
    own = [n for n in repo.load(Notification) if n.user_id == user_id]
    own.sort(key=lambda n: n.created_at, reverse=True)
    return own[:limit]


def mark_read(repo: Repository, user_id: str, notification_id: str) -> Notification:
    notifications = repo.load(Notification)
    for notification in notifications:
        if notification.id == notification_id and notification.user_id == user_id:
            notification.read = True
            repo.save(Notification, notifications)
            return notification
    raise NotFoundError("Notification not found")


def mark_all_read(repo: Repository, user_id: str) -> int:
    notifications = repo.load(Notification)
    changed = 0
    for notification in notifications:
        if notification.user_id == user_id and not notification.read:
            notification.read = True
            changed += 1
    if changed:
        repo.save(Notification, notifications)
    return changed


def prune_related(repo: Repository, entity_ids: Iterable[str]) -> int:
    """Delete notifications about any of ``entity_ids``; returns the count."""
    targets = set(entity_ids)
    if not targets:
        return 0
    notifications = repo.load(Notification)
    kept = [n for n in notifications if n.related_entity_id not in targets]
    removed = len(notifications) - len(kept)
    if removed:
        repo.save(Notification, kept)
    return removed
