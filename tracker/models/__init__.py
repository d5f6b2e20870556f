from tracker.models.base import Record, new_id, utcnow
from tracker.models.user import User, UserRole
from tracker.models.project import Project
from tracker.models.workflow import DEFAULT_STATUSES, DONE_STATUS, Workflow
from tracker.models.issue import Issue
from tracker.models.sprint import Sprint, SprintStatus
from tracker.models.notification import Notification
from tracker.models.attachment import Attachment
from tracker.models.comment import Comment
from tracker.models.session import Session
from tracker.models.cascade import CascadeEntry, CascadeKind

__all__ = [
    "Record",
    "new_id",
    "utcnow",
    "User",
    "UserRole",
    "Project",
    "Workflow",
    "DEFAULT_STATUSES",
    "DONE_STATUS",
    "Issue",
    "Sprint",
    "SprintStatus",
    "Notification",
    "Attachment",
    "Comment",
    "Session",
    "CascadeEntry",
    "CascadeKind",
]
