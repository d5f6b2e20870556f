"""Single authorization decision point for every tracker operation."""
import enum

from tracker.core.errors import ForbiddenError
from tracker.models import Comment, Issue, Project, User, UserRole


class Action(str, enum.Enum):
    project_create = "project_create"
    project_update = "project_update"
    project_delete = "project_delete"
    workflow_update = "workflow_update"
    sprint_manage = "sprint_manage"
    sprint_delete = "sprint_delete"
    sprint_add_issue = "sprint_add_issue"
    issue_create = "issue_create"
    issue_modify = "issue_modify"
    comment_create = "comment_create"
    comment_modify = "comment_modify"
    user_list = "user_list"


_ROLE_ONLY: dict[Action, set[UserRole]] = {
    Action.project_create: {UserRole.admin, UserRole.project_manager},
    Action.project_delete: {UserRole.admin},
    Action.sprint_delete: {UserRole.admin},
    Action.user_list: {UserRole.admin},
}

_NON_VIEWER = {Action.issue_create, Action.comment_create, Action.sprint_add_issue}


def is_allowed(
    actor: User,
    action: Action,
    resource: Issue | Comment | None = None,
    project: Project | None = None,
) -> bool:
    if action in _ROLE_ONLY:
        return actor.role in _ROLE_ONLY[action]
    if action in _NON_VIEWER:
        return actor.role != UserRole.viewer
    if actor.role == UserRole.admin:
        return True
    is_owner = project is not None and project.owner_id == actor.id

    if action == Action.project_update:
        return is_owner
    if action in (Action.workflow_update, Action.sprint_manage):
        return actor.role == UserRole.project_manager or is_owner
    if action == Action.issue_modify and isinstance(resource, Issue):
        return is_owner or actor.id in (resource.creator_id, resource.assignee)
    if action == Action.comment_modify and isinstance(resource, Comment):
        return resource.author_id == actor.id
    return False


def authorize(
    actor: User,
    action: Action,
    resource: Issue | Comment | None = None,
    project: Project | None = None,
) -> None:
    if not is_allowed(actor, action, resource=resource, project=project):
        raise ForbiddenError("You do not have permission to perform this action")
