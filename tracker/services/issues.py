import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as SchemaError

from tracker.core.errors import NotFoundError, ValidationError
from tracker.db.repository import Repository
from tracker.models import DONE_STATUS, Issue, Project, Sprint, SprintStatus, User
from tracker.services import notifications
from tracker.services.policy import Action, authorize
from tracker.services.security import sanitize_text
from tracker.services.workflows import ensure_workflow

logger = logging.getLogger("tracker.issues")

EDITABLE_FIELDS = (
    "title",
    "description",
    "priority",
    "status",
    "assignee",
    "due_date",
    "labels",
    "parent_id",
    "sprint_id",
)


def normalize_labels(value: Any) -> list[str]:
    """Accept a list or a comma-separated string; keep trimmed, non-empty labels."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        return []
    labels: list[str] = []
    for item in items:
        label = str(item).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def get_issue(repo: Repository, issue_id: str) -> Issue:
    issue = repo.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError("Issue not found")
    return issue


def _require_project(repo: Repository, project_id: str) -> Project:
    project = repo.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


def _check_status(repo: Repository, project_id: str, status: str) -> None:
    workflow = ensure_workflow(repo, project_id)
    if status not in workflow.statuses:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(workflow.statuses)}"
        )


def _check_assignee(repo: Repository, assignee: str | None) -> None:
    if assignee and repo.get(User, assignee) is None:
        raise NotFoundError("Assignee not found")


def _check_parent(repo: Repository, project_id: str, parent_id: str | None) -> None:
    if not parent_id:
        return
    parent = repo.get(Issue, parent_id)
    if parent is None or parent.project_id != project_id:
        raise NotFoundError("Parent issue not found")


def _check_sprint(
    repo: Repository, project_id: str, sprint_id: str | None, current: str | None = None
) -> None:
    if not sprint_id:
        return
    sprint = repo.get(Sprint, sprint_id)
    if sprint is None:
        raise NotFoundError("Sprint not found")
    if sprint.project_id != project_id:
        raise ValidationError("Sprint belongs to a different project")
    if sprint.status == SprintStatus.closed and sprint_id != current:
        raise ValidationError("Cannot add issues to a closed sprint")


def create_issue(repo: Repository, actor: User, project_id: str, data: dict[str, Any]) -> Issue:
    authorize(actor, Action.issue_create)
    project = _require_project(repo, project_id)

    title = (data.get("title") or "").strip()
    if not title:
        raise ValidationError("Title is required")

    status = data.get("status")
    if status:
        _check_status(repo, project_id, status)
    else:
        status = ensure_workflow(repo, project_id).statuses[0]
    _check_assignee(repo, data.get("assignee"))
    _check_parent(repo, project_id, data.get("parent_id"))
    _check_sprint(repo, project_id, data.get("sprint_id"))

    now = datetime.now(timezone.utc)
    try:
        issue = Issue(
            project_id=project_id,
            title=sanitize_text(title),
            description=sanitize_text(data.get("description")) or "",
            priority=data.get("priority") or "Medium",
            status=status,
            assignee=data.get("assignee") or None,
            due_date=data.get("due_date") or None,
            labels=normalize_labels(data.get("labels")),
            parent_id=data.get("parent_id") or None,
            sprint_id=data.get("sprint_id") or None,
            creator_id=actor.id,
            done_at=now if status == DONE_STATUS else None,
            created_at=now,
            updated_at=now,
        )
    except SchemaError as exc:
        raise ValidationError(f"Invalid issue fields: {exc.error_count()} error(s)") from exc
    repo.add(issue)

    notifications.send(
        repo,
        [issue.assignee, project.owner_id],
        f'New issue "{issue.title}" created in project {project.name}',
        related_entity_id=issue.id,
        exclude=actor.id,
    )
    logger.info(
        "Issue created",
        extra={"event": {"issue_id": issue.id, "project_id": project_id}},
    )
    return issue


def update_issue(repo: Repository, actor: User, issue_id: str, changes: dict[str, Any]) -> Issue:
    issue = get_issue(repo, issue_id)
    project = repo.get(Project, issue.project_id)
    authorize(actor, Action.issue_modify, resource=issue, project=project)

    changes = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        changes["title"] = sanitize_text(title)
    if "description" in changes:
        changes["description"] = sanitize_text(changes["description"]) or ""
    if "priority" in changes and not changes["priority"]:
        changes["priority"] = "Medium"
    if "status" in changes:
        _check_status(repo, issue.project_id, changes["status"])
    if "assignee" in changes:
        changes["assignee"] = changes["assignee"] or None
        _check_assignee(repo, changes["assignee"])
    if "parent_id" in changes:
        changes["parent_id"] = changes["parent_id"] or None
        if changes["parent_id"] == issue.id:
            raise ValidationError("An issue cannot be its own parent")
        _check_parent(repo, issue.project_id, changes["parent_id"])
    if "sprint_id" in changes:
        changes["sprint_id"] = changes["sprint_id"] or None
        _check_sprint(repo, issue.project_id, changes["sprint_id"], current=issue.sprint_id)
    if "labels" in changes:
        changes["labels"] = normalize_labels(changes["labels"])

    old_status = issue.status
    old_assignee = issue.assignee
    now = datetime.now(timezone.utc)
    try:
        updated = Issue.model_validate({**issue.model_dump(), **changes, "updated_at": now})
    except SchemaError as exc:
        raise ValidationError(f"Invalid issue fields: {exc.error_count()} error(s)") from exc

    if updated.status != old_status:
        if updated.status == DONE_STATUS:
            updated.done_at = now
        elif old_status == DONE_STATUS:
            updated.done_at = None
    repo.replace(updated)

    if updated.assignee and updated.assignee != old_assignee:
        notifications.send(
            repo,
            [updated.assignee],
            f'You have been assigned issue "{updated.title}"',
            related_entity_id=updated.id,
            exclude=actor.id,
        )
    if updated.status != old_status:
        notifications.send(
            repo,
            [updated.assignee, project.owner_id if project else None],
            f'Issue "{updated.title}" status changed to {updated.status}',
            related_entity_id=updated.id,
            exclude=actor.id,
        )
    return updated


def _matches(issue: Issue, filters: dict[str, Any]) -> bool:
    for field in ("project_id", "status", "priority", "assignee", "sprint_id"):
        value = filters.get(field)
        if value is not None and getattr(issue, field) != value:
            return False
    search = filters.get("search")
    if search:
        needle = search.lower()
        if needle not in issue.title.lower() and needle not in issue.description.lower():
            return False
    return True


def list_issues(repo: Repository, **filters: Any) -> list[Issue]:
    return [issue for issue in repo.load(Issue) if _matches(issue, filters)]


def backlog(repo: Repository, project_id: str) -> list[Issue]:
    _require_project(repo, project_id)
    return [
        issue
        for issue in repo.load(Issue)
        if issue.project_id == project_id and not issue.sprint_id
    ]


def board(repo: Repository, project_id: str, sprint_id: str | None = None) -> dict[str, list[Issue]]:
    """Group a project's issues by workflow status, every status present as a key.

    Issues stranded in a status the workflow no longer lists are left out.
    """
    _require_project(repo, project_id)
    workflow = ensure_workflow(repo, project_id)
    columns: dict[str, list[Issue]] = {status: [] for status in workflow.statuses}
    for issue in repo.load(Issue):
        if issue.project_id != project_id:
            continue
        if sprint_id and issue.sprint_id != sprint_id:
            continue
        if issue.status in columns:
            columns[issue.status].append(issue)
    return columns
