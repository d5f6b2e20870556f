import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from pydantic import TypeAdapter, ValidationError as SchemaError

from tracker.core.errors import NotFoundError, ValidationError
from tracker.db.repository import Repository
from tracker.models import DONE_STATUS, Issue, Project, Sprint, SprintStatus, User
from tracker.models.base import UTCDateTime
from tracker.services import notifications
from tracker.services.policy import Action, authorize

logger = logging.getLogger("tracker.sprints")

_date_adapter = TypeAdapter(UTCDateTime | None)


def _parse_date(value: Any, field: str) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return _date_adapter.validate_python(value)
    except SchemaError as exc:
        raise ValidationError(f"Invalid {field}") from exc


def _check_range(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and start >= end:
        raise ValidationError("Start date must be before end date")


def get_sprint(repo: Repository, sprint_id: str) -> Sprint:
    sprint = repo.get(Sprint, sprint_id)
    if sprint is None:
        raise NotFoundError("Sprint not found")
    return sprint


def _project_of(repo: Repository, sprint: Sprint) -> Project | None:
    return repo.get(Project, sprint.project_id)


def list_sprints(repo: Repository, project_id: str) -> list[Sprint]:
    if repo.get(Project, project_id) is None:
        raise NotFoundError("Project not found")
    return [s for s in repo.load(Sprint) if s.project_id == project_id]


def member_issues(repo: Repository, sprint_id: str) -> list[Issue]:
    return [issue for issue in repo.load(Issue) if issue.sprint_id == sprint_id]


def _stakeholders(repo: Repository, sprint: Sprint, project: Project | None) -> list[str | None]:
    recipients: list[str | None] = [project.owner_id if project else None]
    recipients.extend(issue.assignee for issue in member_issues(repo, sprint.id))
    return recipients


def create_sprint(
    repo: Repository,
    actor: User,
    project_id: str,
    name: str,
    start_date: Any = None,
    end_date: Any = None,
) -> Sprint:
    project = repo.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    authorize(actor, Action.sprint_manage, project=project)
    name = (name or "").strip()
    if not name:
        raise ValidationError("Sprint name is required")
    start = _parse_date(start_date, "start_date")
    end = _parse_date(end_date, "end_date")
    _check_range(start, end)

    sprint = Sprint(project_id=project_id, name=name, start_date=start, end_date=end)
    repo.add(sprint)
    logger.info(
        "Sprint created",
        extra={"event": {"sprint_id": sprint.id, "project_id": project_id}},
    )
    return sprint


def start_sprint(repo: Repository, actor: User, sprint_id: str) -> Sprint:
    sprint = get_sprint(repo, sprint_id)
    project = _project_of(repo, sprint)
    authorize(actor, Action.sprint_manage, project=project)
    if sprint.status == SprintStatus.active:
        raise ValidationError("Sprint is already active")
    if sprint.status == SprintStatus.closed:
        raise ValidationError("Cannot start a closed sprint")

    sprint.status = SprintStatus.active
    if sprint.start_date is None:
        sprint.start_date = datetime.now(timezone.utc)
    repo.replace(sprint)

    notifications.send(
        repo,
        _stakeholders(repo, sprint, project),
        f'Sprint "{sprint.name}" has started',
        related_entity_id=sprint.id,
        exclude=actor.id,
    )
    return sprint


def close_sprint(repo: Repository, actor: User, sprint_id: str) -> tuple[Sprint, int]:
    """Close the sprint and return incomplete issues to the backlog.

    Returns the sprint and the number of issues moved.
    """
    sprint = get_sprint(repo, sprint_id)
    project = _project_of(repo, sprint)
    authorize(actor, Action.sprint_manage, project=project)
    if sprint.status == SprintStatus.closed:
        raise ValidationError("Sprint is already closed")

    recipients = _stakeholders(repo, sprint, project)
    now = datetime.now(timezone.utc)
    sprint.status = SprintStatus.closed
    sprint.closed_at = now
    if sprint.end_date is None:
        sprint.end_date = now
    repo.replace(sprint)

    issues = repo.load(Issue)
    moved = 0
    for issue in issues:
        if issue.sprint_id == sprint.id and issue.status != DONE_STATUS:
            issue.sprint_id = None
            issue.updated_at = now
            moved += 1
    if moved:
        repo.save(Issue, issues)

    notifications.send(
        repo,
        recipients,
        f'Sprint "{sprint.name}" has been closed. {moved} incomplete issues moved to backlog.',
        related_entity_id=sprint.id,
        exclude=actor.id,
    )
    logger.info(
        "Sprint closed",
        extra={"event": {"sprint_id": sprint.id, "moved_issues": moved}},
    )
    return sprint, moved


def update_sprint(repo: Repository, actor: User, sprint_id: str, changes: dict[str, Any]) -> Sprint:
    """Rename any sprint; dates change only while the sprint is planning."""
    sprint = get_sprint(repo, sprint_id)
    authorize(actor, Action.sprint_manage, project=_project_of(repo, sprint))

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Sprint name cannot be empty")
        sprint.name = name
    if sprint.status == SprintStatus.planning:
        start = sprint.start_date
        end = sprint.end_date
        if "start_date" in changes:
            start = _parse_date(changes["start_date"], "start_date")
        if "end_date" in changes:
            end = _parse_date(changes["end_date"], "end_date")
        _check_range(start, end)
        sprint.start_date = start
        sprint.end_date = end
    return repo.replace(sprint)


def add_issue(repo: Repository, actor: User, sprint_id: str, issue_id: str) -> Issue:
    authorize(actor, Action.sprint_add_issue)
    sprint = get_sprint(repo, sprint_id)
    if sprint.status == SprintStatus.closed:
        raise ValidationError("Cannot add issues to a closed sprint")
    issues = repo.load(Issue)
    issue = next((i for i in issues if i.id == issue_id), None)
    if issue is None:
        raise NotFoundError("Issue not found")
    if issue.project_id != sprint.project_id:
        raise ValidationError("Issue belongs to a different project")

    issue.sprint_id = sprint.id
    issue.updated_at = datetime.now(timezone.utc)
    repo.save(Issue, issues)

    notifications.send(
        repo,
        [issue.assignee],
        f'Issue "{issue.title}" has been added to sprint {sprint.name}',
        related_entity_id=issue.id,
        exclude=actor.id,
    )
    return issue


def burndown(repo: Repository, sprint_id: str, today: date | None = None) -> list[dict[str, Any]]:
    """Remaining (not yet done) member issues for each day of the sprint."""
    sprint = get_sprint(repo, sprint_id)
    if sprint.start_date is None:
        raise ValidationError("Sprint has no start date")
    today = today or datetime.now(timezone.utc).date()
    first = sprint.start_date.date()
    last = sprint.end_date.date() if sprint.end_date else today
    members = member_issues(repo, sprint.id)

    points = []
    day = first
    while day <= last:
        remaining = sum(
            1
            for issue in members
            if issue.done_at is None or issue.done_at.date() > day
        )
        points.append({"date": day.isoformat(), "remaining": remaining})
        day += timedelta(days=1)
    return points
