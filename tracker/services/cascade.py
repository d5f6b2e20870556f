"""Cascading deletes across collections, journaled so a crash can be finished later.

Each cascade writes a journal entry before touching anything and removes it
once every step succeeded. Steps remove dependents before the records they
hang off, so running a cascade again after an interruption completes it.
"""
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from tracker.core.errors import NotFoundError
from tracker.core.metrics import metrics
from tracker.db.repository import Repository
from tracker.models import (
    Attachment,
    CascadeEntry,
    CascadeKind,
    Comment,
    Issue,
    Project,
    Sprint,
    User,
    Workflow,
)
from tracker.services import notifications
from tracker.services.attachments import remove_file
from tracker.services.policy import Action, authorize

logger = logging.getLogger("tracker.cascade")


@contextmanager
def _journaled(
    repo: Repository, kind: CascadeKind, target_id: str, actor_id: str | None
) -> Iterator[CascadeEntry]:
    entries = repo.load(CascadeEntry)
    entry = next(
        (e for e in entries if e.kind == kind and e.target_id == target_id), None
    )
    if entry is None:
        entry = CascadeEntry(kind=kind, target_id=target_id, actor_id=actor_id)
        entries.append(entry)
        repo.save(CascadeEntry, entries)
    yield entry
    repo.save(
        CascadeEntry, [e for e in repo.load(CascadeEntry) if e.id != entry.id]
    )


def _purge_issue_dependents(repo: Repository, issue_ids: set[str]) -> dict[str, int]:
    counts = {"attachments": 0, "files": 0, "comments": 0, "notifications": 0}
    if not issue_ids:
        return counts

    attachments = repo.load(Attachment)
    kept = []
    for attachment in attachments:
        if attachment.issue_id in issue_ids:
            counts["attachments"] += 1
            if remove_file(repo, attachment):
                counts["files"] += 1
        else:
            kept.append(attachment)
    if counts["attachments"]:
        repo.save(Attachment, kept)

    comments = repo.load(Comment)
    remaining = [c for c in comments if c.issue_id not in issue_ids]
    counts["comments"] = len(comments) - len(remaining)
    if counts["comments"]:
        repo.save(Comment, remaining)

    counts["notifications"] = notifications.prune_related(repo, issue_ids)
    return counts


def _issue_cascade(repo: Repository, issue_id: str) -> dict[str, int]:
    issues = repo.load(Issue)
    children = {i.id for i in issues if i.parent_id == issue_id}
    doomed = {issue_id} | children

    counts = _purge_issue_dependents(repo, doomed)

    detached = 0
    remaining = []
    for issue in issues:
        if issue.id in doomed:
            continue
        if issue.parent_id in children:
            issue.parent_id = None
            detached += 1
        remaining.append(issue)
    counts["issues"] = len(issues) - len(remaining)
    counts["detached"] = detached
    if counts["issues"] or detached:
        repo.save(Issue, remaining)
    return counts


def _sprint_cascade(repo: Repository, sprint_id: str) -> dict[str, int]:
    issues = repo.load(Issue)
    moved = 0
    for issue in issues:
        if issue.sprint_id == sprint_id:
            issue.sprint_id = None
            moved += 1
    if moved:
        repo.save(Issue, issues)

    counts = {"moved": moved}
    counts["notifications"] = notifications.prune_related(repo, {sprint_id})

    sprints = repo.load(Sprint)
    remaining = [s for s in sprints if s.id != sprint_id]
    counts["sprints"] = len(sprints) - len(remaining)
    if counts["sprints"]:
        repo.save(Sprint, remaining)
    return counts


def _project_cascade(repo: Repository, project_id: str) -> dict[str, int]:
    issues = repo.load(Issue)
    issue_ids = {i.id for i in issues if i.project_id == project_id}
    sprints = repo.load(Sprint)
    sprint_ids = {s.id for s in sprints if s.project_id == project_id}

    counts = _purge_issue_dependents(repo, issue_ids)
    counts["notifications"] += notifications.prune_related(
        repo, sprint_ids | {project_id}
    )

    counts["issues"] = len(issue_ids)
    if issue_ids:
        repo.save(Issue, [i for i in issues if i.id not in issue_ids])
    counts["sprints"] = len(sprint_ids)
    if sprint_ids:
        repo.save(Sprint, [s for s in sprints if s.id not in sprint_ids])

    workflows = repo.load(Workflow)
    kept_workflows = [w for w in workflows if w.project_id != project_id]
    counts["workflows"] = len(workflows) - len(kept_workflows)
    if counts["workflows"]:
        repo.save(Workflow, kept_workflows)

    projects = repo.load(Project)
    kept_projects = [p for p in projects if p.id != project_id]
    counts["projects"] = len(projects) - len(kept_projects)
    if counts["projects"]:
        repo.save(Project, kept_projects)
    return counts


_STEPS: dict[CascadeKind, Callable[[Repository, str], dict[str, int]]] = {
    CascadeKind.issue: _issue_cascade,
    CascadeKind.sprint: _sprint_cascade,
    CascadeKind.project: _project_cascade,
}


def _run(repo: Repository, kind: CascadeKind, target_id: str, actor_id: str | None) -> dict[str, int]:
    with _journaled(repo, kind, target_id, actor_id):
        counts = _STEPS[kind](repo, target_id)
    metrics.record_cascade(kind.value, counts)
    logger.info(
        "Cascade finished",
        extra={"event": {"kind": kind.value, "target_id": target_id, "counts": counts}},
    )
    return counts


def delete_issue(repo: Repository, actor: User, issue_id: str) -> dict:
    issue = repo.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError("Issue not found")
    project = repo.get(Project, issue.project_id)
    authorize(actor, Action.issue_modify, resource=issue, project=project)

    counts = _run(repo, CascadeKind.issue, issue.id, actor.id)
    notifications.send(
        repo,
        [project.owner_id if project else None, issue.assignee],
        f'Issue "{issue.title}" was deleted by {actor.email}',
        related_entity_id=issue.project_id,
        exclude=actor.id,
    )
    return {
        "issue": issue,
        "deleted_issues": counts["issues"],
        "detached_issues": counts["detached"],
        "deleted_attachments": counts["attachments"],
        "deleted_comments": counts["comments"],
        "deleted_notifications": counts["notifications"],
    }


def delete_sprint(repo: Repository, actor: User, sprint_id: str) -> dict:
    sprint = repo.get(Sprint, sprint_id)
    if sprint is None:
        raise NotFoundError("Sprint not found")
    authorize(actor, Action.sprint_delete)

    counts = _run(repo, CascadeKind.sprint, sprint.id, actor.id)
    project = repo.get(Project, sprint.project_id)
    notifications.send(
        repo,
        [project.owner_id if project else None],
        f'Sprint "{sprint.name}" was deleted by {actor.email}. '
        f'{counts["moved"]} issues moved to backlog.',
        related_entity_id=sprint.project_id,
        exclude=actor.id,
    )
    return {
        "sprint": sprint,
        "moved_issues": counts["moved"],
        "deleted_notifications": counts["notifications"],
    }


def delete_project(repo: Repository, actor: User, project_id: str) -> dict:
    project = repo.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    authorize(actor, Action.project_delete, project=project)

    counts = _run(repo, CascadeKind.project, project.id, actor.id)
    notifications.send(
        repo,
        notifications.staff_ids(repo),
        f'Project "{project.name}" was deleted by {actor.email}',
        exclude=actor.id,
    )
    return {
        "project": project,
        "deleted_issues": counts["issues"],
        "deleted_sprints": counts["sprints"],
        "deleted_attachments": counts["attachments"],
        "deleted_comments": counts["comments"],
        "deleted_notifications": counts["notifications"],
        "deleted_workflows": counts["workflows"],
    }


def resume_pending(repo: Repository) -> int:
    """Finish every cascade left in the journal; returns how many completed."""
    completed = 0
    for entry in repo.load(CascadeEntry):
        logger.warning(
            "Resuming interrupted cascade",
            extra={"event": {"kind": entry.kind.value, "target_id": entry.target_id}},
        )
        try:
            _run(repo, entry.kind, entry.target_id, entry.actor_id)
        except OSError:
            logger.exception(
                "Cascade replay failed",
                extra={"event": {"kind": entry.kind.value, "target_id": entry.target_id}},
            )
            continue
        completed += 1
    return completed
