import io

import pytest

from tracker.core.errors import ForbiddenError, NotFoundError
from tracker.core.metrics import metrics
from tracker.models import (
    Attachment,
    CascadeEntry,
    CascadeKind,
    Comment,
    Issue,
    Notification,
    Project,
    Sprint,
    UserRole,
    Workflow,
)
from tracker.services import attachments as attachment_service
from tracker.services import cascade
from tracker.services import comments as comment_service
from tracker.services import issues as issue_service
from tracker.services import notifications
from tracker.services import projects as project_service
from tracker.services import sprints as sprint_service


def _upload(repo, actor, issue, name="log.txt", data=b"trace"):
    return attachment_service.save_upload(repo, actor, issue.id, name, io.BytesIO(data))


def test_delete_project_scenario_counts(repo, project, manager, make_user):
    admin = make_user(UserRole.admin)
    sprint = sprint_service.create_sprint(repo, manager, project.id, "Sprint 1")
    issues = [
        issue_service.create_issue(repo, manager, project.id, {"title": f"Bug {n}"})
        for n in range(3)
    ]
    first = _upload(repo, manager, issues[0])
    _upload(repo, manager, issues[1], name="shot.png")
    repo.save(Notification, [])
    notifications.send(repo, [manager.id], "one", related_entity_id=issues[0].id)
    notifications.send(repo, [manager.id], "two", related_entity_id=issues[1].id)
    notifications.send(repo, [manager.id], "three", related_entity_id=issues[2].id)
    notifications.send(repo, [manager.id], "four", related_entity_id=issues[2].id)
    notifications.send(repo, [manager.id], "five", related_entity_id=sprint.id)

    other = project_service.create_project(repo, manager, name="Beta", key="BET")
    survivor = issue_service.create_issue(repo, manager, other.id, {"title": "Keep"})

    result = cascade.delete_project(repo, admin, project.id)

    assert result["deleted_issues"] == 3
    assert result["deleted_sprints"] == 1
    assert result["deleted_attachments"] == 2
    assert result["deleted_notifications"] == 5
    assert result["deleted_workflows"] == 1
    assert [i.id for i in repo.load(Issue)] == [survivor.id]
    assert not any(s.project_id == project.id for s in repo.load(Sprint))
    assert repo.load(Attachment) == []
    assert not any(w.project_id == project.id for w in repo.load(Workflow))
    assert [p.id for p in repo.load(Project)] == [other.id]
    assert not repo.upload_path(first.filename).exists()
    assert repo.load(CascadeEntry) == []


def test_delete_project_broadcasts_to_staff(repo, project, manager, make_user):
    admin = make_user(UserRole.admin)
    other_admin = make_user(UserRole.admin)
    make_user(UserRole.developer)
    repo.save(Notification, [])

    cascade.delete_project(repo, admin, project.id)

    notes = repo.load(Notification)
    assert sorted(n.user_id for n in notes) == sorted([manager.id, other_admin.id])
    assert notes[0].message == f'Project "Alpha" was deleted by {admin.email}'


def test_delete_project_requires_admin(repo, project, manager):
    with pytest.raises(ForbiddenError):
        cascade.delete_project(repo, manager, project.id)
    with pytest.raises(NotFoundError):
        cascade.delete_project(repo, manager, "missing")


def test_delete_issue_removes_direct_children_only(repo, project, developer):
    parent = issue_service.create_issue(repo, developer, project.id, {"title": "Epic"})
    child = issue_service.create_issue(repo, developer, project.id, {"title": "Story", "parent_id": parent.id})
    grandchild = issue_service.create_issue(repo, developer, project.id, {"title": "Task", "parent_id": child.id})
    unrelated = issue_service.create_issue(repo, developer, project.id, {"title": "Other"})
    comment_service.create_comment(repo, developer, child.id, "note")
    _upload(repo, developer, parent)

    result = cascade.delete_issue(repo, developer, parent.id)

    assert result["deleted_issues"] == 2
    assert result["detached_issues"] == 1
    assert result["deleted_attachments"] == 1
    assert result["deleted_comments"] == 1
    remaining = {i.id: i for i in repo.load(Issue)}
    assert set(remaining) == {grandchild.id, unrelated.id}
    assert remaining[grandchild.id].parent_id is None
    assert repo.load(Comment) == []


def test_delete_issue_notifies_owner_and_assignee(repo, project, developer, make_user):
    assignee = make_user(UserRole.developer)
    issue = issue_service.create_issue(
        repo, developer, project.id, {"title": "Bug", "assignee": assignee.id}
    )
    cascade.delete_issue(repo, developer, issue.id)

    notes = repo.load(Notification)
    assert sorted(n.user_id for n in notes) == sorted([project.owner_id, assignee.id])
    assert notes[0].message == f'Issue "Bug" was deleted by {developer.email}'


def test_delete_issue_permissions(repo, project, developer, make_user):
    issue = issue_service.create_issue(repo, developer, project.id, {"title": "Bug"})
    outsider = make_user(UserRole.developer)
    with pytest.raises(ForbiddenError):
        cascade.delete_issue(repo, outsider, issue.id)
    with pytest.raises(NotFoundError):
        cascade.delete_issue(repo, developer, "missing")


def test_delete_issue_tolerates_missing_file(repo, project, developer):
    issue = issue_service.create_issue(repo, developer, project.id, {"title": "Bug"})
    attachment = _upload(repo, developer, issue)
    repo.upload_path(attachment.filename).unlink()

    result = cascade.delete_issue(repo, developer, issue.id)

    assert result["deleted_attachments"] == 1
    assert repo.load(Attachment) == []


def test_delete_sprint_moves_all_issues_to_backlog(repo, project, manager, make_user):
    admin = make_user(UserRole.admin)
    sprint = sprint_service.create_sprint(repo, manager, project.id, "Sprint 1")
    open_issue = issue_service.create_issue(repo, manager, project.id, {"title": "Open", "sprint_id": sprint.id})
    done_issue = issue_service.create_issue(
        repo, manager, project.id, {"title": "Done", "sprint_id": sprint.id, "status": "Done"}
    )
    sprint_service.start_sprint(repo, manager, sprint.id)

    with pytest.raises(ForbiddenError):
        cascade.delete_sprint(repo, manager, sprint.id)

    result = cascade.delete_sprint(repo, admin, sprint.id)

    assert result["moved_issues"] == 2
    assert repo.load(Sprint) == []
    assert {i.id for i in issue_service.backlog(repo, project.id)} == {open_issue.id, done_issue.id}
    assert not any(n.related_entity_id == sprint.id for n in repo.load(Notification))
    owner_notes = [n for n in repo.load(Notification) if n.user_id == manager.id]
    assert owner_notes[-1].message == (
        f'Sprint "Sprint 1" was deleted by {admin.email}. 2 issues moved to backlog.'
    )


def test_resume_pending_finishes_interrupted_cascade(repo, project, manager, developer):
    issue = issue_service.create_issue(repo, developer, project.id, {"title": "Bug"})
    _upload(repo, developer, issue)
    comment_service.create_comment(repo, developer, issue.id, "note")
    repo.add(CascadeEntry(kind=CascadeKind.project, target_id=project.id, actor_id=manager.id))

    assert cascade.resume_pending(repo) == 1

    assert repo.load(Project) == []
    assert repo.load(Issue) == []
    assert repo.load(Attachment) == []
    assert repo.load(Comment) == []
    assert repo.load(CascadeEntry) == []


def test_resume_pending_after_partial_issue_cascade(repo, project, developer):
    issue = issue_service.create_issue(repo, developer, project.id, {"title": "Bug"})
    comment_service.create_comment(repo, developer, issue.id, "note")
    repo.save(Issue, [])
    repo.add(CascadeEntry(kind=CascadeKind.issue, target_id=issue.id))

    assert cascade.resume_pending(repo) == 1
    assert repo.load(Comment) == []
    assert repo.load(CascadeEntry) == []


def test_cascade_records_metrics(repo, project, make_user):
    admin = make_user(UserRole.admin)
    before = metrics.snapshot()["cascades"].get("project", 0)
    cascade.delete_project(repo, admin, project.id)
    assert metrics.snapshot()["cascades"]["project"] == before + 1
