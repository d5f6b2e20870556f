"""Path loaders: resolve an id from the URL or answer 404."""
from fastapi import Depends

from tracker.api.deps import get_current_user, get_repository
from tracker.db.repository import Repository
from tracker.models import Issue, Project, Sprint, User
from tracker.services import issues as issue_service
from tracker.services import projects as project_service
from tracker.services import sprints as sprint_service


def get_project(
    project_id: str,
    repo: Repository = Depends(get_repository),
    _: User = Depends(get_current_user),
) -> Project:
    return project_service.get_project(repo, project_id)


def get_issue(
    issue_id: str,
    repo: Repository = Depends(get_repository),
    _: User = Depends(get_current_user),
) -> Issue:
    return issue_service.get_issue(repo, issue_id)


def get_sprint(
    sprint_id: str,
    repo: Repository = Depends(get_repository),
    _: User = Depends(get_current_user),
) -> Sprint:
    return sprint_service.get_sprint(repo, sprint_id)
