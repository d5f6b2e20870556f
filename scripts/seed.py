"""Seed the configured store with sample users, a project, a sprint and issues."""

from tracker.core.config import settings
from tracker.db.repository import Repository
from tracker.db.store import build_store
from tracker.models import UserRole
from tracker.services import auth as auth_service
from tracker.services import issues as issue_service
from tracker.services import projects as project_service
from tracker.services import sprints as sprint_service


def run():
    repo = Repository(build_store(settings), settings.uploads_dir)
    admin = auth_service.register_user(repo, "admin@example.com", "Admin123!", UserRole.admin)
    dev = auth_service.register_user(repo, "dev@example.com", "Dev123!a", UserRole.developer)

    project = project_service.create_project(
        repo, admin, name="Platform", key="PLT", description="Platform bugs", lead_id=dev.id
    )
    sprint = sprint_service.create_sprint(repo, admin, project.id, "Sprint 1")
    issue_service.create_issue(
        repo,
        admin,
        project.id,
        {
            "title": "Sample bug",
            "description": "Demo issue",
            "priority": "High",
            "assignee": dev.id,
            "labels": "bug, backend",
            "sprint_id": sprint.id,
        },
    )
    issue_service.create_issue(repo, dev, project.id, {"title": "Write onboarding docs"})


if __name__ == "__main__":
    run()
