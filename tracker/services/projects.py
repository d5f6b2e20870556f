from datetime import datetime, timezone

from tracker.core.errors import NotFoundError, ValidationError
from tracker.db.repository import Repository
from tracker.models import Project, User
from tracker.services.policy import Action, authorize
from tracker.services.security import sanitize_text
from tracker.services.workflows import ensure_workflow


def get_project(repo: Repository, project_id: str) -> Project:
    project = repo.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


def list_projects(repo: Repository) -> list[Project]:
    return repo.load(Project)


def _check_lead(repo: Repository, lead_id: str | None) -> None:
    if lead_id and repo.get(User, lead_id) is None:
        raise NotFoundError("Lead user not found")


def create_project(
    repo: Repository,
    actor: User,
    name: str,
    key: str,
    description: str | None = None,
    lead_id: str | None = None,
) -> Project:
    authorize(actor, Action.project_create)
    name = (name or "").strip()
    key = (key or "").strip().upper()
    if not name or not key:
        raise ValidationError("Name and key are required")
    projects = repo.load(Project)
    if any(p.key == key for p in projects):
        raise ValidationError("Project key already exists")
    _check_lead(repo, lead_id)

    project = Project(
        name=sanitize_text(name),
        key=key,
        description=sanitize_text(description) or "",
        owner_id=actor.id,
        lead_id=lead_id,
    )
    projects.append(project)
    repo.save(Project, projects)
    ensure_workflow(repo, project.id)
    return project


def update_project(repo: Repository, actor: User, project_id: str, changes: dict) -> Project:
    project = get_project(repo, project_id)
    authorize(actor, Action.project_update, project=project)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        project.name = sanitize_text(name)
    if "description" in changes:
        project.description = sanitize_text(changes["description"]) or ""
    if "lead_id" in changes:
        _check_lead(repo, changes["lead_id"])
        project.lead_id = changes["lead_id"]
    project.updated_at = datetime.now(timezone.utc)
    return repo.replace(project)
