from typing import Any

from tracker.core.errors import NotFoundError, ValidationError
from tracker.db.repository import Repository
from tracker.models import Issue, Project, User, Workflow
from tracker.services.policy import Action, authorize


def _find(workflows: list[Workflow], project_id: str) -> Workflow | None:
    for workflow in workflows:
        if workflow.project_id == project_id:
            return workflow
    return None


def ensure_workflow(repo: Repository, project_id: str) -> Workflow:
    workflows = repo.load(Workflow)
    workflow = _find(workflows, project_id)
    if workflow is None:
        workflow = Workflow(project_id=project_id)
        workflows.append(workflow)
        repo.save(Workflow, workflows)
    return workflow


def get_workflow(repo: Repository, project_id: str) -> Workflow:
    if repo.get(Project, project_id) is None:
        raise NotFoundError("Project not found")
    return ensure_workflow(repo, project_id)


def stranded_issues(repo: Repository, workflow: Workflow) -> list[Issue]:
    """Issues of the project whose status is no longer a workflow status."""
    allowed = set(workflow.statuses)
    return [
        issue
        for issue in repo.load(Issue)
        if issue.project_id == workflow.project_id and issue.status not in allowed
    ]


def update_workflow(
    repo: Repository,
    actor: User,
    project_id: str,
    statuses: list[Any] | None,
    transitions: dict[str, Any] | None = None,
) -> tuple[Workflow, int]:
    """Replace statuses and transitions; returns the workflow and the stranded count.

    Issues holding a removed status keep it until they are edited.
    """
    project = repo.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    authorize(actor, Action.workflow_update, project=project)
    if not statuses:
        raise ValidationError("Workflow must contain at least one status")

    cleaned = [str(status) for status in statuses]
    workflows = repo.load(Workflow)
    workflow = _find(workflows, project_id)
    if workflow is None:
        workflow = Workflow(project_id=project_id)
        workflows.append(workflow)
    workflow.statuses = cleaned
    workflow.transitions = dict(transitions or {})
    repo.save(Workflow, workflows)
    return workflow, len(stranded_issues(repo, workflow))
