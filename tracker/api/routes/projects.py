from fastapi import APIRouter, Depends, Query, Request, status

from tracker.api import deps
from tracker.api.permissions import get_project
from tracker.api.query import SEARCH_PATTERN, SORT_PATTERN, apply_pagination, apply_sort
from tracker.api.responses import BAD_REQUEST, FORBIDDEN, NOT_FOUND
from tracker.db.repository import Repository
from tracker.models import Comment, Project, User
from tracker.schemas.issue import IssueCreateForProject, IssueOut
from tracker.schemas.project import ProjectCreate, ProjectDeleteOut, ProjectOut, ProjectUpdate
from tracker.schemas.sprint import SprintCreate, SprintOut
from tracker.schemas.workflow import WorkflowOut, WorkflowUpdate, WorkflowUpdateOut
from tracker.services import cascade
from tracker.services import issues as issue_service
from tracker.services import projects as project_service
from tracker.services import sprints as sprint_service
from tracker.services import workflows as workflow_service
from tracker.services.assistant import assistant
from tracker.services.audit import audit_log

router = APIRouter(prefix="/projects", tags=["projects"])

ISSUE_SORT_FIELDS = ("created_at", "updated_at", "priority", "status", "due_date", "title")


@router.get("/", response_model=list[ProjectOut])
def list_projects(
    search: str | None = Query(default=None, max_length=200, pattern=SEARCH_PATTERN),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    sort: str | None = Query(default=None, pattern=SORT_PATTERN),
    repo: Repository = Depends(deps.get_repository),
    _: User = Depends(deps.get_current_user),
):
    projects = project_service.list_projects(repo)
    if search:
        needle = search.lower()
        projects = [
            p for p in projects
            if needle in p.name.lower() or needle in p.description.lower() or needle in p.key.lower()
        ]
    projects = apply_sort(projects, sort, ("name", "key", "created_at", "updated_at"))
    return apply_pagination(projects, page, limit)


@router.post(
    "/",
    response_model=ProjectOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | FORBIDDEN,
)
def create_project(
    payload: ProjectCreate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    project = project_service.create_project(
        repo,
        current_user,
        name=payload.name,
        key=payload.key,
        description=payload.description,
        lead_id=payload.lead_id,
    )
    audit_log("project_create", current_user.id, request, project_id=project.id, key=project.key)
    return project


@router.get("/{project_id}", response_model=ProjectOut, responses=NOT_FOUND)
def get_project_detail(project: Project = Depends(get_project)):
    return project


@router.patch("/{project_id}", response_model=ProjectOut, responses=FORBIDDEN | NOT_FOUND)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    project = project_service.update_project(repo, current_user, project_id, changes)
    audit_log("project_update", current_user.id, request, project_id=project.id, fields=list(changes))
    return project


@router.delete("/{project_id}", response_model=ProjectDeleteOut, responses=FORBIDDEN | NOT_FOUND)
def delete_project(
    project_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    result = cascade.delete_project(repo, current_user, project_id)
    audit_log(
        "project_delete",
        current_user.id,
        request,
        project_id=project_id,
        deleted_issues=result["deleted_issues"],
        deleted_sprints=result["deleted_sprints"],
    )
    return result


@router.get("/{project_id}/issues", response_model=list[IssueOut], responses=NOT_FOUND)
def list_project_issues(
    status_filter: str | None = Query(default=None, alias="status", max_length=100),
    priority: str | None = Query(default=None, max_length=50),
    assignee: str | None = Query(default=None),
    sprint_id: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200, pattern=SEARCH_PATTERN),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    sort: str | None = Query(default=None, pattern=SORT_PATTERN),
    project: Project = Depends(get_project),
    repo: Repository = Depends(deps.get_repository),
):
    issues = issue_service.list_issues(
        repo,
        project_id=project.id,
        status=status_filter,
        priority=priority,
        assignee=assignee,
        sprint_id=sprint_id,
        search=search,
    )
    issues = apply_sort(issues, sort, ISSUE_SORT_FIELDS)
    return apply_pagination(issues, page, limit)


@router.post(
    "/{project_id}/issues",
    response_model=IssueOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def create_project_issue(
    project_id: str,
    payload: IssueCreateForProject,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    issue = issue_service.create_issue(
        repo, current_user, project_id, payload.model_dump(exclude_unset=True)
    )
    audit_log("issue_create", current_user.id, request, issue_id=issue.id, project_id=project_id)
    return issue


@router.get("/{project_id}/backlog", response_model=list[IssueOut], responses=NOT_FOUND)
def get_backlog(
    project: Project = Depends(get_project),
    repo: Repository = Depends(deps.get_repository),
):
    return issue_service.backlog(repo, project.id)


@router.get("/{project_id}/board", response_model=dict[str, list[IssueOut]], responses=NOT_FOUND)
def get_board(
    sprint_id: str | None = Query(default=None),
    project: Project = Depends(get_project),
    repo: Repository = Depends(deps.get_repository),
):
    return issue_service.board(repo, project.id, sprint_id=sprint_id)


@router.get("/{project_id}/workflow", response_model=WorkflowOut, responses=NOT_FOUND)
def get_workflow(
    project: Project = Depends(get_project),
    repo: Repository = Depends(deps.get_repository),
):
    return workflow_service.get_workflow(repo, project.id)


@router.put(
    "/{project_id}/workflow",
    response_model=WorkflowUpdateOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def update_workflow(
    project_id: str,
    payload: WorkflowUpdate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    workflow, stranded = workflow_service.update_workflow(
        repo, current_user, project_id, payload.statuses, payload.transitions
    )
    audit_log(
        "workflow_update",
        current_user.id,
        request,
        project_id=project_id,
        statuses=workflow.statuses,
        stranded_issues=stranded,
    )
    return WorkflowUpdateOut(**workflow.model_dump(), stranded_issues=stranded)


@router.get("/{project_id}/sprints", response_model=list[SprintOut], responses=NOT_FOUND)
def list_sprints(
    project: Project = Depends(get_project),
    repo: Repository = Depends(deps.get_repository),
):
    return sprint_service.list_sprints(repo, project.id)


@router.post(
    "/{project_id}/sprints",
    response_model=SprintOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def create_sprint(
    project_id: str,
    payload: SprintCreate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    sprint = sprint_service.create_sprint(
        repo,
        current_user,
        project_id,
        payload.name,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    audit_log("sprint_create", current_user.id, request, sprint_id=sprint.id, project_id=project_id)
    return sprint


@router.get("/{project_id}/ai-insights", responses=NOT_FOUND)
def get_ai_insights(
    project: Project = Depends(get_project),
    repo: Repository = Depends(deps.get_repository),
):
    issues = issue_service.list_issues(repo, project_id=project.id)
    issue_ids = {issue.id for issue in issues}
    comments = [c for c in repo.load(Comment) if c.issue_id in issue_ids]
    return assistant.project_insights(issues, comments)
