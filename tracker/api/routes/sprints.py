from fastapi import APIRouter, Depends, Request

from tracker.api import deps
from tracker.api.permissions import get_sprint
from tracker.api.responses import BAD_REQUEST, FORBIDDEN, NOT_FOUND
from tracker.db.repository import Repository
from tracker.models import Sprint, User
from tracker.schemas.issue import IssueOut
from tracker.schemas.sprint import (
    BurndownPoint,
    SprintCloseOut,
    SprintDeleteOut,
    SprintIssueAdd,
    SprintOut,
    SprintUpdate,
)
from tracker.services import cascade
from tracker.services import sprints as sprint_service
from tracker.services.audit import audit_log

router = APIRouter(prefix="/sprints", tags=["sprints"])


@router.get("/{sprint_id}", response_model=SprintOut, responses=NOT_FOUND)
def get_sprint_detail(sprint: Sprint = Depends(get_sprint)):
    return sprint


@router.patch(
    "/{sprint_id}",
    response_model=SprintOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def update_sprint(
    sprint_id: str,
    payload: SprintUpdate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    sprint = sprint_service.update_sprint(repo, current_user, sprint_id, changes)
    audit_log("sprint_update", current_user.id, request, sprint_id=sprint.id, fields=list(changes))
    return sprint


@router.delete("/{sprint_id}", response_model=SprintDeleteOut, responses=FORBIDDEN | NOT_FOUND)
def delete_sprint(
    sprint_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    result = cascade.delete_sprint(repo, current_user, sprint_id)
    audit_log(
        "sprint_delete",
        current_user.id,
        request,
        sprint_id=sprint_id,
        moved_issues=result["moved_issues"],
    )
    return result


@router.post(
    "/{sprint_id}/start",
    response_model=SprintOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def start_sprint(
    sprint_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    sprint = sprint_service.start_sprint(repo, current_user, sprint_id)
    audit_log("sprint_start", current_user.id, request, sprint_id=sprint.id)
    return sprint


@router.post(
    "/{sprint_id}/close",
    response_model=SprintCloseOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def close_sprint(
    sprint_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    sprint, moved = sprint_service.close_sprint(repo, current_user, sprint_id)
    audit_log("sprint_close", current_user.id, request, sprint_id=sprint.id, moved_issues=moved)
    return SprintCloseOut(sprint=SprintOut.model_validate(sprint, from_attributes=True), moved_issues=moved)


@router.post(
    "/{sprint_id}/issues",
    response_model=IssueOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def add_issue_to_sprint(
    sprint_id: str,
    payload: SprintIssueAdd,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    issue = sprint_service.add_issue(repo, current_user, sprint_id, payload.issue_id)
    audit_log("sprint_add_issue", current_user.id, request, sprint_id=sprint_id, issue_id=issue.id)
    return issue


@router.get(
    "/{sprint_id}/burndown",
    response_model=list[BurndownPoint],
    responses=BAD_REQUEST | NOT_FOUND,
)
def get_burndown(
    sprint: Sprint = Depends(get_sprint),
    repo: Repository = Depends(deps.get_repository),
):
    return sprint_service.burndown(repo, sprint.id)
