import enum
from datetime import date, datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from tracker.api import deps
from tracker.api.permissions import get_issue
from tracker.api.query import SEARCH_PATTERN, SORT_PATTERN, apply_pagination, apply_sort
from tracker.api.responses import BAD_REQUEST, FORBIDDEN, NOT_FOUND
from tracker.api.routes.projects import ISSUE_SORT_FIELDS
from tracker.db.repository import Repository
from tracker.models import Issue, User
from tracker.schemas.ai import IssueAnalysisOut, SuggestionRequest, SuggestionsOut
from tracker.schemas.attachment import AttachmentOut
from tracker.schemas.comment import CommentCreate, CommentDetailOut, CommentOut
from tracker.schemas.issue import IssueCreate, IssueDeleteOut, IssueOut, IssueUpdate
from tracker.services import attachments as attachment_service
from tracker.services import cascade
from tracker.services import comments as comment_service
from tracker.services import issues as issue_service
from tracker.services.assistant import assistant
from tracker.services.audit import audit_log

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("/", response_model=list[IssueOut])
def list_issues(
    project_id: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status", max_length=100),
    priority: str | None = Query(default=None, max_length=50),
    assignee: str | None = Query(default=None),
    sprint_id: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200, pattern=SEARCH_PATTERN),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    sort: str | None = Query(default=None, pattern=SORT_PATTERN),
    repo: Repository = Depends(deps.get_repository),
    _: User = Depends(deps.get_current_user),
):
    issues = issue_service.list_issues(
        repo,
        project_id=project_id,
        status=status_filter,
        priority=priority,
        assignee=assignee,
        sprint_id=sprint_id,
        search=search,
    )
    issues = apply_sort(issues, sort, ISSUE_SORT_FIELDS)
    return apply_pagination(issues, page, limit)


@router.post(
    "/",
    response_model=IssueOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def create_issue(
    payload: IssueCreate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    data = payload.model_dump(exclude_unset=True, exclude={"project_id"})
    issue = issue_service.create_issue(repo, current_user, payload.project_id, data)
    audit_log("issue_create", current_user.id, request, issue_id=issue.id, project_id=issue.project_id)
    return issue


@router.get("/{issue_id}", response_model=IssueOut, responses=NOT_FOUND)
def get_issue_detail(issue: Issue = Depends(get_issue)):
    return issue


@router.patch(
    "/{issue_id}",
    response_model=IssueOut,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def update_issue(
    issue_id: str,
    payload: IssueUpdate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    data = payload.model_dump(exclude_unset=True)
    before = issue_service.get_issue(repo, issue_id)
    issue = issue_service.update_issue(repo, current_user, issue_id, data)

    changes: dict[str, dict[str, Any]] = {}
    for field in data:
        previous = _serialize_audit_value(getattr(before, field))
        next_value = _serialize_audit_value(getattr(issue, field))
        if previous != next_value:
            changes[field] = {"from": previous, "to": next_value}
    audit_log(
        "issue_update",
        current_user.id,
        request,
        issue_id=issue.id,
        project_id=issue.project_id,
        fields=list(changes.keys()),
        changes=changes,
    )
    return issue


def _serialize_audit_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


@router.delete("/{issue_id}", response_model=IssueDeleteOut, responses=FORBIDDEN | NOT_FOUND)
def delete_issue(
    issue_id: str,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    result = cascade.delete_issue(repo, current_user, issue_id)
    audit_log(
        "issue_delete",
        current_user.id,
        request,
        issue_id=issue_id,
        deleted_issues=result["deleted_issues"],
        deleted_attachments=result["deleted_attachments"],
    )
    return result


@router.get("/{issue_id}/attachments", response_model=list[AttachmentOut], responses=NOT_FOUND)
def list_attachments(
    issue: Issue = Depends(get_issue),
    repo: Repository = Depends(deps.get_repository),
):
    return attachment_service.list_attachments(repo, issue.id)


@router.post(
    "/{issue_id}/attachments",
    response_model=AttachmentOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def upload_attachment(
    issue_id: str,
    request: Request,
    file: UploadFile = File(...),
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    attachment = attachment_service.save_upload(
        repo,
        current_user,
        issue_id,
        file.filename,
        file.file,
        mime_type=file.content_type,
    )
    audit_log(
        "attachment_upload",
        current_user.id,
        request,
        issue_id=issue_id,
        attachment_id=attachment.id,
        size=attachment.size,
    )
    return attachment


@router.get("/{issue_id}/comments", response_model=list[CommentDetailOut], responses=NOT_FOUND)
def list_comments(
    issue: Issue = Depends(get_issue),
    repo: Repository = Depends(deps.get_repository),
):
    users = {user.id: user for user in repo.load(User)}
    details = []
    for comment in comment_service.list_comments(repo, issue.id):
        author = users.get(comment.author_id)
        details.append(
            CommentDetailOut(
                **comment.model_dump(),
                author_email=author.email if author else None,
                author_role=author.role if author else None,
                sentiment=assistant.analyze_sentiment(comment.content),
            )
        )
    return details


@router.post(
    "/{issue_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
    responses=BAD_REQUEST | FORBIDDEN | NOT_FOUND,
)
def create_comment(
    issue_id: str,
    payload: CommentCreate,
    request: Request,
    repo: Repository = Depends(deps.get_repository),
    current_user: User = Depends(deps.get_current_user),
):
    comment = comment_service.create_comment(
        repo,
        current_user,
        issue_id,
        payload.content,
        is_ai_suggestion=payload.is_ai_suggestion,
    )
    audit_log("comment_create", current_user.id, request, comment_id=comment.id, issue_id=issue_id)
    return comment


@router.get("/{issue_id}/ai-analysis", response_model=IssueAnalysisOut, responses=NOT_FOUND)
def get_ai_analysis(
    issue: Issue = Depends(get_issue),
    repo: Repository = Depends(deps.get_repository),
):
    return IssueAnalysisOut(
        analysis=assistant.analyze_issue(issue),
        similar_issues=assistant.find_similar_issues(issue, repo.load(Issue)),
        generated_at=datetime.now(timezone.utc),
    )


@router.post("/{issue_id}/ai-suggestions", response_model=SuggestionsOut, responses=NOT_FOUND)
def get_ai_suggestions(
    payload: SuggestionRequest,
    issue: Issue = Depends(get_issue),
    repo: Repository = Depends(deps.get_repository),
):
    comments = comment_service.list_comments(repo, issue.id)
    return SuggestionsOut(
        suggestions=assistant.suggest_comment_response(issue, comments, payload.current_comment),
        action_items=assistant.extract_action_items(comments),
        generated_at=datetime.now(timezone.utc),
    )
