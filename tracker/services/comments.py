from datetime import datetime, timezone

from tracker.core.errors import NotFoundError, ValidationError
from tracker.db.repository import Repository
from tracker.models import Comment, Issue, Project, User
from tracker.services import notifications
from tracker.services.policy import Action, authorize
from tracker.services.security import sanitize_text


def list_comments(repo: Repository, issue_id: str) -> list[Comment]:
    if repo.get(Issue, issue_id) is None:
        raise NotFoundError("Issue not found")
    comments = [c for c in repo.load(Comment) if c.issue_id == issue_id]
    comments.sort(key=lambda c: c.created_at)
    return comments


def get_comment(repo: Repository, comment_id: str) -> Comment:
    comment = repo.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def _clean_content(content: str | None) -> str:
    cleaned = sanitize_text((content or "").strip())
    if not cleaned:
        raise ValidationError("Comment content is required")
    return cleaned


def create_comment(
    repo: Repository,
    actor: User,
    issue_id: str,
    content: str,
    is_ai_suggestion: bool = False,
) -> Comment:
    authorize(actor, Action.comment_create)
    issues = repo.load(Issue)
    issue = next((i for i in issues if i.id == issue_id), None)
    if issue is None:
        raise NotFoundError("Issue not found")

    comments = repo.load(Comment)
    comment = Comment(
        issue_id=issue_id,
        author_id=actor.id,
        content=_clean_content(content),
        is_ai_suggestion=is_ai_suggestion,
    )
    earlier_authors = [c.author_id for c in comments if c.issue_id == issue_id]
    comments.append(comment)
    repo.save(Comment, comments)

    issue.updated_at = comment.created_at
    repo.save(Issue, issues)

    project = repo.get(Project, issue.project_id)
    notifications.send(
        repo,
        [issue.assignee, issue.creator_id, project.owner_id if project else None, *earlier_authors],
        f'New comment on issue "{issue.title}" by {actor.email}',
        related_entity_id=issue.id,
        exclude=actor.id,
    )
    return comment


def update_comment(repo: Repository, actor: User, comment_id: str, content: str) -> Comment:
    comment = get_comment(repo, comment_id)
    authorize(actor, Action.comment_modify, resource=comment)
    comment.content = _clean_content(content)
    comment.is_edited = True
    comment.updated_at = datetime.now(timezone.utc)
    return repo.replace(comment)


def delete_comment(repo: Repository, actor: User, comment_id: str) -> Comment:
    comment = get_comment(repo, comment_id)
    authorize(actor, Action.comment_modify, resource=comment)
    repo.save(Comment, [c for c in repo.load(Comment) if c.id != comment.id])
    return comment
