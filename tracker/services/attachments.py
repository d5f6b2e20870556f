import logging
import secrets
from pathlib import Path
from typing import BinaryIO

from tracker.core.config import settings
from tracker.core.errors import NotFoundError, ValidationError
from tracker.db.repository import Repository
from tracker.models import Attachment, Issue, Project, User
from tracker.services.policy import Action, authorize

logger = logging.getLogger("tracker.attachments")

CHUNK_SIZE = 64 * 1024


def _authorize_issue(repo: Repository, actor: User, issue_id: str) -> Issue:
    issue = repo.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError("Issue not found")
    project = repo.get(Project, issue.project_id)
    authorize(actor, Action.issue_modify, resource=issue, project=project)
    return issue


def list_attachments(repo: Repository, issue_id: str) -> list[Attachment]:
    return [a for a in repo.load(Attachment) if a.issue_id == issue_id]


def get_attachment(repo: Repository, attachment_id: str) -> Attachment:
    attachment = repo.get(Attachment, attachment_id)
    if attachment is None:
        raise NotFoundError("Attachment not found")
    return attachment


def save_upload(
    repo: Repository,
    actor: User,
    issue_id: str,
    original_name: str | None,
    stream: BinaryIO,
    mime_type: str | None = None,
    max_bytes: int | None = None,
) -> Attachment:
    """Copy ``stream`` into the uploads directory under a random name."""
    issue = _authorize_issue(repo, actor, issue_id)
    limit = max_bytes if max_bytes is not None else settings.max_upload_bytes
    original_name = Path(original_name or "upload").name
    filename = f"{secrets.token_hex(16)}{Path(original_name).suffix}"

    repo.uploads_dir.mkdir(parents=True, exist_ok=True)
    target = repo.upload_path(filename)
    size = 0
    try:
        with target.open("wb") as out:
            for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
                size += len(chunk)
                if size > limit:
                    raise ValidationError(
                        f"File exceeds the {limit // (1024 * 1024)}MB limit"
                    )
                out.write(chunk)
    except ValidationError:
        target.unlink(missing_ok=True)
        raise

    attachment = Attachment(
        issue_id=issue.id,
        filename=filename,
        original_name=original_name,
        size=size,
        mime_type=mime_type,
        uploaded_by=actor.id,
    )
    repo.add(attachment)
    logger.info(
        "Attachment stored",
        extra={"event": {"attachment_id": attachment.id, "issue_id": issue.id, "size": size}},
    )
    return attachment


def remove_file(repo: Repository, attachment: Attachment) -> bool:
    """Best-effort removal of the stored file; failures are logged."""
    path = repo.upload_path(attachment.filename)
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        logger.warning(
            "Attachment file already missing",
            extra={"event": {"attachment_id": attachment.id, "path": str(path)}},
        )
    except OSError:
        logger.exception(
            "Failed to delete attachment file",
            extra={"event": {"attachment_id": attachment.id, "path": str(path)}},
        )
    return False


def delete_attachment(repo: Repository, actor: User, attachment_id: str) -> Attachment:
    attachment = get_attachment(repo, attachment_id)
    _authorize_issue(repo, actor, attachment.issue_id)
    remove_file(repo, attachment)
    repo.save(
        Attachment, [a for a in repo.load(Attachment) if a.id != attachment.id]
    )
    return attachment
