from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class Attachment(Record):
    collection = "attachments"

    id: str = Field(default_factory=new_id)
    issue_id: str
    filename: str
    original_name: str
    size: int
    mime_type: str | None = None
    uploaded_by: str
    uploaded_at: UTCDateTime = Field(default_factory=utcnow)
