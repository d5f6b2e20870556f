from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class Comment(Record):
    collection = "comments"

    id: str = Field(default_factory=new_id)
    issue_id: str
    author_id: str
    content: str
    is_ai_suggestion: bool = False
    is_edited: bool = False
    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
