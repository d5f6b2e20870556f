from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class Notification(Record):
    collection = "notifications"

    id: str = Field(default_factory=new_id)
    user_id: str
    message: str
    read: bool = False
    related_entity_id: str | None = None
    created_at: UTCDateTime = Field(default_factory=utcnow)
