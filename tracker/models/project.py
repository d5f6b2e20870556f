from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class Project(Record):
    collection = "projects"

    id: str = Field(default_factory=new_id)
    name: str
    key: str
    description: str = ""
    owner_id: str
    lead_id: str | None = None
    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
