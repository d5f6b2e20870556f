from datetime import date

from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class Issue(Record):
    collection = "issues"

    id: str = Field(default_factory=new_id)
    project_id: str
    title: str
    description: str = ""
    priority: str = "Medium"
    status: str
    assignee: str | None = None
    due_date: date | None = None
    labels: list[str] = Field(default_factory=list)
    parent_id: str | None = None
    sprint_id: str | None = None
    creator_id: str
    done_at: UTCDateTime | None = None
    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
