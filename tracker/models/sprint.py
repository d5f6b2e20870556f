import enum
from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class SprintStatus(str, enum.Enum):
    planning = "planning"
    active = "active"
    closed = "closed"


class Sprint(Record):
    collection = "sprints"

    id: str = Field(default_factory=new_id)
    project_id: str
    name: str
    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    status: SprintStatus = SprintStatus.planning
    created_at: UTCDateTime = Field(default_factory=utcnow)
    closed_at: UTCDateTime | None = None
