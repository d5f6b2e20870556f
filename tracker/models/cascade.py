import enum
from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class CascadeKind(str, enum.Enum):
    project = "project"
    sprint = "sprint"
    issue = "issue"


class CascadeEntry(Record):
    """Journal entry for a cascade that has started but not finished."""

    collection = "cascades"

    id: str = Field(default_factory=new_id)
    kind: CascadeKind
    target_id: str
    actor_id: str | None = None
    started_at: UTCDateTime = Field(default_factory=utcnow)
