from pydantic import Field

from tracker.models.base import Record, UTCDateTime, utcnow


class Session(Record):
    """Stored under its bearer token in the ``sessions`` mapping."""

    collection = "sessions"

    user_id: str
    created_at: UTCDateTime = Field(default_factory=utcnow)
