from typing import Any

from pydantic import Field

from tracker.models.base import Record

DEFAULT_STATUSES = ("To Do", "In Progress", "Done")
DONE_STATUS = "Done"


class Workflow(Record):
    """Ordered statuses of one project; the first entry is the open state."""

    collection = "workflows"

    project_id: str
    statuses: list[str] = Field(default_factory=lambda: list(DEFAULT_STATUSES))
    transitions: dict[str, Any] = Field(default_factory=dict)
