from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from tracker.models.sprint import SprintStatus


class SprintCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    start_date: datetime | None = None
    end_date: datetime | None = None


class SprintUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    start_date: datetime | None = None
    end_date: datetime | None = None


class SprintOut(BaseModel):
    id: str
    project_id: str
    name: str
    start_date: datetime | None
    end_date: datetime | None
    status: SprintStatus
    created_at: datetime
    closed_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class SprintCloseOut(BaseModel):
    sprint: SprintOut
    moved_issues: int


class SprintDeleteOut(BaseModel):
    sprint: SprintOut
    moved_issues: int
    deleted_notifications: int


class SprintIssueAdd(BaseModel):
    issue_id: str


class BurndownPoint(BaseModel):
    date: date
    remaining: int
