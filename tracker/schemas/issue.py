from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class IssueFields(BaseModel):
    description: str | None = Field(default=None, max_length=5000)
    priority: str | None = Field(default=None, max_length=50)
    status: str | None = Field(default=None, max_length=100)
    assignee: str | None = None
    due_date: date | None = None
    labels: list[str] | str | None = None
    parent_id: str | None = None
    sprint_id: str | None = None


class IssueCreateForProject(IssueFields):
    title: str = Field(min_length=1, max_length=200)


class IssueCreate(IssueCreateForProject):
    project_id: str


class IssueUpdate(IssueFields):
    title: str | None = Field(default=None, min_length=1, max_length=200)


class IssueOut(BaseModel):
    id: str
    project_id: str
    title: str
    description: str
    priority: str
    status: str
    assignee: str | None
    due_date: date | None
    labels: list[str]
    parent_id: str | None
    sprint_id: str | None
    creator_id: str
    done_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IssueDeleteOut(BaseModel):
    issue: IssueOut
    deleted_issues: int
    detached_issues: int
    deleted_attachments: int
    deleted_comments: int
    deleted_notifications: int
