from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    lead_id: str | None = None


class ProjectCreate(ProjectBase):
    key: str = Field(min_length=1, max_length=10, pattern=r"^[A-Za-z][A-Za-z0-9]*$")


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    lead_id: str | None = None


class ProjectOut(ProjectBase):
    id: str
    key: str
    owner_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectDeleteOut(BaseModel):
    project: ProjectOut
    deleted_issues: int
    deleted_sprints: int
    deleted_attachments: int
    deleted_comments: int
    deleted_notifications: int
    deleted_workflows: int
