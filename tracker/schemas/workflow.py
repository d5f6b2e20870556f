from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkflowUpdate(BaseModel):
    statuses: list[Any] = Field(default_factory=list)
    transitions: dict[str, Any] | None = None


class WorkflowOut(BaseModel):
    project_id: str
    statuses: list[str]
    transitions: dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class WorkflowUpdateOut(WorkflowOut):
    stranded_issues: int
