from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class IssueAnalysisOut(BaseModel):
    analysis: dict[str, Any]
    similar_issues: list[dict[str, Any]]
    generated_at: datetime


class SuggestionRequest(BaseModel):
    current_comment: str | None = Field(default=None, max_length=5000)


class SuggestionsOut(BaseModel):
    suggestions: dict[str, Any]
    action_items: list[dict[str, Any]]
    generated_at: datetime
