from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tracker.models.user import UserRole


class CommentBase(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class CommentCreate(CommentBase):
    is_ai_suggestion: bool = False


class CommentUpdate(CommentBase):
    pass


class Sentiment(BaseModel):
    score: int
    sentiment: str
    is_urgent: bool
    confidence: float


class CommentOut(CommentBase):
    id: str
    issue_id: str
    author_id: str
    is_ai_suggestion: bool
    is_edited: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentDetailOut(CommentOut):
    author_email: str | None = None
    author_role: UserRole | None = None
    sentiment: Sentiment | None = None
