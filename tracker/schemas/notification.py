from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationOut(BaseModel):
    id: str
    message: str
    read: bool
    related_entity_id: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReadAllOut(BaseModel):
    updated: int
