from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentOut(BaseModel):
    id: str
    issue_id: str
    original_name: str
    size: int
    mime_type: str | None
    uploaded_by: str
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)
