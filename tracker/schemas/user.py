from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_serializer
from tracker.models.user import UserRole
from tracker.services.security import mask_email


class UserOut(BaseModel):
    id: str
    email: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListItem(UserOut):
    @field_serializer("email")
    def serialize_email(self, email: str) -> str:
        return mask_email(email)
