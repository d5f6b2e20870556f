import enum
from pydantic import Field

from tracker.models.base import Record, UTCDateTime, new_id, utcnow


class UserRole(str, enum.Enum):
    admin = "admin"
    project_manager = "project_manager"
    developer = "developer"
    viewer = "viewer"


class User(Record):
    collection = "users"

    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str
    role: UserRole = UserRole.developer
    created_at: UTCDateTime = Field(default_factory=utcnow)
