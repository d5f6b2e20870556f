from pydantic import BaseModel, EmailStr, Field

from tracker.models.user import UserRole
from tracker.schemas.user import UserOut


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.developer


class SessionToken(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut
