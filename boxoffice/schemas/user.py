from typing import Optional
from pydantic import EmailStr, Field, field_validator
from datetime import datetime

from boxoffice.schemas.common import CamelModel, OkResponse


# Properties to receive via API on creation (POST /auth/register)
class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    display_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


# Properties to receive via API on admin creation (POST /auth/admin/register)
class AdminCreate(UserCreate):
    admin_secret: str


# Plain str on purpose: a malformed email must fail like any unknown one
class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


# Properties returned via API
class User(CamelModel):
    id: int
    email: str
    display_name: Optional[str] = None
    role: str = "USER"
    created_at: Optional[datetime] = None


class AuthResponse(OkResponse):
    token: str
    user: User


class MeResponse(OkResponse):
    user: User


class RoleResponse(OkResponse):
    role: str
