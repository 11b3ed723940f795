from __future__ import annotations

from pydantic import EmailStr, Field, ConfigDict, field_validator

from cloudblitz_svc.models.enums import UserRole
from cloudblitz_svc.schemas.common import CamelModel
from cloudblitz_svc.schemas.user import UserCreate, lowercase_email


class RegisterRequest(UserCreate):
    pass


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return lowercase_email(value)


class AuthUser(CamelModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class AuthTokens(CamelModel):
    user: AuthUser
    access_token: str
    refresh_token: str
    expires_in: int


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class AccessToken(CamelModel):
    access_token: str
    expires_in: int


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)
