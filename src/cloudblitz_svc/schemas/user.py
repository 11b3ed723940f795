from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, ConfigDict, field_validator

from cloudblitz_svc.models.enums import UserRole
from cloudblitz_svc.schemas.common import CamelModel


def lowercase_email(value):
    return value.strip().lower() if isinstance(value, str) else value


class UserCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    role: UserRole = UserRole.User

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return lowercase_email(value)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    has_seen_tutorial: Optional[bool] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return lowercase_email(value)


class UserSummary(CamelModel):
    id: int
    name: str
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class UserResponse(CamelModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    has_seen_tutorial: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
