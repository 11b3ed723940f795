from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import EmailStr, Field, ConfigDict, field_validator

from cloudblitz_svc.models.enums import EnquiryPriority, EnquiryStatus
from cloudblitz_svc.schemas.common import CamelModel
from cloudblitz_svc.schemas.user import UserSummary, lowercase_email

PHONE_PATTERN = r"^[+]?[1-9]\d{0,15}$"


class EnquiryCreate(CamelModel):
    customer_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    message: str = Field(..., min_length=10, max_length=1000)
    priority: EnquiryPriority = EnquiryPriority.Medium
    auto_assign: bool = False

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return lowercase_email(value)


class EnquiryUpdate(CamelModel):
    """Payload for partial update of an Enquiry.

    Handlers apply ``model_dump(exclude_unset=True)`` so only sent fields change.
    ``auto_assign`` replaces any manually supplied ``assigned_to``.
    """

    customer_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    message: Optional[str] = Field(default=None, min_length=10, max_length=1000)
    status: Optional[EnquiryStatus] = None
    priority: Optional[EnquiryPriority] = None
    assigned_to: Optional[int] = None
    notes: Optional[List[str]] = None
    auto_assign: Optional[bool] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return lowercase_email(value)


class AssignRequest(CamelModel):
    # validated by the handler so malformed ids give the same 400 as the path id
    user_id: Optional[Union[int, str]] = None


class EnquiryResponse(CamelModel):
    id: int
    customer_name: str
    email: EmailStr
    phone: str
    message: str
    status: EnquiryStatus
    priority: EnquiryPriority
    assigned_to: Optional[UserSummary] = None
    created_by: Optional[UserSummary] = None
    notes: List[str] = []
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
