from .common import ApiResponse, PaginatedResponse, PageMeta
from .auth import AuthTokens, AccessToken, LoginRequest, RegisterRequest, RefreshRequest, ChangePasswordRequest
from .user import UserCreate, UserUpdate, UserResponse, UserSummary
from .enquiry import (
    EnquiryCreate,
    EnquiryUpdate,
    EnquiryResponse,
    AssignRequest,
)

__all__ = [
    "ApiResponse",
    "PaginatedResponse",
    "PageMeta",
    "AuthTokens",
    "AccessToken",
    "LoginRequest",
    "RegisterRequest",
    "RefreshRequest",
    "ChangePasswordRequest",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserSummary",
    "EnquiryCreate",
    "EnquiryUpdate",
    "EnquiryResponse",
    "AssignRequest",
]
