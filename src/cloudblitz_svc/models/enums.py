from enum import Enum


class UserRole(str, Enum):
    Admin = "admin"
    Staff = "staff"
    User = "user"


class EnquiryStatus(str, Enum):
    New = "new"
    InProgress = "in-progress"
    Closed = "closed"


class EnquiryPriority(str, Enum):
    Low = "low"
    Medium = "medium"
    High = "high"


# Roles that may receive auto-assigned enquiries and manage any enquiry
PRIVILEGED_ROLES = (UserRole.Admin, UserRole.Staff)
