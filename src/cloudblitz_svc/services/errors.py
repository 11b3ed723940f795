from __future__ import annotations

from typing import Optional

from fastapi import status


class ServiceError(Exception):
    """Base class for errors that map onto an error response.

    ``status_code`` and ``default_message`` are class attributes so callers can
    raise with no arguments; the message may be overridden per raise.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Bad request"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NoEligibleAssignees(ServiceError):
    default_message = "No active staff/admin users available for assignment"


class InvalidIdentifier(ServiceError):
    default_message = "Invalid ID"


class CannotDeleteLastAdmin(ServiceError):
    default_message = "Cannot delete the last admin user"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class NotPermittedToAccess(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this enquiry"


class NotPermittedToUpdate(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to update this enquiry"


class NotPermittedToAssign(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to assign enquiries"


class NotPermittedToDelete(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to delete this enquiry"


class NotPermittedToUpdateUser(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to update this user"


class AdminRequired(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied. Insufficient permissions."


class RecordNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class DuplicateEmail(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "User with this email already exists"


def parse_id(raw: object, label: str = "") -> int:
    """Convert a path or body identifier to a positive int.

    Raises InvalidIdentifier for anything else (including bools and
    zero/negative numbers) so handlers can reject before querying.
    """
    message = f"Invalid {label} ID" if label else "Invalid ID"
    if isinstance(raw, bool):
        raise InvalidIdentifier(message)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        value = int(raw.strip())
    else:
        raise InvalidIdentifier(message)
    if value <= 0:
        raise InvalidIdentifier(message)
    return value
