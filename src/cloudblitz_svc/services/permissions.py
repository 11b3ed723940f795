"""Role and relationship based access rules for enquiries and users.

Each (action, role) pair maps onto a Rule. Rules that depend on the record
(owner, assignee, self) are resolved against the record passed in. Field
filters never fail: disallowed fields are dropped and the request continues.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cloudblitz_svc.models import Enquiry, User
from cloudblitz_svc.models.enums import UserRole
from cloudblitz_svc.services.errors import (
    AdminRequired,
    CannotDeleteLastAdmin,
    NotPermittedToAccess,
    NotPermittedToAssign,
    NotPermittedToDelete,
    NotPermittedToUpdate,
    NotPermittedToUpdateUser,
    ServiceError,
)

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"


class Rule(str, Enum):
    ALLOW = "allow"
    OWNER = "owner"
    OWNER_OR_ASSIGNEE = "owner_or_assignee"
    SELF = "self"
    DENY = "deny"


class EnquiryAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    UPDATE_STATUS_OR_ASSIGNMENT = "update_status_or_assignment"
    DELETE = "delete"


class UserAction(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Decision(NamedTuple):
    allowed: bool
    error: Optional[Type[ServiceError]] = None


ALLOWED = Decision(True)

ENQUIRY_POLICY: Dict[EnquiryAction, Dict[str, Rule]] = {
    EnquiryAction.CREATE: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.ALLOW,
        UserRole.User.value: Rule.ALLOW,
        ANONYMOUS: Rule.ALLOW,
    },
    EnquiryAction.READ: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.OWNER_OR_ASSIGNEE,
        UserRole.User.value: Rule.OWNER_OR_ASSIGNEE,
    },
    EnquiryAction.UPDATE: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.ALLOW,
        UserRole.User.value: Rule.OWNER,
    },
    EnquiryAction.UPDATE_STATUS_OR_ASSIGNMENT: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.ALLOW,
        UserRole.User.value: Rule.DENY,
    },
    # ownership for delete is createdBy only; an assignee cannot delete
    EnquiryAction.DELETE: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.OWNER,
        UserRole.User.value: Rule.OWNER,
    },
}

ENQUIRY_DENIALS: Dict[EnquiryAction, Type[ServiceError]] = {
    EnquiryAction.CREATE: NotPermittedToAccess,
    EnquiryAction.READ: NotPermittedToAccess,
    EnquiryAction.UPDATE: NotPermittedToUpdate,
    EnquiryAction.UPDATE_STATUS_OR_ASSIGNMENT: NotPermittedToAssign,
    EnquiryAction.DELETE: NotPermittedToDelete,
}

USER_POLICY: Dict[UserAction, Dict[str, Rule]] = {
    UserAction.LIST: {UserRole.Admin.value: Rule.ALLOW},
    UserAction.READ: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.ALLOW,
        UserRole.User.value: Rule.ALLOW,
    },
    UserAction.CREATE: {UserRole.Admin.value: Rule.ALLOW},
    UserAction.UPDATE: {
        UserRole.Admin.value: Rule.ALLOW,
        UserRole.Staff.value: Rule.SELF,
        UserRole.User.value: Rule.SELF,
    },
    UserAction.DELETE: {UserRole.Admin.value: Rule.ALLOW},
}

USER_DENIALS: Dict[UserAction, Type[ServiceError]] = {
    UserAction.LIST: AdminRequired,
    UserAction.READ: AdminRequired,
    UserAction.CREATE: AdminRequired,
    UserAction.UPDATE: NotPermittedToUpdateUser,
    UserAction.DELETE: AdminRequired,
}

# Enquiry fields only admin/staff may change through a general update
RESTRICTED_ENQUIRY_FIELDS = ("status", "assigned_to", "auto_assign")


def role_of(actor: Optional[User]) -> str:
    if actor is None:
        return ANONYMOUS
    role = actor.role
    return role.value if isinstance(role, UserRole) else str(role)


def is_admin(actor: Optional[User]) -> bool:
    return role_of(actor) == UserRole.Admin.value


def is_owner(actor: Optional[User], enquiry: Optional[Enquiry]) -> bool:
    return (
        actor is not None
        and enquiry is not None
        and enquiry.created_by_id is not None
        and enquiry.created_by_id == actor.id
    )


def is_assignee(actor: Optional[User], enquiry: Optional[Enquiry]) -> bool:
    return (
        actor is not None
        and enquiry is not None
        and enquiry.assigned_to_id is not None
        and enquiry.assigned_to_id == actor.id
    )


def _rule_holds(rule: Rule, actor: Optional[User], record: Any) -> bool:
    if rule is Rule.ALLOW:
        return True
    if rule is Rule.OWNER:
        return is_owner(actor, record)
    if rule is Rule.OWNER_OR_ASSIGNEE:
        return is_owner(actor, record) or is_assignee(actor, record)
    if rule is Rule.SELF:
        return actor is not None and record is not None and record.id == actor.id
    return False


def authorize_enquiry_access(
    actor: Optional[User], action: EnquiryAction, enquiry: Optional[Enquiry] = None
) -> Decision:
    rule = ENQUIRY_POLICY[action].get(role_of(actor), Rule.DENY)
    if _rule_holds(rule, actor, enquiry):
        return ALLOWED
    return Decision(False, ENQUIRY_DENIALS[action])


def authorize_user_access(actor: Optional[User], action: UserAction, target: Optional[User] = None) -> Decision:
    rule = USER_POLICY[action].get(role_of(actor), Rule.DENY)
    if _rule_holds(rule, actor, target):
        return ALLOWED
    return Decision(False, USER_DENIALS[action])


def enforce(decision: Decision) -> None:
    """Raise the decision's error when access is denied."""
    if not decision.allowed:
        raise (decision.error or NotPermittedToAccess)()


def filter_enquiry_update(actor: Optional[User], data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop status/assignment changes for actors without assignment rights."""
    if authorize_enquiry_access(actor, EnquiryAction.UPDATE_STATUS_OR_ASSIGNMENT).allowed:
        return dict(data)

    dropped = [k for k in RESTRICTED_ENQUIRY_FIELDS if k in data]
    if dropped:
        logger.info("Ignoring restricted enquiry fields %s from user %s", dropped, getattr(actor, "id", None))
    return {k: v for k, v in data.items() if k not in RESTRICTED_ENQUIRY_FIELDS}


def filter_user_update(actor: Optional[User], target: User, data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop role changes and other users' tutorial flags for non-admin actors."""
    if is_admin(actor):
        return dict(data)

    cleaned = dict(data)
    if "role" in cleaned and cleaned["role"] != target.role:
        logger.info("Ignoring role change on user %s requested by non-admin %s", target.id, getattr(actor, "id", None))
        cleaned.pop("role")
    if "has_seen_tutorial" in cleaned and (actor is None or actor.id != target.id):
        cleaned.pop("has_seen_tutorial")
    return cleaned


def count_admins(db: Session) -> int:
    stmt = select(func.count(User.id)).where(User.role == UserRole.Admin)
    return int(db.execute(stmt).scalar_one())


def ensure_not_last_admin(db: Session, target: User) -> None:
    if target.role == UserRole.Admin and count_admins(db) <= 1:
        raise CannotDeleteLastAdmin()
