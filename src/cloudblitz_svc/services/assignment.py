"""Round-robin selection of the next enquiry assignee.

The ring is every active admin/staff user in account-age order. No rotation
pointer is stored: the position is recovered from the most recently created
enquiry that is assigned to a ring member. Two concurrent auto-assign requests
can therefore read the same last enquiry and pick the same user.
"""
from typing import Iterable, Optional, Sequence
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from cloudblitz_svc.models import User, Enquiry
from cloudblitz_svc.models.enums import PRIVILEGED_ROLES
from cloudblitz_svc.services.errors import NoEligibleAssignees

logger = logging.getLogger(__name__)


def next_in_ring(eligible_users: Sequence[User], last_assignee_id: Optional[int]) -> User:
    """Return the ring member after ``last_assignee_id``.

    With no previous assignee the ring start is returned. A previous assignee
    that is no longer in the ring gives index -1, so the step lands on the
    ring start as well.
    """
    if not eligible_users:
        raise NoEligibleAssignees()

    if last_assignee_id is None:
        return eligible_users[0]

    last_index = next((i for i, u in enumerate(eligible_users) if u.id == last_assignee_id), -1)
    return eligible_users[(last_index + 1) % len(eligible_users)]


def get_eligible_users(db: Session) -> list:
    stmt = (
        select(User)
        .where(User.is_active.is_(True), User.role.in_(PRIVILEGED_ROLES))
        .order_by(User.created_at.asc(), User.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def get_last_assigned_enquiry(db: Session, eligible_ids: Iterable[int]) -> Optional[Enquiry]:
    # soft-deleted enquiries still count as a rotation step
    stmt = (
        select(Enquiry)
        .where(Enquiry.assigned_to_id.in_(list(eligible_ids)))
        .order_by(Enquiry.created_at.desc(), Enquiry.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def resolve_next_assignee(db: Session) -> User:
    """Pick the user who should receive the next auto-assigned enquiry.

    Read-only: the caller persists ``assigned_to_id`` with its own write.
    Raises NoEligibleAssignees when no active admin/staff user exists.
    """
    users = get_eligible_users(db)
    if not users:
        logger.warning("Auto-assignment requested but no active staff/admin users exist")
        raise NoEligibleAssignees()

    last_enquiry = get_last_assigned_enquiry(db, [u.id for u in users])
    last_assignee_id = last_enquiry.assigned_to_id if last_enquiry is not None else None

    next_user = next_in_ring(users, last_assignee_id)
    logger.info(
        "Auto-assigning enquiry to user %s (ring size %d, previous assignee %s)",
        next_user.id,
        len(users),
        last_assignee_id,
    )
    return next_user
