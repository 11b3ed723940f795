from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from cloudblitz_svc import config
from cloudblitz_svc.models import User, Enquiry
from cloudblitz_svc.models.enums import EnquiryStatus, EnquiryPriority
from cloudblitz_svc.schemas.enquiry import EnquiryCreate, EnquiryUpdate
from cloudblitz_svc.services.assignment import resolve_next_assignee
from cloudblitz_svc.services.errors import InvalidIdentifier, RecordNotFound, parse_id
from cloudblitz_svc.services.permissions import (
    EnquiryAction,
    authorize_enquiry_access,
    enforce,
    filter_enquiry_update,
    is_admin,
)

logger = logging.getLogger(__name__)


def _commit(db: Session, instance) -> None:
    try:
        db.commit()
        db.refresh(instance)
    except Exception as e:
        logger.error(e, exc_info=True)
        try:
            db.rollback()
        except Exception as ex:
            logger.error(ex, exc_info=True)
        # re-raise to let callers translate to HTTP responses
        raise


def get_live_enquiry(db: Session, enquiry_id: int) -> Enquiry:
    """Return a non-deleted enquiry or raise RecordNotFound."""
    stmt = select(Enquiry).where(Enquiry.id == enquiry_id, Enquiry.deleted_at.is_(None))
    enquiry = db.execute(stmt).scalar_one_or_none()
    if enquiry is None:
        raise RecordNotFound("Enquiry not found")
    return enquiry


def create_enquiry(db: Session, data: EnquiryCreate, actor: Optional[User] = None) -> Enquiry:
    """Create and persist a new Enquiry, optionally auto-assigned.

    Anyone may create; ``created_by`` is set when the caller is authenticated.
    When ``auto_assign`` is set the round-robin resolver picks the assignee and
    nothing is written if it fails.
    """
    enforce(authorize_enquiry_access(actor, EnquiryAction.CREATE))

    assigned_to_id: Optional[int] = None
    if data.auto_assign:
        assigned_to_id = resolve_next_assignee(db).id

    enquiry = Enquiry(
        customer_name=data.customer_name,
        email=str(data.email),
        phone=data.phone,
        message=data.message,
        priority=data.priority,
        status=EnquiryStatus.New,
        assigned_to_id=assigned_to_id,
        created_by_id=actor.id if actor is not None else None,
        notes=[],
    )
    db.add(enquiry)
    _commit(db, enquiry)
    logger.info("Created enquiry %s (assigned to %s)", enquiry.id, enquiry.assigned_to_id)
    return enquiry


def list_enquiries(
    db: Session,
    actor: User,
    status: Optional[EnquiryStatus] = None,
    priority: Optional[EnquiryPriority] = None,
    assigned_to: Optional[int] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> Tuple[List[Enquiry], int]:
    """Return one page of live enquiries visible to ``actor`` plus the total.

    Non-admin callers only see enquiries they created or are assigned to.
    """
    conditions = [Enquiry.deleted_at.is_(None)]
    if status is not None:
        conditions.append(Enquiry.status == status)
    if priority is not None:
        conditions.append(Enquiry.priority == priority)
    if assigned_to is not None:
        conditions.append(Enquiry.assigned_to_id == assigned_to)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                Enquiry.customer_name.ilike(pattern),
                Enquiry.email.ilike(pattern),
                Enquiry.message.ilike(pattern),
            )
        )
    if start_date is not None:
        conditions.append(Enquiry.created_at >= _naive_utc(start_date))
    if end_date is not None:
        conditions.append(Enquiry.created_at <= _naive_utc(end_date))
    if not is_admin(actor):
        conditions.append(or_(Enquiry.assigned_to_id == actor.id, Enquiry.created_by_id == actor.id))

    total = db.execute(select(func.count(Enquiry.id)).where(*conditions)).scalar_one()
    stmt = (
        select(Enquiry)
        .where(*conditions)
        .order_by(Enquiry.created_at.desc(), Enquiry.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all()), int(total)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_enquiry(db: Session, actor: User, raw_id) -> Enquiry:
    enquiry_id = parse_id(raw_id, "enquiry")
    enquiry = get_live_enquiry(db, enquiry_id)
    enforce(authorize_enquiry_access(actor, EnquiryAction.READ, enquiry))
    return enquiry


def update_enquiry(db: Session, actor: User, raw_id, payload: EnquiryUpdate) -> Enquiry:
    """Apply a partial update.

    Restricted fields (status, assignment) sent by a plain user are dropped
    silently; the rest of the update proceeds.
    """
    enquiry_id = parse_id(raw_id, "enquiry")
    enquiry = get_live_enquiry(db, enquiry_id)
    enforce(authorize_enquiry_access(actor, EnquiryAction.UPDATE, enquiry))

    update_data = filter_enquiry_update(actor, payload.model_dump(exclude_unset=True))
    auto_assign = bool(update_data.pop("auto_assign", False))

    if auto_assign:
        update_data["assigned_to"] = resolve_next_assignee(db).id
    elif update_data.get("assigned_to") is not None:
        assignee = db.get(User, update_data["assigned_to"])
        if assignee is None:
            raise InvalidIdentifier("Assigned user not found")

    values = {}
    for key, value in update_data.items():
        if key == "assigned_to":
            values["assigned_to_id"] = value
        elif key in ("customer_name", "phone", "message", "status", "priority"):
            # explicit null on a required column is ignored rather than stored
            if value is not None:
                values[key] = value
        elif key == "email":
            if value is not None:
                values[key] = str(value)
        elif key == "notes":
            values[key] = list(value or [])

    if not values:
        return enquiry

    for key, value in values.items():
        setattr(enquiry, key, value)
    _commit(db, enquiry)
    logger.info("Updated enquiry %s fields %s", enquiry.id, sorted(values))
    return enquiry


def assign_enquiry(db: Session, actor: User, raw_id, raw_user_id) -> Enquiry:
    """Manually assign an enquiry to a user (admin/staff only)."""
    try:
        enquiry_id = parse_id(raw_id)
        user_id = parse_id(raw_user_id)
    except InvalidIdentifier:
        raise InvalidIdentifier("Invalid enquiry or user ID") from None

    enforce(authorize_enquiry_access(actor, EnquiryAction.UPDATE_STATUS_OR_ASSIGNMENT))
    enquiry = get_live_enquiry(db, enquiry_id)

    if db.get(User, user_id) is None:
        raise InvalidIdentifier("Assigned user not found")

    enquiry.assigned_to_id = user_id
    _commit(db, enquiry)
    logger.info("Enquiry %s manually assigned to user %s by %s", enquiry.id, user_id, actor.id)
    return enquiry


def delete_enquiry(db: Session, actor: User, raw_id) -> None:
    """Soft delete: stamp ``deleted_at``; the row stays in storage."""
    enquiry_id = parse_id(raw_id, "enquiry")
    enquiry = get_live_enquiry(db, enquiry_id)
    enforce(authorize_enquiry_access(actor, EnquiryAction.DELETE, enquiry))

    enquiry.deleted_at = datetime.now(timezone.utc).replace(tzinfo=None)
    _commit(db, enquiry)
    logger.info("Soft-deleted enquiry %s", enquiry.id)
