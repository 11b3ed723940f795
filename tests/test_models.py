import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from cloudblitz_svc.models import (
    User,
    Enquiry,
    UserRole,
    EnquiryStatus,
    EnquiryPriority,
)


def test_create_and_retrieve_user(db_session):
    user = User(email="Alice@Example.com", hashed_password="hash", name="Alice", role=UserRole.Admin)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    stmt = select(User).where(User.email == "alice@example.com")
    result = db_session.execute(stmt).scalar_one()
    assert result.name == "Alice"
    assert result.role == UserRole.Admin
    assert result.is_active is True
    assert result.has_seen_tutorial is False
    assert result.created_at is not None


def test_user_role_defaults_to_user(db_session):
    user = User(email="plain@example.com", hashed_password="hash", name="Plain")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    assert user.role == UserRole.User


def test_enquiry_defaults(db_session):
    enquiry = Enquiry(
        customer_name="Carol",
        email="carol@example.com",
        phone="+15550000000",
        message="Do you ship internationally?",
    )
    db_session.add(enquiry)
    db_session.commit()
    db_session.refresh(enquiry)

    assert enquiry.status == EnquiryStatus.New
    assert enquiry.priority == EnquiryPriority.Medium
    assert enquiry.notes == []
    assert enquiry.deleted_at is None
    assert enquiry.is_deleted is False


def test_enquiry_references_users(db_session):
    staff = User(email="bob@example.com", hashed_password="h", name="Bob", role=UserRole.Staff)
    author = User(email="dan@example.com", hashed_password="h", name="Dan", role=UserRole.User)
    db_session.add_all([staff, author])
    db_session.commit()

    enquiry = Enquiry(
        customer_name="Cust",
        email="cust@example.com",
        phone="15551112222",
        message="Please help with my order.",
        assigned_to=staff,
        created_by=author,
    )
    db_session.add(enquiry)
    db_session.commit()
    db_session.refresh(enquiry)

    fetched = db_session.execute(select(Enquiry).where(Enquiry.id == enquiry.id)).scalar_one()
    assert fetched.assigned_to.email == "bob@example.com"
    assert fetched.created_by.email == "dan@example.com"
    assert [e.id for e in staff.assigned_enquiries] == [enquiry.id]


def test_enquiry_status_values_stored_as_wire_strings(db_session):
    enquiry = Enquiry(
        customer_name="Cust",
        email="cust@example.com",
        phone="15551112222",
        message="Status should persist as text.",
        status=EnquiryStatus.InProgress,
    )
    db_session.add(enquiry)
    db_session.commit()

    raw = db_session.connection().exec_driver_sql("SELECT status FROM enquiries").scalar_one()
    assert raw == "in-progress"


def test_user_email_unique_case_insensitive(db_session):
    user1 = User(email="unique@example.com", hashed_password="p1", name="U1", role=UserRole.Staff)
    db_session.add(user1)
    db_session.commit()

    user2 = User(email="UNIQUE@example.com", hashed_password="p2", name="U2", role=UserRole.Admin)
    db_session.add(user2)
    with pytest.raises(IntegrityError):
        db_session.commit()
