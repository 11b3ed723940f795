from types import SimpleNamespace

import pytest

from cloudblitz_svc.models import UserRole
from cloudblitz_svc.schemas.enquiry import EnquiryCreate
from cloudblitz_svc.services.assignment import (
    get_eligible_users,
    get_last_assigned_enquiry,
    next_in_ring,
    resolve_next_assignee,
)
from cloudblitz_svc.services.enquiry_service import create_enquiry
from cloudblitz_svc.services.errors import NoEligibleAssignees


def ring(*ids):
    return [SimpleNamespace(id=i) for i in ids]


def auto_payload() -> EnquiryCreate:
    return EnquiryCreate(
        customer_name="Dana",
        email="dana@example.com",
        phone="+15550001111",
        message="Please call me back about the offer.",
        auto_assign=True,
    )


# pure ring step

def test_next_in_ring_empty_raises():
    with pytest.raises(NoEligibleAssignees) as excinfo:
        next_in_ring([], None)
    assert excinfo.value.message == "No active staff/admin users available for assignment"


def test_next_in_ring_without_history_returns_ring_start():
    assert next_in_ring(ring(1, 2, 3), None).id == 1


def test_next_in_ring_continues_after_last_assignee():
    users = ring(10, 20, 30)
    assert next_in_ring(users, 20).id == 30


def test_next_in_ring_wraps_to_start():
    users = ring(10, 20, 30)
    assert next_in_ring(users, 30).id == 10


def test_next_in_ring_unknown_last_assignee_restarts_ring():
    users = ring(10, 20, 30)
    assert next_in_ring(users, 99).id == 10


def test_next_in_ring_single_member_always_selected():
    users = ring(5)
    assert next_in_ring(users, 5).id == 5


# database backed resolution

def test_no_eligible_users_raises(db_session, make_user):
    make_user("plain@example.com", role=UserRole.User)
    make_user("gone@example.com", role=UserRole.Staff, is_active=False)

    with pytest.raises(NoEligibleAssignees):
        resolve_next_assignee(db_session)


def test_eligible_users_sorted_by_account_age(db_session, make_user):
    newer = make_user("newer@example.com", day=5)
    older = make_user("older@example.com", role=UserRole.Admin, day=1)
    make_user("inactive@example.com", is_active=False, day=0)
    make_user("customer@example.com", role=UserRole.User, day=0)

    users = get_eligible_users(db_session)
    assert [u.id for u in users] == [older.id, newer.id]


def test_last_assigned_enquiry_ignores_assignees_outside_ring(db_session, make_user, make_enquiry):
    s1 = make_user("s1@example.com", day=1)
    outsider = make_user("outsider@example.com", role=UserRole.User, day=2)
    make_enquiry(assigned_to=s1, minutes=1)
    make_enquiry(assigned_to=outsider, minutes=2)

    last = get_last_assigned_enquiry(db_session, [s1.id])
    assert last.assigned_to_id == s1.id


def test_rotation_continues_from_last_assignment(db_session, make_user, make_enquiry):
    a = make_user("a@example.com", day=1)
    b = make_user("b@example.com", day=2)
    c = make_user("c@example.com", day=3)

    make_enquiry(assigned_to=b, minutes=1)
    assert resolve_next_assignee(db_session).id == c.id

    make_enquiry(assigned_to=c, minutes=2)
    assert resolve_next_assignee(db_session).id == a.id


def test_stale_assignee_falls_back_to_ring_start(db_session, make_user, make_enquiry):
    a = make_user("a@example.com", day=1)
    b = make_user("b@example.com", day=2)
    make_enquiry(assigned_to=b, minutes=1)

    b.is_active = False
    db_session.commit()

    # last enquiry among the current ring is none, so the ring starts over
    assert resolve_next_assignee(db_session).id == a.id


def test_soft_deleted_enquiry_still_counts_as_rotation_step(db_session, make_user, make_enquiry):
    from datetime import datetime

    a = make_user("a@example.com", day=1)
    b = make_user("b@example.com", day=2)
    make_enquiry(assigned_to=a, minutes=1, deleted_at=datetime(2024, 2, 1))

    assert resolve_next_assignee(db_session).id == b.id


def test_consecutive_auto_assignments_visit_each_user_once(db_session, make_user):
    s1 = make_user("s1@example.com", day=1)
    s2 = make_user("s2@example.com", day=2)
    s3 = make_user("s3@example.com", day=3)

    assigned = [create_enquiry(db_session, auto_payload()).assigned_to_id for _ in range(3)]
    assert assigned == [s1.id, s2.id, s3.id]


def test_deactivating_middle_user_reshapes_ring(db_session, make_user):
    s1 = make_user("s1@example.com", day=1)
    s2 = make_user("s2@example.com", day=2)
    s3 = make_user("s3@example.com", day=3)

    for _ in range(3):
        create_enquiry(db_session, auto_payload())

    s2.is_active = False
    db_session.commit()

    # ring is now [s1, s3]; last assignee s3 sits at index 1 so the step wraps
    assert create_enquiry(db_session, auto_payload()).assigned_to_id == s1.id
    assert create_enquiry(db_session, auto_payload()).assigned_to_id == s3.id


def test_resolver_does_not_write(db_session, make_user):
    from cloudblitz_svc.models import Enquiry

    make_user("s1@example.com", day=1)
    resolve_next_assignee(db_session)

    assert db_session.query(Enquiry).count() == 0
