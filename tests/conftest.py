"""
Pytest fixtures for the Kasmoni backend test suite.

Provides:
- An in-memory SQLite database, recreated for every test
- A session shared by the test and the API under test
- A recording notifier in place of the Brevo e-mail sender
- Bearer tokens for staff, administrator and member principals
- Builders for members, groups, slots and payments
"""
import os

# Must be set before the application modules build their engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import SessionLocal, engine, get_session
from main import app
from models import Base, Group, GroupMember, Member, Payment
from services.notification_service import get_notifier
from services.periods import compute_end_month
from utils.auth import Principal, create_access_token


class RecordingNotifier:
    """Keeps notifications in memory instead of sending them."""

    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, notifier):
    def override_session():
        yield db

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Principals and tokens
# ---------------------------------------------------------------------------

@pytest.fixture
def staff():
    return Principal(id=1, username="clerk", role="normal_user")


@pytest.fixture
def admin():
    return Principal(id=2, username="admin", role="administrator")


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers(staff):
    return auth_header(create_access_token(staff.id, staff.username, role=staff.role))


@pytest.fixture
def admin_headers(admin):
    return auth_header(create_access_token(admin.id, admin.username, role=admin.role))


def member_headers(member_id):
    return auth_header(create_access_token(
        100 + member_id, f"member{member_id}", user_type="member", member_id=member_id
    ))


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_member(db, first_name="Ravi", last_name="Ramdin", national_id=None, email=None):
    member = Member(
        first_name=first_name,
        last_name=last_name,
        national_id=national_id or f"ID-{first_name}-{last_name}",
        phone_number="+597 8000000",
        email=email,
    )
    db.add(member)
    db.commit()
    return member


def make_group(db, name="Kasmoni A", monthly_amount="500.00", duration=6, start_month="2025-01", max_members=None):
    group = Group(
        name=name,
        monthly_amount=Decimal(monthly_amount),
        max_members=max_members if max_members is not None else duration,
        duration=duration,
        start_month=start_month,
        end_month=compute_end_month(start_month, duration),
    )
    db.add(group)
    db.commit()
    return group


def assign(db, group, member, receive_month):
    slot = GroupMember(group_id=group.id, member_id=member.id, receive_month=receive_month)
    db.add(slot)
    db.commit()
    return slot


def make_payment(db, group, member, slot, payment_month="2025-03", status="not_paid",
                 amount="500.00", payment_date=date(2025, 3, 5), payment_type="cash", receiver_bank=None):
    payment = Payment(
        group_id=group.id,
        member_id=member.id,
        amount=Decimal(amount),
        payment_date=payment_date,
        payment_month=payment_month,
        slot=slot,
        payment_type=payment_type,
        receiver_bank=receiver_bank,
        status=status,
    )
    db.add(payment)
    db.commit()
    return payment
