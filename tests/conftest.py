import os

# point the application engine at a throwaway database before the package is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import cloudblitz_svc.utils.security as security
from cloudblitz_svc.app import app
from cloudblitz_svc.models import Base, Enquiry, User, UserRole, get_db

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0)


@pytest.fixture(autouse=True)
def use_test_pwd_context(monkeypatch):
    # Use a pure-python reliable scheme and deterministic signing in tests
    ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
    monkeypatch.setattr(security, "pwd_context", ctx)
    monkeypatch.setattr(security.config, "SECRET_KEY", "test-secret")
    monkeypatch.setattr(security.config, "REFRESH_SECRET_KEY", "test-refresh-secret")
    monkeypatch.setattr(security.config, "ALGORITHM", "HS256")
    yield


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory persisting a user; ``day`` offsets created_at to fix ring order."""

    def _make_user(
        email: str,
        password: str = "pw123456",
        role: UserRole = UserRole.Staff,
        is_active: bool = True,
        day: int = None,
        name: str = "Tester",
    ) -> User:
        user = User(
            email=email,
            name=name,
            role=role,
            is_active=is_active,
            hashed_password=security.get_password_hash(password),
        )
        if day is not None:
            user.created_at = BASE_TIME + timedelta(days=day)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_enquiry(db_session):
    def _make_enquiry(
        assigned_to: User = None,
        created_by: User = None,
        minutes: int = None,
        **fields,
    ) -> Enquiry:
        values = {
            "customer_name": "Customer",
            "email": "customer@example.com",
            "phone": "+15551234567",
            "message": "I would like to know more about pricing.",
        }
        values.update(fields)
        enquiry = Enquiry(
            assigned_to_id=assigned_to.id if assigned_to is not None else None,
            created_by_id=created_by.id if created_by is not None else None,
            **values,
        )
        if minutes is not None:
            enquiry.created_at = BASE_TIME + timedelta(minutes=minutes)
        db_session.add(enquiry)
        db_session.commit()
        db_session.refresh(enquiry)
        return enquiry

    return _make_enquiry


@pytest.fixture
def auth_header(client):
    def _auth_header(email: str, password: str = "pw123456") -> dict:
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _auth_header
