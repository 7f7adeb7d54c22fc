import os
import tempfile
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

# CRITICAL: Set test configuration BEFORE importing any havenstay modules
# so havenstay.database never connects to a real database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["PEXELS_API_KEY"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="havenstay-uploads-")

from havenstay.main import app
from havenstay.database import Base
from havenstay.config import settings
from havenstay.models.user import User, UserRole
from havenstay.models.property import Property
from havenstay.services.auth_service import create_access_token, get_password_hash
import havenstay.database as db_module
import havenstay.dependencies as dependencies_module
import havenstay.Middleware.audit_middleware as audit_mw

TEST_PASSWORD = "secret-pass"


@pytest.fixture(scope="session")
def test_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # share same in-memory DB across connections
    )
    return engine


@pytest.fixture()
def db_session(test_engine):
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )
    # Fresh schema per test to avoid cross-test data (e.g., unique email)
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def patch_sessionlocal(monkeypatch, test_engine, db_session):
    monkeypatch.setattr(db_module, "engine", test_engine, raising=False)

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )
    monkeypatch.setattr(db_module, "SessionLocal", TestingSessionLocal, raising=True)
    # get_db looks SessionLocal up in its own module at call time
    monkeypatch.setattr(
        dependencies_module, "SessionLocal", TestingSessionLocal, raising=True
    )
    monkeypatch.setattr(audit_mw, "SessionLocal", TestingSessionLocal, raising=True)

    # Disable rate limiter globally for tests
    if hasattr(app.state, "limiter"):
        setattr(app.state.limiter, "enabled", False)
    yield


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role=UserRole.TRAVELER, name=None, email=None, **fields):
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['n']}",
            email=email or f"{role.value}{counter['n']}@example.com",
            password_hash=get_password_hash(TEST_PASSWORD),
            role=role,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_property(db_session):
    def _make_property(owner, **fields):
        data = {
            "property_name": "Sea View Flat",
            "property_type": "Apartment",
            "location": "Lisbon, Portugal",
            "city": "Lisbon",
            "country": "Portugal",
            "price_per_night": 100.0,
            "bedrooms": 2,
            "bathrooms": 1,
            "max_guests": 4,
            "photos": '["/uploads/properties/seed.jpg"]',
        }
        data.update(fields)
        prop = Property(owner_id=owner.id, **data)
        db_session.add(prop)
        db_session.commit()
        db_session.refresh(prop)
        return prop

    return _make_property


def session_token(user) -> str:
    return create_access_token(
        user.email, user.id, user.role.value, timedelta(minutes=30)
    )


@pytest.fixture()
def login_as(client):
    """Put ``user``'s session cookie on the test client."""

    def _login_as(user):
        client.cookies.clear()
        client.cookies.set(settings.SESSION_COOKIE_NAME, session_token(user))
        return client

    return _login_as
