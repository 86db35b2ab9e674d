"""Pytest fixtures for API testing."""
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentalhub.main import app
from rentalhub.core.database import get_db
from rentalhub.core.roles import RoleCode
from rentalhub.core.security import get_password_hash, create_access_token
from rentalhub.core.curfew_workflow import Actor
from rentalhub.models import Base, Room, Tenant, User

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def room(db_session):
    room = Room(room_number=101, floor=1)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def other_room(db_session):
    room = Room(room_number=202, floor=2)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def admin_user(db_session):
    """Create an admin user."""
    user = User(
        email="admin@example.com",
        full_name="Admin User",
        password_hash=get_password_hash("admin123"),
        role=RoleCode.ADMIN.value,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def second_admin(db_session):
    user = User(
        email="admin2@example.com",
        full_name="Second Admin",
        password_hash=get_password_hash("admin123"),
        role=RoleCode.ADMIN.value,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session):
    """Create a regular user (not yet linked to a tenant)."""
    user = User(
        email="test@example.com",
        full_name="Test User",
        password_hash=get_password_hash("testpass123"),
        role=RoleCode.USER.value,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def tenant(db_session, room, test_user):
    """Tenant in room 101 linked to test_user."""
    tenant = Tenant(name="Alice", room_id=room.room_id, user_id=test_user.user_id)
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def roommate(db_session, room):
    """Second tenant in room 101 without a login account."""
    tenant = Tenant(name="Bob", room_id=room.room_id)
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def outsider(db_session, other_room):
    """Tenant in a different room."""
    tenant = Tenant(name="Carol", room_id=other_room.room_id)
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def admin_actor(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture
def user_actor(test_user):
    return Actor.from_user(test_user)


@pytest.fixture
def auth_headers(test_user):
    """Get authorization headers for test user."""
    token = create_access_token(test_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    """Get authorization headers for admin user."""
    token = create_access_token(admin_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="session")
def postgres_engine():
    """Engine for a real Postgres database; tests using it are skipped without TEST_POSTGRES_URL."""
    url = os.getenv("TEST_POSTGRES_URL")
    if not url:
        pytest.skip("TEST_POSTGRES_URL not set")
    pg_engine = create_engine(url)
    yield pg_engine
    pg_engine.dispose()


@pytest.fixture
def postgres_db_session(postgres_engine):
    Base.metadata.create_all(bind=postgres_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=postgres_engine)
    db = SessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=postgres_engine)
