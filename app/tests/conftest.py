"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time; these must be set before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-" + "a" * 32)
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-" + "b" * 32)
os.environ.setdefault("APP_ENV", "local")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.init_db import init_db
from app.core.deps import get_db
from app.core.security import hash_password
from app.models import Department, Role, User  # noqa: F401  (registers all models)
from app.tests.utils import DEFAULT_PASSWORD


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db: Session):
    """Permission catalogue, system roles and default departments"""
    init_db(db, create_admin=False)
    return {role.slug: role for role in db.query(Role).all()}


@pytest.fixture
def make_user(db: Session, seeded):
    """Factory creating a user with the given role slug"""
    counter = {"n": 0}

    def _make(role_slug="employee", email=None, password=DEFAULT_PASSWORD, is_active=True, department=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            password_hash=hash_password(password),
            first_name="Test",
            last_name=f"User{n}",
            employee_code=f"EMP{n:03d}",
            joining_date=date.today(),
            is_active=is_active,
            role_id=seeded[role_slug].id,
            department_id=department.id if department else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("super-admin", email="admin@example.com")


@pytest.fixture
def hr_user(make_user):
    return make_user("hr-manager", email="hr@example.com")


@pytest.fixture
def manager_user(make_user):
    return make_user("manager", email="manager@example.com")


@pytest.fixture
def employee_user(make_user):
    return make_user("employee", email="employee@example.com")


