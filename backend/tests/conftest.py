"""
Pytest configuration for the Credit Ingest test suite.

Every test gets a fresh in-memory SQLite database; the FastAPI app's
get_db dependency is overridden to use it.
"""
import os
import sys
from uuid import uuid4

# Must be set before credit_ingest.database creates its engine
os.environ["DATABASE_URL"] = "sqlite://"

# Add backend/ to path so tests can import project modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from credit_ingest.database import Base, get_db
from credit_ingest.models import db_models  # noqa: F401
from credit_ingest.models.db_models import UserDB
from credit_ingest.auth import hash_password, create_access_token


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    from credit_ingest.main import app

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db, role: str) -> UserDB:
    user = UserDB(
        id=str(uuid4()),
        email=f"{role}-{uuid4().hex[:8]}@example.com",
        username=f"{role}-{uuid4().hex[:8]}",
        password_hash=hash_password("password123"),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "user")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin")


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(admin.id, admin.email, admin.role)}"}
