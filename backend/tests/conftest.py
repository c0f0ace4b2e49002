# backend/tests/conftest.py
"""
Pytest configuration for the MatePeak backend.

Tests run against an in-memory SQLite database shared through a StaticPool,
so the TestClient and the fixtures see the same rows. Email goes to the
console provider and embeddings come from the deterministic mock provider.
"""

import os

# CRITICAL: Set test configuration BEFORE any app imports!
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["EMBEDDING_PROVIDER"] = "mock"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("RESEND_API_KEY", None)

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth import create_access_token
from app.core.enums import RoleName
from app.api.dependencies import get_db as api_get_db
from app.database import Base, get_db
from app.main import fastapi_app as app
from app.models.mentor import MentorProfile
from app.models.user import User
from app.principal import Principal
from app.services.search.circuit_breaker import CircuitBreaker
from app.services.search.config import SearchConfig
from app.services.search.embedding_provider import MockEmbeddingProvider

TEST_EMBEDDING_DIMENSIONS = 16

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[api_get_db] = override_get_db
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# Users
# ============================================================================


def _create_user(db: Session, email: str, full_name: str, role: RoleName) -> User:
    user = User(email=email, full_name=full_name, role=role.value, timezone="Asia/Kolkata")
    db.add(user)
    db.flush()
    return user


def _create_mentor(
    db: Session,
    email: str,
    full_name: str,
    username: str,
    bio: str,
    pricing: str = "500.00",
) -> User:
    user = _create_user(db, email, full_name, RoleName.MENTOR)
    db.add(
        MentorProfile(
            id=user.id,
            full_name=full_name,
            username=username,
            bio=bio,
            category="Career",
            pricing=Decimal(pricing),
        )
    )
    db.commit()
    return user


@pytest.fixture
def test_student(db: Session) -> User:
    user = _create_user(db, "student@example.com", "Asha Student", RoleName.STUDENT)
    db.commit()
    return user


@pytest.fixture
def other_student(db: Session) -> User:
    user = _create_user(db, "other.student@example.com", "Ravi Student", RoleName.STUDENT)
    db.commit()
    return user


@pytest.fixture
def test_mentor(db: Session) -> User:
    return _create_mentor(
        db,
        "mentor@example.com",
        "Meera Mentor",
        "meera",
        "Senior Python engineer helping with backend interviews",
    )


@pytest.fixture
def other_mentor(db: Session) -> User:
    return _create_mentor(
        db,
        "other.mentor@example.com",
        "Karan Mentor",
        "karan",
        "Product designer and UX portfolio reviews",
        pricing="750.00",
    )


@pytest.fixture
def test_admin(db: Session) -> User:
    user = _create_user(db, "admin@example.com", "Ada Admin", RoleName.ADMIN)
    db.commit()
    return user


# ============================================================================
# Principals and auth headers
# ============================================================================


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=RoleName(user.role), email=user.email)


def auth_headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def student_principal(test_student: User) -> Principal:
    return principal_for(test_student)


@pytest.fixture
def mentor_principal(test_mentor: User) -> Principal:
    return principal_for(test_mentor)


@pytest.fixture
def admin_principal(test_admin: User) -> Principal:
    return principal_for(test_admin)


@pytest.fixture
def auth_headers_student(test_student: User) -> dict:
    return auth_headers_for(test_student)


@pytest.fixture
def auth_headers_mentor(test_mentor: User) -> dict:
    return auth_headers_for(test_mentor)


@pytest.fixture
def auth_headers_admin(test_admin: User) -> dict:
    return auth_headers_for(test_admin)


# ============================================================================
# Time and search helpers
# ============================================================================


@pytest.fixture
def future_session_time() -> datetime:
    """Three days out at 10:00 UTC, well clear of the reminder windows."""
    base = datetime.now(timezone.utc) + timedelta(days=3)
    return base.replace(hour=10, minute=0, second=0, microsecond=0)


@pytest.fixture
def search_config() -> SearchConfig:
    return SearchConfig(
        embedding_provider="mock",
        embedding_dimensions=TEST_EMBEDDING_DIMENSIONS,
        embedding_timeout_s=0.2,
        match_threshold=0.7,
        default_limit=10,
        max_limit=50,
    )


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider(dimensions=TEST_EMBEDDING_DIMENSIONS)


@pytest.fixture
def fresh_circuit() -> CircuitBreaker:
    """Isolated breaker so failures in one test never open the shared circuit."""
    return CircuitBreaker(name="test-embeddings")


@pytest.fixture
def other_student_principal(other_student: User) -> Principal:
    return principal_for(other_student)


@pytest.fixture
def other_mentor_principal(other_mentor: User) -> Principal:
    return principal_for(other_mentor)
