"""
Pytest configuration and fixtures.
"""

import os

# Settings are read once; point them at throwaway resources before any candor import.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("CANDOR_PUBLIC_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from candor.core.security import create_access_token  # noqa: E402
from candor.models.base import Base  # noqa: E402
from candor.models.reference import IssueCategory  # noqa: E402
from candor.schemas import SignUpMetadata, SignUpPayload  # noqa: E402
from candor.services.db import build_engine, get_db  # noqa: E402
from candor.services.profiles import ProfileService  # noqa: E402
from candor.services.seed import seed_reference_data  # noqa: E402

engine = build_engine("sqlite:///:memory:")
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory database with reference data for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    seed_reference_data(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with the database dependency bound to ``db_session``."""
    from candor.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def maintenance(db_session) -> IssueCategory:
    category = IssueCategory(name="Maintenance", description="Building and equipment repairs", color="#0ea5e9")
    db_session.add(category)
    db_session.commit()
    return category


def _sign_up(db_session, email: str, role: str):
    payload = SignUpPayload(
        email=email,
        password="password123",
        metadata=SignUpMetadata(first_name="Test", last_name=role.title(), role=role),
    )
    profile = ProfileService(session=db_session).sign_up(payload)
    db_session.commit()
    return profile


@pytest.fixture
def employee(db_session):
    return _sign_up(db_session, "employee@example.com", "employee")


@pytest.fixture
def hr_user(db_session):
    return _sign_up(db_session, "hr@example.com", "hr")


def auth_headers(profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(profile.user_id)}"}


@pytest.fixture
def employee_headers(employee) -> dict[str, str]:
    return auth_headers(employee)


@pytest.fixture
def hr_headers(hr_user) -> dict[str, str]:
    return auth_headers(hr_user)
