"""
Pytest configuration and shared fixtures for the Job Tracker API tests.
"""
import os

# Settings are cached on first use, so the test environment must be in place
# before anything from the application is imported.
os.environ.update({
    "TESTING": "true",
    "JWT_SECRET": "test-secret-key-for-jwt-tokens-12345678901234567890",
    "BCRYPT_ROUNDS": "4",
    "LOG_LEVEL": "DEBUG",
})

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from job_tracker_app.backend.main import app
from job_tracker_app.backend.config.settings import get_settings
from job_tracker_app.backend.models.db.database import Base, get_db, enable_sqlite_foreign_keys
from job_tracker_app.backend.models.db.crud import create_user
from job_tracker_app.backend.security import create_access_token, get_password_hash
from job_tracker_app.backend.services.rate_limiter import InMemoryRateLimitStore, get_rate_limit_store
from job_tracker_app.backend import schemas


# Test Database Setup
@pytest.fixture(scope="function")
def test_db_engine():
    """A fresh in-memory database per test, shared across threads by StaticPool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def rate_limit_store():
    return InMemoryRateLimitStore()


@pytest.fixture(scope="function")
def upload_dir(tmp_path, monkeypatch):
    """Point resume storage at a per-test directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(get_settings(), "upload_directory", str(directory))
    return directory


@pytest.fixture(scope="function")
def test_client(test_db_session, rate_limit_store, upload_dir):
    """Create a test client with overridden database and rate limit dependencies."""
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limit_store] = lambda: rate_limit_store
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# User Fixtures
@pytest.fixture
def test_user_data():
    """Sample user data for testing."""
    return {
        "email": "test@example.com",
        "password": "Str0ng!Passw0rd",
        "first_name": "Test",
        "last_name": "User",
    }


@pytest.fixture
def other_user_data():
    return {
        "email": "other@example.com",
        "password": "An0ther!Secret",
        "first_name": "Other",
        "last_name": "Person",
    }


@pytest.fixture
def test_user(test_db_session, test_user_data):
    """Create a test user directly in the database."""
    hashed_password = get_password_hash(test_user_data["password"])
    return create_user(test_db_session, schemas.UserCreate(**test_user_data), hashed_password)


@pytest.fixture
def other_user(test_db_session, other_user_data):
    hashed_password = get_password_hash(other_user_data["password"])
    return create_user(test_db_session, schemas.UserCreate(**other_user_data), hashed_password)


@pytest.fixture
def auth_headers(test_user):
    """Authentication headers for the test user."""
    return {"Authorization": f"Bearer {create_access_token(test_user)}"}


@pytest.fixture
def other_auth_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token(other_user)}"}


# Job and Resume Test Data
@pytest.fixture
def sample_job_data():
    """Sample job entry."""
    return {
        "company": "Tech Solutions Inc",
        "position": "Senior Frontend Developer",
        "status": "Applied",
        "location": "San Francisco, CA",
        "requirements": "Looking for a developer skilled in JavaScript, React, and SQL, strong leadership a plus",
        "description": "Build React interfaces backed by a PostgreSQL database.",
    }


@pytest.fixture
def sample_resume_text():
    return (
        "Jane Doe\n"
        "Senior frontend engineer with JavaScript, React and Node.js experience.\n"
        "Strong leadership and communication skills. Worked with PostgreSQL and Docker."
    )
