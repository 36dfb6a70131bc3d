"""Pytest fixtures for the submission intake tests.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite database
- A local attachment store in a per-test temporary directory
- A FastAPI TestClient with the application lifespan running

Usage:
    def test_submit(client, db_session):
        response = client.post("/api/submit", json={...})
        assert response.status_code == 201
"""

import os
import sys
import tempfile
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["HASH_SALT"] = "test-hash-salt"
os.environ["RATE_LIMIT_MAX"] = "10"
os.environ["RATE_LIMIT_WINDOW_SECONDS"] = "60"
os.environ["RATE_LIMIT_BYPASS"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="portal-uploads-")
for _var in ("REDIS_URL", "S3_BUCKET_NAME", "RECAPTCHA_SITE_KEY", "RECAPTCHA_SECRET_KEY"):
    os.environ.pop(_var, None)

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from citizen_portal.database import SessionLocal, engine, get_db
from citizen_portal.dependencies import get_file_storage
from citizen_portal.infrastructure.storage import LocalFileStorageAdapter
from citizen_portal.models import Base

TEST_HASH_SALT = os.environ["HASH_SALT"]

VALID_PHONE = "01712345678"
VALID_MESSAGE = "The drainage on the main road has been blocked for two weeks."


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def local_storage(tmp_path: Path) -> LocalFileStorageAdapter:
    """Local attachment store rooted in the test's temporary directory."""
    return LocalFileStorageAdapter(str(tmp_path / "uploads"), "/uploads/submissions")


@pytest.fixture(scope="function")
def app(db_session: Session, local_storage: LocalFileStorageAdapter):
    """The application with database and storage dependencies overridden."""
    from citizen_portal.main import app as application

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_file_storage] = lambda: local_storage

    yield application

    application.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan running.

    Each test gets freshly built pipeline components, so rate limit buckets
    never leak between tests.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def valid_payload() -> dict:
    return {
        "name": "Rahim Uddin",
        "phone": VALID_PHONE,
        "email": "rahim@example.com",
        "district": "Dhaka",
        "seatName": "Dhaka-10",
        "shareName": True,
        "message": VALID_MESSAGE,
    }
