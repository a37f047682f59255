"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.test_constants import (
    TEST_APP_URL,
    TEST_EMAIL,
    TEST_PASSWORD,
    TEST_SECRET_KEY,
    TEST_UPSTREAM_URL,
)

# Force an in-memory test DB; don't inherit from .env
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)
os.environ["CONNECT_WITH_FRANZ"] = "true"
os.environ["IS_REGISTRATION_ENABLED"] = "true"

from tests.fakes import FakeUpstream  # noqa: E402


@pytest.fixture
def db() -> Session:
    """Database session on a fresh schema. Tables are dropped after each test."""
    import app.models  # noqa: F401
    from app.db.session import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings(tmp_path):
    """Settings with storage directories under tmp_path."""
    from app.config import Settings

    s = Settings()
    s.app_url = TEST_APP_URL
    s.upstream_api_url = TEST_UPSTREAM_URL
    s.recipes_dir = str(tmp_path / "recipes")
    s.uploads_dir = str(tmp_path / "uploads")
    s.connect_with_franz = True
    s.is_registration_enabled = True
    s.import_rollback_on_failure = False
    return s


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(db: Session, settings, upstream: FakeUpstream) -> TestClient:
    """TestClient wired to the test db session, settings and fake upstream."""
    from app.api.deps import get_upstream_client
    from app.config import get_settings
    from app.db.session import get_db
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_upstream_client] = lambda: upstream
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user(db: Session):
    """A registered account whose password is the client digest of TEST_PASSWORD."""
    from app.services.auth import create_user, hash_password

    return create_user(db, TEST_EMAIL, hash_password(TEST_PASSWORD), "Jane", "Doe")


@pytest.fixture
def auth_headers(user, settings) -> dict[str, str]:
    from app.services.auth import create_token_for_user

    return {"Authorization": f"Bearer {create_token_for_user(user, settings)}"}
