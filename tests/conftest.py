"""Pytest configuration and shared fixtures.

Every test gets its own file-backed SQLite database with the full schema,
so sessions opened by the API client and by the test see the same data.
"""

import os

# Must be set before inspectflow settings are first read
os.environ.setdefault("INSPECTFLOW_DATABASE_URL", "sqlite://")
os.environ.setdefault("INSPECTFLOW_LOG_TO_FILE", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from inspectflow.api.deps import get_db
from inspectflow.api.main import app
from inspectflow.core.security import create_access_token
from inspectflow.db import models  # noqa - import models for metadata
from inspectflow.db.base import Base
from inspectflow.db.session import build_engine


@pytest.fixture()
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'inspectflow.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    """Session for arranging and asserting. Commit before calling the API."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    """TestClient whose requests use the per-test database."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    """Build a bearer header for a user."""

    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
