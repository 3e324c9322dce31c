# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Pytest configuration and shared fixtures.

Assumptions:
- Settings are pointed at an in-memory database before boiler is imported
- bcrypt runs at minimum cost to keep the suite fast
- Each test gets a fresh in-memory SQLite database and TestClient
- Google is replaced by StubGoogleProvider; no network access
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from boiler.config import build_oauth_config, settings
from boiler.database.schema import init_db
from boiler.database.session import get_db
from boiler.main import create_app
from tests.fixtures.google import StubGoogleProvider


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single module")
    config.addinivalue_line("markers", "integration: tests through the HTTP API")
    config.addinivalue_line("markers", "hypothesis: property-based tests")


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database for testing.

    Assumptions:
    - StaticPool keeps one connection so TestClient threads see the same data
    - Schema is created fresh for each test
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    init_db(engine)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def oauth_config():
    """A frozen OAuth configuration, as built at startup."""
    return build_oauth_config(settings)


@pytest.fixture
def google(oauth_config):
    """Stub Google provider sharing the test OAuth configuration."""
    return StubGoogleProvider(oauth_config)


@pytest.fixture
def app(db_session, google):
    """Application wired to the test database and the stub provider."""
    app = create_app(oauth_provider=google, init_database=False)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Test client with its own cookie jar; redirects are not followed."""
    with TestClient(app, follow_redirects=False) as client:
        yield client


@pytest.fixture
def other_client(app):
    """Second browser against the same app and database."""
    with TestClient(app, follow_redirects=False) as client:
        yield client


@pytest.fixture
def capsule():
    """Unauthenticated session capsule over a plain dict."""
    from boiler.auth.session import SessionCapsule
    return SessionCapsule.attach({})
