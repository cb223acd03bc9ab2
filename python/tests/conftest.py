"""Pytest configuration and fixtures for MediaVault tests.

Test isolation strategy:
- Each test gets its own in-memory SQLite database (see tests/utils/db.py)
- The media provider is replaced by FakeMediaClient
- Auth tests use MockJwtVerifier with locally minted RS256 tokens
"""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from mediavault.app import add_request_id_middleware, create_app, create_bootstrap_callback
from mediavault.auth.middleware import AuthMiddleware
from mediavault.config import Settings, clear_settings_cache
from mediavault.db.session import create_session_factory
from mediavault.media.client import FakeMediaClient
from tests.helpers import create_test_external_id, make_test_settings
from tests.support.mock_verifier import MockJwtVerifier
from tests.utils.db import create_test_engine


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache around every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with the schema created."""
    engine = create_test_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a session on the test database.

    Rows the app creates are visible after db_session.expire_all().
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    return make_test_settings()


@pytest.fixture
def media_client() -> FakeMediaClient:
    return FakeMediaClient(cloud_name="demo")


@pytest.fixture
def app(
    test_settings: Settings,
    session_factory: sessionmaker[Session],
    media_client: FakeMediaClient,
) -> FastAPI:
    """Provide a FastAPI app with auth middleware using the test verifier.

    Uses the test database for user resolution and the fake media client
    for provider calls.
    """
    app = create_app(
        skip_auth_middleware=True,
        settings=test_settings,
        session_factory=session_factory,
        media_client=media_client,
    )

    # Manually add auth middleware with our test configuration
    app.add_middleware(
        AuthMiddleware,
        verifier=MockJwtVerifier(),
        bootstrap_callback=create_bootstrap_callback(session_factory),
    )
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a test client with auth middleware.

    Use auth_headers() to generate valid tokens for requests.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def public_client(
    test_settings: Settings,
    session_factory: sessionmaker[Session],
    media_client: FakeMediaClient,
) -> Generator[TestClient, None, None]:
    """Provide a test client without auth middleware, for public endpoints."""
    app = create_app(
        skip_auth_middleware=True,
        settings=test_settings,
        session_factory=session_factory,
        media_client=media_client,
    )
    with TestClient(app) as client:
        yield client


@pytest.fixture
def external_id() -> str:
    """Generate a random Clerk-style user id for a test principal."""
    return create_test_external_id()
