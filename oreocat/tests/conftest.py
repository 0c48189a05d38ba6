"""Shared pytest fixtures for the test suite."""

import os

# Set required env vars before any oreocat module is imported so that the
# pydantic-settings singleton initialises without real credentials.
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "sb_secret_testonly")
os.environ.setdefault("SUPABASE_STORAGE_BUCKET", "public-images")
os.environ.setdefault("AUTH_SECRET", "test-auth-secret-0123456789abcdef0123456789")
os.environ.setdefault("AUTH_REQUIRED", "true")

import pytest
from fastapi.testclient import TestClient

from oreocat.core.auth import get_optional_user
from oreocat.models.session import SessionUser


@pytest.fixture(name="user")
def user_fixture():
    return SessionUser(id="user_abc123", email="test@example.com", name="Test")


@pytest.fixture(name="app")
def app_fixture():
    from oreocat.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app, user):
    """Client whose requests carry a valid session for ``user``."""

    def override_auth():
        return user

    app.dependency_overrides[get_optional_user] = override_auth
    # Unhandled errors must come back as 500 responses, not test-time raises.
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(name="anon_client")
def anon_client_fixture(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
