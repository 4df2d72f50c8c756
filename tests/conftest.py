"""Shared fixtures for the test suite."""

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from cloudops.core.config import get_settings
from cloudops.core.crypto import reset_cipher
from cloudops.core.store import get_store
from tests.fixtures import InMemoryRowStore

TEST_USER_ID = "user-123"
OTHER_USER_ID = "user-456"


def make_token(claims: dict, key: str = "gateway-secret") -> str:
    """Signed JWT; the service never checks the signature."""
    return jwt.encode(claims, key, algorithm="HS256")


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Fresh settings and cipher for every test, with no store or key configured."""
    for var in (
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        "SUPABASE_ANON_KEY",
        "ENCRYPTION_KEY",
        "ENVIRONMENT",
        "QUEUE_DEFAULT_MAX",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    reset_cipher()
    yield
    get_settings.cache_clear()
    reset_cipher()


@pytest.fixture
def user_id():
    return TEST_USER_ID


@pytest.fixture
def store():
    """Empty in-memory row store."""
    return InMemoryRowStore()


@pytest.fixture
def auth_headers():
    """Bearer header for the test principal."""
    token = make_token({"sub": TEST_USER_ID, "email": "ops@example.com", "role": "authenticated"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(store):
    """Test client whose row store is the in-memory fixture."""
    from cloudops.main import app

    app.dependency_overrides[get_store] = lambda: store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client():
    """Test client using the real store dependency with no store configured."""
    from cloudops.main import app

    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client
