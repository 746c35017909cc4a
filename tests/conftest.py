"""Shared pytest fixtures for cabinly tests."""
import sys
sys.dont_write_bytecode = True

from unittest.mock import MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_jwks_cache():
    """The JWKS cache is module-level; clear it around every test."""
    import cabinly.api.auth as auth_module

    auth_module._jwks_cache = None
    auth_module._jwks_cache_time = 0
    yield
    auth_module._jwks_cache = None
    auth_module._jwks_cache_time = 0


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()


@pytest.fixture
def staff_client():
    """Factory: TestClient for the dashboard app, authenticated as ``role``.

    Auth is bypassed through dependency_overrides so these tests never
    touch JWKS.
    """
    from cabinly.api.auth import CurrentUser, get_current_user
    from cabinly.api.factory import create_app

    def make(role: str = "admin") -> TestClient:
        app = create_app(role="dashboard")
        user = CurrentUser(
            id=str(uuid4()),
            external_subject="user-123",
            email="staff@example.com",
            name="Staff User",
            role=role,
        )
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    return make
