"""
tests/conftest.py -- Shared test fixtures for the Acquisitions API.

This module provides:
  - store / service: a fresh in-memory UserStore (and AuthService over it) per test
  - api_client: TestClient wired to an isolated store, with an admin and a
    regular user pre-registered and JWTs issued for both
  - api: per-test wrapper around api_client that clears the cookie jar

Design: Named shared-memory SQLite URIs (not plain :memory:) back the API
fixture because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. Unit-test stores run on one thread, so plain :memory: is fine.

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.service import AuthService
from auth.tokens import create_access_token
from users.store import UserStore

ADMIN_EMAIL = "admin@acquisitions.io"
ADMIN_PASSWORD = "adminpass123"
USER_EMAIL = "member@acquisitions.io"
USER_PASSWORD = "memberpass123"


@dataclass
class ApiHarness:
    """Everything an API test needs: the client, its store, and two principals."""

    client: TestClient
    store: UserStore
    admin_id: int
    admin_token: str
    user_id: int
    user_token: str
    user_email: str = USER_EMAIL
    user_password: str = USER_PASSWORD

    @property
    def admin_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token}"}

    @property
    def user_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.user_token}"}


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """Fresh, empty in-memory UserStore."""
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: UserStore) -> AuthService:
    return AuthService(store)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test store into app.state so routes never touch the
    database configured by DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = AuthService(user_store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness backed by an isolated named shared-memory store.

    One harness per test module. Tests that mutate or delete records should
    create their own users rather than touching the two seeded principals.
    Rate limiting is disabled so modules can log in freely.
    """
    db_url = f"sqlite:///file:test_users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    service = AuthService(user_store)

    admin = service.register("Test Admin", ADMIN_EMAIL, ADMIN_PASSWORD, role="admin")
    member = service.register("Test Member", USER_EMAIL, USER_PASSWORD)

    admin_token = create_access_token(admin.id, admin.email, admin.role, expire_seconds=3600)
    user_token = create_access_token(member.id, member.email, member.role, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(user_store)
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(
            client=client,
            store=user_store,
            admin_id=admin.id,
            admin_token=admin_token,
            user_id=member.id,
            user_token=user_token,
        )

    limiter.enabled = True
    user_store.close()


@pytest.fixture
def api(api_client: ApiHarness) -> Generator[ApiHarness, None, None]:
    """Per-test view of the module harness with an empty cookie jar.

    Login and register set the access_token cookie, and TestClient keeps it.
    The cookie outranks the Bearer header, so it is cleared around every test.
    """
    api_client.client.cookies.clear()
    yield api_client
    api_client.client.cookies.clear()
