"""
tests/conftest.py -- Shared test fixtures for AuthGate tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + tokens
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient over the real app with isolated stores
  - user_store / token_store: fresh in-memory stores for unit tests
  - register_and_login(): helper that drives the public API to a logged-in user

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient because route handlers run in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.

DEBUG must be set before any auth module import so get_settings()
auto-generates both signing secrets instead of raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate the signing secrets in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.ledger import RefreshTokenLedger, RevocationLedger
from auth.store import TokenStore, UserStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, TokenStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Both stores point at the same named in-memory database, like the real
    app where they share DATABASE_URL.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_authgate_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), TokenStore(url)


def _patch_lifespan(user_store: UserStore, token_store: TokenStore):
    """Return an async context manager that replaces the real lifespan.

    No purge task is started; tests call purge_expired() directly.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.token_store = token_store
        app.state.refresh_ledger = RefreshTokenLedger(token_store)
        app.state.revocation_ledger = RevocationLedger(token_store)
        app.state.purge_task = None
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped API client -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient for the real app backed by isolated in-memory stores.

    Tests share one database per module, so each test registers users with
    unique emails (see unique_email()).
    """
    user_store, token_store = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    app.router.lifespan_context = _patch_lifespan(user_store, token_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    token_store.close()
    user_store.close()


# ---------------------------------------------------------------------------
# Function-scoped stores for unit tests
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def token_store() -> Generator[TokenStore, None, None]:
    store = TokenStore("sqlite:///:memory:")
    yield store
    store.close()


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@example.com"


def register_and_login(client: TestClient, role: str | None = None, password: str = "pw123") -> dict:
    """Register a fresh user through the API, log in, and return the login body.

    The returned dict holds id, name, email, accessToken, refreshToken.
    """
    email = unique_email(role or "member")
    body = {"name": "Test User", "email": email, "password": password}
    if role is not None:
        body["role"] = role
    resp = client.post("/api/auth/register", json=body)
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()
