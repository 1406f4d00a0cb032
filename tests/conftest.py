"""
tests/conftest.py -- Shared test fixtures for TodoList integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + todos
  - _patch_lifespan(): wires test stores and services into app.state
  - api_client: TestClient over the real app with the patched lifespan
  - register_and_login(): helper that returns a Bearer token for a new identity

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Environment variables must be set before any api/auth/core import:
  DEBUG=true        -- get_settings() auto-generates SECRET_KEY
  ALLOWED_HOSTS     -- TestClient sends Host: testserver
  AUTH_RATE_LIMIT   -- tests log in far more often than 10 times a minute
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.credentials import CredentialStore
from auth.store import UserStore
from auth.tokens import TokenIssuer, TokenValidator
from core.config import Settings, get_settings
from todos.service import TodoService
from todos.store import TodoStore

TEST_PASSWORD = "Secure1!"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, TodoStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    todos_url = f"sqlite:///file:test_todos_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(users_url), TodoStore(todos_url)


def _patch_lifespan(user_store: UserStore, todo_store: TodoStore, settings: Settings):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.todo_store = todo_store
        app.state.credentials = CredentialStore(user_store)
        app.state.token_issuer = TokenIssuer(settings)
        app.state.token_validator = TokenValidator(settings)
        app.state.todo_service = TodoService(todo_store)
        yield

    return test_lifespan


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def register_and_login(client: TestClient, email: str | None = None, password: str = TEST_PASSWORD) -> str:
    """Register a fresh identity, log in, and return its access token."""
    email = email or unique_email()
    resp = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings with a fixed signing key, independent of the environment."""
    return Settings(secret_key="k" * 32, jwt_issuer="TodoListApp", jwt_audience="TodoListApp")


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def todo_store() -> Generator[TodoStore, None, None]:
    store = TodoStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with isolated in-memory stores.

    Module-scoped for speed: every test registers its own identities with
    unique emails, so tests in one module do not interfere.
    """
    user_store, todo_store = _make_test_stores(uuid.uuid4().hex[:8])
    app.router.lifespan_context = _patch_lifespan(user_store, todo_store, get_settings())

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    user_store.close()
    todo_store.close()
