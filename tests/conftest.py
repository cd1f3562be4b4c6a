"""
tests/conftest.py -- Shared test fixtures for shiplog.

This module provides:
  - _make_test_engine(): isolated named shared-memory SQLite engine
  - _patch_lifespan(): wires test collaborators into app.state, bypassing real startup
  - api_client: TestClient with a seeded user and its JWT
  - engine / stores: fresh in-memory stores for unit tests
  - new_user: callable fixture that registers a throwaway user through the API

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient because it runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Unit tests that stay on one thread use plain :memory:.

Env vars must be set before any api/core import: DEBUG lets get_settings()
generate a JWT secret, ALLOWED_HOSTS admits TestClient's "testserver" host,
RATE_LIMIT_ENABLED=false keeps repeated sign-ups from tripping the limiter
(test_rate_limit.py switches it back on against LOGIN_RATE_LIMIT=3/hour),
and BCRYPT_ROUNDS=4 keeps hashing fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOGIN_RATE_LIMIT", "3/hour")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.dependencies import AuthGate
from auth.models import Identity, User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from catalog.ownership import OwnershipResolver
from catalog.store import CatalogStore
from core.config import get_settings
from core.database import create_db_engine

TEST_SECRET = "test-secret-" + "x" * 32

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_test_engine(db_suffix: str) -> Engine:
    """Create an isolated named shared-memory SQLite engine.

    Args:
        db_suffix: Unique string appended to the DB name so fixtures don't
                   share state (e.g. 'api').
    """
    return create_db_engine(f"sqlite:///file:test_shiplog_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(engine: Engine, hasher: PasswordHasher, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test collaborators into app.state so TestClient routes
    see an isolated test DB rather than the configured database. settings is
    a copy so tests can monkeypatch policy flags without touching the
    get_settings() singleton.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        catalog = CatalogStore(engine)
        app.state.settings = get_settings().model_copy()
        app.state.engine = engine
        app.state.user_store = UserStore(engine)
        app.state.catalog = catalog
        app.state.hasher = hasher
        app.state.tokens = tokens
        app.state.auth_gate = AuthGate(tokens)
        app.state.ownership = OwnershipResolver(catalog)
        yield

    return test_lifespan


def _signup(client: TestClient, username: str | None = None, password: str = "s3cret-pass") -> tuple[str, dict]:
    """Register a user through POST /signup and return (token, auth headers)."""
    username = username or f"user-{uuid.uuid4().hex[:8]}"
    resp = client.post("/signup", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    token = resp.json()["token"]
    return token, {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory store. The
    seeded user is "testuser" / "testpass123".
    """
    engine = _make_test_engine(uuid.uuid4().hex[:8])
    hasher = PasswordHasher(rounds=4)
    tokens = TokenService(TEST_SECRET, expire_seconds=3600)

    uid = UserStore(engine).create_user(User(username="testuser", hashed_password=hasher.hash("testpass123")))
    token = tokens.issue(Identity(id=uid, username="testuser"))

    app.router.lifespan_context = _patch_lifespan(engine, hasher, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    engine.dispose()


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = create_db_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def catalog(engine: Engine) -> CatalogStore:
    return CatalogStore(engine)


@pytest.fixture
def owners(user_store: UserStore) -> tuple[str, str]:
    """Two users with no products: (alice_id, bob_id)."""
    alice = user_store.create_user(User(username="alice", hashed_password="x"))
    bob = user_store.create_user(User(username="bob", hashed_password="x"))
    return alice, bob


@pytest.fixture
def new_user(api_client: tuple[TestClient, str, str]):
    """Return a callable that signs up a fresh user: new_user(username=None) -> (token, headers)."""
    client, _token, _uid = api_client

    def _create(username: str | None = None, password: str = "s3cret-pass") -> tuple[str, dict]:
        return _signup(client, username, password)

    return _create
