"""
tests/conftest.py -- Shared test fixtures for Postboard.

This module provides:
  - TEST_SECRET / token_service: a TokenService with a known key
  - credentials: a CredentialManager at bcrypt's minimum work factor (fast tests)
  - api: TestClient plus the stores it is wired to, for integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format shares one in-memory instance across all
connections in the same process.

The DEBUG env var must be set before any api import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError. The
app's own key is never used by tests: the patched lifespan installs a
TokenService built from TEST_SECRET.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from itertools import count

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import CredentialManager
from auth.store import UserStore
from auth.tokens import TokenService
from posts.store import PostStore

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters"

_db_ids = count()


@dataclass
class ApiHarness:
    client: TestClient
    users: UserStore
    posts: PostStore
    tokens: TokenService
    credentials: CredentialManager


@pytest.fixture
def credentials() -> CredentialManager:
    return CredentialManager(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret_key=TEST_SECRET)


def _patch_lifespan(users: UserStore, posts: PostStore, tokens: TokenService, credentials: CredentialManager):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and services into app.state so TestClient
    routes see isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = users
        app.state.post_store = posts
        app.state.tokens = tokens
        app.state.credentials = credentials
        app.state.secure_cookies = False
        yield

    return test_lifespan


@pytest.fixture
def api(credentials: CredentialManager, token_service: TokenService) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness backed by a fresh pair of in-memory stores.

    Each test gets its own database name, so users and posts never leak
    between tests and the TestClient cookie jar starts empty.
    """
    db_url = f"sqlite:///file:test_postboard_{next(_db_ids)}?mode=memory&cache=shared&uri=true"
    users = UserStore(db_url=db_url)
    posts = PostStore(db_url=db_url)

    app.router.lifespan_context = _patch_lifespan(users, posts, token_service, credentials)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, users=users, posts=posts, tokens=token_service, credentials=credentials)

    users.close()
    posts.close()
