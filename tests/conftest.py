"""
tests/conftest.py -- Shared test fixtures for Inkwell.

This module provides:
  - memory_url(): named shared-memory SQLite URI for one isolated database
  - user_store / post_store: fresh stores per test for unit tests
  - _patch_lifespan(): wires test stores and a mock mailer into app.state
  - api_client: TestClient for JSON API integration tests
  - web_client: TestClient with follow_redirects=False for web route tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment must be set before any core import so get_settings() sees it:
  DEBUG=true                 -- auto-generates SECRET_KEY instead of raising
  RATE_LIMIT_ENABLED=false   -- login tests would otherwise trip the limiter
  ALLOWED_HOSTS              -- TrustedHostMiddleware must accept "testserver"
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import wire_services
from asgi import app
from auth.store import UserStore
from core.config import get_settings
from core.mailer import Mailer
from feed.store import PostStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def memory_url(name: str) -> str:
    return f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    """Fresh, empty UserStore per test (unique DB name)."""
    store = UserStore(db_url=memory_url(f"test_users_{uuid.uuid4().hex}"))
    yield store
    store.close()


@pytest.fixture
def post_store() -> Generator[PostStore, None, None]:
    store = PostStore(db_url=memory_url(f"test_posts_{uuid.uuid4().hex}"))
    yield store
    store.close()


def _make_test_stores(db_suffix: str) -> tuple[UserStore, PostStore]:
    """Create isolated stores for one client fixture.

    Args:
        db_suffix: Unique string appended to the DB name so parallel test
                   modules don't share state (e.g. 'api', 'web').
    """
    user_store = UserStore(db_url=memory_url(f"test_users_{db_suffix}"))
    post_store = PostStore(db_url=memory_url(f"test_posts_{db_suffix}"))
    return user_store, post_store


def _patch_lifespan(user_store: UserStore, post_store: PostStore, mailer: MagicMock):
    """Return an async context manager that replaces the real lifespan.

    Uses the same wire_services() as production so routes see the real auth
    services, but over isolated in-memory stores and a mock mailer.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(app, get_settings(), user_store=user_store, post_store=post_store, mailer=mailer)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, MagicMock], None, None]:
    """Yield (client, mailer) for API integration tests.

    The mailer is a MagicMock with Mailer's spec; background mail tasks run
    before TestClient returns, so tests can inspect its calls directly.
    """
    user_store, post_store = _make_test_stores(f"api_{uuid.uuid4().hex}")
    mailer = MagicMock(spec=Mailer)

    app.router.lifespan_context = _patch_lifespan(user_store, post_store, mailer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, mailer

    post_store.close()
    user_store.close()


@pytest.fixture(scope="module")
def web_client() -> Generator[tuple[TestClient, MagicMock], None, None]:
    """Yield (client, mailer) for web route integration tests.

    follow_redirects=False is essential for web route tests: we assert on
    redirect *locations* (e.g. 302 to /login), which are invisible once
    the client follows the redirect and returns the final 200 response.
    """
    user_store, post_store = _make_test_stores(f"web_{uuid.uuid4().hex}")
    mailer = MagicMock(spec=Mailer)

    app.router.lifespan_context = _patch_lifespan(user_store, post_store, mailer)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client, mailer

    post_store.close()
    user_store.close()
