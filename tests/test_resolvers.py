"""
tests/test_resolvers.py -- Unit tests for auth/dependencies.py resolvers.

Both strategies must degrade every bad credential to anonymous (None) rather
than raising; the handler's guard then decides what anonymous means.

Requests are built from a raw ASGI scope so no app or client is needed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from starlette.requests import Request

from auth.accounts import register_user
from auth.dependencies import SESSION_COOKIE, BearerTokenResolver, SessionResolver
from auth.sessions import SessionStore
from auth.tokens import BearerTokenService

KEY = "r" * 48


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw, "query_string": b""})


@pytest.fixture
def identity(user_store):
    return register_user(user_store, "resolver@example.com", "abcde")


class TestSessionResolver:
    def test_valid_cookie_resolves(self, user_store, identity):
        sessions = SessionStore(user_store)
        sid = sessions.create(identity)
        resolver = SessionResolver(sessions)
        assert resolver.resolve(_request({"Cookie": f"{SESSION_COOKIE}={sid}"})) == identity

    def test_no_cookie_is_anonymous(self, user_store):
        assert SessionResolver(SessionStore(user_store)).resolve(_request()) is None

    def test_unknown_cookie_is_anonymous(self, user_store):
        resolver = SessionResolver(SessionStore(user_store))
        assert resolver.resolve(_request({"Cookie": f"{SESSION_COOKIE}=bogus"})) is None


class TestBearerTokenResolver:
    def test_valid_token_resolves(self, identity):
        tokens = BearerTokenService(KEY)
        value = tokens.issue(identity).value
        assert BearerTokenResolver(tokens).resolve(_request({"Authorization": f"Bearer {value}"})) == identity

    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer", "Bearer not-a-jwt"])
    def test_missing_or_malformed_header_is_anonymous(self, header):
        headers = {"Authorization": header} if header is not None else None
        assert BearerTokenResolver(BearerTokenService(KEY)).resolve(_request(headers)) is None

    def test_expired_token_is_anonymous(self, identity):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        value = BearerTokenService(KEY, now=lambda: past).issue(identity).value
        request = _request({"Authorization": f"Bearer {value}"})
        assert BearerTokenResolver(BearerTokenService(KEY)).resolve(request) is None

    def test_foreign_key_token_is_anonymous(self, identity):
        value = BearerTokenService("x" * 48).issue(identity).value
        request = _request({"Authorization": f"Bearer {value}"})
        assert BearerTokenResolver(BearerTokenService(KEY)).resolve(request) is None
