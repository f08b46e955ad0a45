"""
auth/dependencies.py -- Request -> Identity resolution for both surfaces.

One contract, two strategies:
  SessionResolver      -- reads the session_id cookie, asks SessionStore.
  BearerTokenResolver  -- reads "Authorization: Bearer <token>", asks
                          BearerTokenService.

Both return an Identity or None (anonymous) and never raise for a bad
credential. An invalid or expired credential degrades the request to
anonymous; the handler then decides, via auth/guards.py, whether anonymous
access is acceptable for that operation.

The lifespan builds one resolver per surface and stores it on app.state:
  app.state.session_resolver -- used by web/
  app.state.bearer_resolver  -- used by api/

FastAPI Depends() helpers at the bottom read those.

Layer rule: no imports from web/ or feed/. This module may import from
fastapi because it is part of the dependency injection system.
"""

from __future__ import annotations

import logging
from typing import Protocol

from fastapi import Request

from auth.models import AuthContext, Identity
from auth.sessions import SessionStore
from auth.tokens import BearerTokenService
from core.errors import AuthError

logger = logging.getLogger("inkwell.auth")

SESSION_COOKIE = "session_id"


class AuthContextResolver(Protocol):
    def resolve(self, request: Request) -> Identity | None: ...


class SessionResolver:
    def __init__(self, sessions: SessionStore, cookie_name: str = SESSION_COOKIE) -> None:
        self._sessions = sessions
        self.cookie_name = cookie_name

    def resolve(self, request: Request) -> Identity | None:
        return self._sessions.authenticate(request.cookies.get(self.cookie_name))


class BearerTokenResolver:
    def __init__(self, tokens: BearerTokenService) -> None:
        self._tokens = tokens

    def resolve(self, request: Request) -> Identity | None:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return None
        try:
            return self._tokens.verify(auth_header[7:].strip())
        except AuthError as exc:
            logger.debug("Bearer token rejected on %s: %s", request.url.path, exc.code)
            return None


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def try_get_session_identity(request: Request) -> Identity | None:
    """Soft session lookup for web/ routes. Never raises."""
    return request.app.state.session_resolver.resolve(request)


def get_auth_context(request: Request) -> AuthContext:
    """Inject {is_authenticated, user_id} into api/ handlers.

    Use as a FastAPI dependency:
        @router.get("/posts")
        def route(ctx: AuthContext = Depends(get_auth_context)): ...

    Handlers that need a caller call require_authenticated(ctx.identity),
    which raises Unauthenticated -> 401 through the AppError handler.
    """
    return AuthContext(identity=request.app.state.bearer_resolver.resolve(request))
