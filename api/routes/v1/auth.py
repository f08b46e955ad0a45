"""
api/routes/v1/auth.py -- Login, password reset, and identity endpoints (JSON).

Routes:
  POST /api/v1/auth/login          -- email/password -> bearer token
  POST /api/v1/auth/reset          -- request a reset link (always 202)
  POST /api/v1/auth/reset/{token}  -- set a new password with a reset token
  GET  /api/v1/auth/me             -- identity behind the bearer token

Security:
  [H2] POST /login and POST /reset share the login rate limit per IP.
  [C1] authenticate_user() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on responses that carry a token.
  Enumeration: /login answers unknown email and wrong password identically;
      /reset answers 202 with the same body whether or not the email exists.

Handlers that hash or verify are plain `def` so FastAPI runs them in its
threadpool; bcrypt at cost 12 must not block the event loop.

Failures are raised as core.errors types and rendered by the AppError
handler in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    NewPasswordRequest,
    ResetDoneResponse,
    ResetRequest,
)
from auth.accounts import authenticate_user, normalize_email
from auth.dependencies import get_auth_context
from auth.guards import require_authenticated
from auth.models import AuthContext
from core.config import get_settings

# Auth policy:
# - POST /api/v1/auth/login:          public
# - POST /api/v1/auth/reset:          public
# - POST /api/v1/auth/reset/{token}:  public (the token is the credential)
# - GET  /api/v1/auth/me:             requires bearer token
router = APIRouter()

_settings = get_settings()


@limiter.limit(LOGIN_RATE_LIMIT)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed bearer token.

    Raises Unauthenticated (401) with one generic message for both unknown
    email and wrong password.
    """
    identity = authenticate_user(request.app.state.user_store, body.email, body.password)
    token = request.app.state.token_service.issue(identity)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token.value,
            user_id=identity.user_id,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=request.app.state.token_service.expire_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@limiter.limit(LOGIN_RATE_LIMIT)  # [H2]
@router.post("/auth/reset", response_model=MessageResponse, status_code=202)
def request_reset(request: Request, body: ResetRequest, background_tasks: BackgroundTasks) -> MessageResponse:
    """Issue a reset token and mail the link. Same answer for unknown emails."""
    email = normalize_email(body.email)
    token = request.app.state.reset_issuer.issue_for_email(email)
    if token is not None:
        reset_url = f"{_settings.base_url}/reset/{token.token_value}"
        background_tasks.add_task(request.app.state.mailer.send_password_reset, email, reset_url)
    return MessageResponse(message="If an account exists for that email, a reset link has been sent.")


@router.post("/auth/reset/{token}", response_model=ResetDoneResponse)
def complete_reset(request: Request, token: str, body: NewPasswordRequest) -> ResetDoneResponse:
    """Consume a reset token and replace the password.

    TokenNotFound / TokenExpired (400) and InvalidInput (400, with fields)
    propagate to the AppError handler.
    """
    identity = request.app.state.reset_issuer.consume(token, body.password)
    return ResetDoneResponse(user_id=identity.user_id)


@router.get("/auth/me", response_model=MeResponse)
def me(ctx: AuthContext = Depends(get_auth_context)) -> MeResponse:
    """Return identity information for the bearer of the token."""
    identity = require_authenticated(ctx.identity)
    return MeResponse(user_id=identity.user_id, email=identity.email, display_name=identity.display_name)
