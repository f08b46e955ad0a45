"""
api/main.py -- FastAPI application entry point for Inkwell.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds every process-wide collaborator exactly once (stores, the
bearer-token service holding the signing key, the reset issuer, the mailer,
and one resolver per surface) and hangs them on app.state. Handlers reach
them through request.app.state; nothing reads module-level globals.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorField, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.posts import router as posts_router
from api.routes.v1.users import router as users_router
from auth.dependencies import BearerTokenResolver, SessionResolver
from auth.reset import ResetTokenIssuer
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import BearerTokenService
from core.config import Settings, get_settings
from core.errors import AppError
from core.mailer import Mailer
from feed.store import PostStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("inkwell.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def wire_services(
    app: FastAPI, settings: Settings, user_store: UserStore, post_store: PostStore, mailer: Mailer
) -> None:
    """Attach every shared collaborator to app.state.

    Shared by the real lifespan and the test lifespan in tests/conftest.py so
    both build the object graph the same way; only the stores and the mailer
    differ.
    """
    app.state.user_store = user_store
    app.state.post_store = post_store
    app.state.mailer = mailer
    app.state.session_store = SessionStore(user_store, expire_seconds=settings.session_expire_seconds)
    app.state.token_service = BearerTokenService(settings.secret_key, expire_seconds=settings.token_expire_seconds)
    app.state.reset_issuer = ResetTokenIssuer(user_store, expire_seconds=settings.reset_token_expire_seconds)
    app.state.session_resolver = SessionResolver(app.state.session_store)
    app.state.bearer_resolver = BearerTokenResolver(app.state.token_service)


# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval_seconds: int) -> None:
    """Delete expired session rows every interval_seconds.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        app.state.session_store.purge_expired()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build shared resources on startup; tear them down symmetrically on shutdown."""
    settings = get_settings()
    logger.info("Inkwell API starting up")
    wire_services(
        app,
        settings,
        user_store=UserStore(settings.database_url),
        post_store=PostStore(settings.database_url),
        mailer=Mailer.from_settings(settings),
    )
    if not app.state.mailer.is_configured:
        logger.warning("SMTP_HOST not set -- outbound mail will be logged, not sent")
    app.state.purge_task = asyncio.create_task(_purge_loop(app, settings.session_purge_interval_seconds))
    logger.info("Stores and auth services initialized")

    yield

    app.state.purge_task.cancel()
    app.state.post_store.close()
    app.state.user_store.close()
    logger.info("Inkwell API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Inkwell API",
    description="Posts, accounts, and bearer-token auth for Inkwell.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])
app.include_router(posts_router, prefix="/api/v1", tags=["Posts"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an expected core failure (401/403/404/409/400) as the error envelope."""
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                fields=[ErrorField(**f) for f in exc.fields],
            )
        ).model_dump(),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error and Retry-After."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for FastAPI HTTP exceptions."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for storage faults and other unexpected errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit -- health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
