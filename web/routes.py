"""
web/routes.py -- Jinja2 template routes for the Inkwell web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same stores, reset issuer, mailer) but authenticate through the
session cookie instead of a bearer token, and render failures as redirects
or error pages instead of JSON.

Route registration order matters. FastAPI resolves same-level paths in order:
  - GET /posts/new must be registered before GET /posts/{post_id} or FastAPI
    captures "new" as a path parameter (and rejects it as a non-integer).

Routes:
  GET  /                         -- post list (public, ?page=)
  GET  /posts/new                -- new post form (session required)
  POST /posts                    -- create post, redirect to /posts/{id}
  GET  /posts/{post_id}          -- post detail (public)
  GET  /posts/{post_id}/edit     -- edit form (owner only)
  POST /posts/{post_id}          -- update (owner only)
  POST /posts/{post_id}/delete   -- delete (owner only)
  GET  /login                    -- login form
  POST /login                    -- email/password login, sets session cookie
  POST /logout                   -- destroy session, clear cookie
  GET  /signup                   -- signup form
  POST /signup                   -- create account, mail confirmation
  GET  /reset                    -- request-reset form
  POST /reset                    -- issue token, mail link
  GET  /reset/{token}            -- new password form
  POST /reset/{token}            -- consume token, set new password
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from api.limiter import LOGIN_RATE_LIMIT, limiter
from auth.accounts import authenticate_user, normalize_email, register_user
from auth.dependencies import SESSION_COOKIE, try_get_session_identity
from auth.guards import require_owner
from auth.models import Identity
from core.config import get_settings
from core.errors import AppError, Conflict, InvalidInput, TokenExpired, TokenNotFound, Unauthenticated
from feed import service

logger = logging.getLogger("inkwell.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
# Expose try_get_session_identity as a Jinja2 global so layout.html can show
# the signed-in user without every handler passing it in the context.
templates.env.globals["try_get_session_identity"] = try_get_session_identity
router = APIRouter()

_settings = get_settings()

# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------

# Whitelist mappings for ?error= and ?notice= query params [M3].
# The raw query param is NEVER passed to templates -- only the message from
# these dicts is. Prevents reflected XSS via crafted query strings.
_ERROR_MESSAGES: dict[str, str] = {
    "bad_credentials": "Invalid email or password.",
    "email_taken": "E-mail exists already, please pick a different one.",
    "token_expired": "Reset link has expired. Please request a new one.",
    "token_not_found": "Reset link is invalid or has already been used.",
}

_NOTICE_MESSAGES: dict[str, str] = {
    "signed_up": "Account created. You can log in now.",
    "reset_sent": "If an account exists for that email, a reset link has been sent.",
    "reset_done": "Password updated. Log in with your new password.",
}


def _safe_next(next_url: Optional[str]) -> str:
    """Validate a post-login redirect target. Only accept relative paths. [C2]

    Prevents open redirect attacks where an attacker crafts a URL like:
      /login?next=https://attacker.com  or  /login?next=//attacker.com

    Both would redirect off-site after login. We only allow paths that:
    - Start with "/" (relative, server-local)
    - Do NOT start with "//" (protocol-relative URL, redirects off-site)
    """
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/"


def _query_messages(request: Request) -> dict:
    return {
        "error_msg": _ERROR_MESSAGES.get(request.query_params.get("error", "")),
        "notice_msg": _NOTICE_MESSAGES.get(request.query_params.get("notice", "")),
    }


def _login_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(f"/login?next={request.url.path}", status_code=302)


def _error_page(request: Request, exc: AppError) -> HTMLResponse:
    """Render the 403/404 page for a guard or lookup failure."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {"status_code": exc.status_code, "message": exc.message},
        status_code=exc.status_code,
    )


def _field_errors(exc: InvalidInput) -> dict[str, str]:
    return {f["field"]: f["message"] for f in exc.fields}


def _set_session_cookie(response: RedirectResponse, session_id: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_expire_seconds,
        path="/",
    )


def _is_owner(identity: Optional[Identity], creator_id: int) -> bool:
    return identity is not None and identity.user_id == creator_id


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def post_list(request: Request, page: int = 1) -> HTMLResponse:
    """Paginated post list, newest first."""
    result = service.list_posts(request.app.state.post_store, page=page)
    return templates.TemplateResponse(
        request,
        "posts.html",
        {"result": result, **_query_messages(request)},
    )


@router.get("/posts/new", response_class=HTMLResponse)
def post_new_form(request: Request) -> HTMLResponse:
    if try_get_session_identity(request) is None:
        return _login_redirect(request)
    return templates.TemplateResponse(
        request,
        "post_form.html",
        {"post_id": None, "title": "", "content": "", "errors": {}},
    )


@router.post("/posts", response_class=HTMLResponse)
def post_create(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
) -> HTMLResponse:
    identity = try_get_session_identity(request)
    try:
        post = service.create_post(request.app.state.post_store, identity, title, content)
    except Unauthenticated:
        return _login_redirect(request)
    except InvalidInput as exc:
        return templates.TemplateResponse(
            request,
            "post_form.html",
            {"post_id": None, "title": title, "content": content, "errors": _field_errors(exc)},
            status_code=400,
        )
    return RedirectResponse(f"/posts/{post.id}", status_code=302)


@router.get("/posts/{post_id}", response_class=HTMLResponse)
def post_detail(request: Request, post_id: int) -> HTMLResponse:
    try:
        post = service.get_post(request.app.state.post_store, post_id)
    except AppError as exc:
        return _error_page(request, exc)
    identity = try_get_session_identity(request)
    return templates.TemplateResponse(
        request,
        "post_detail.html",
        {"post": post, "is_owner": _is_owner(identity, post.creator_id)},
    )


@router.get("/posts/{post_id}/edit", response_class=HTMLResponse)
def post_edit_form(request: Request, post_id: int) -> HTMLResponse:
    identity = try_get_session_identity(request)
    if identity is None:
        return _login_redirect(request)
    try:
        post = service.get_post(request.app.state.post_store, post_id)
        require_owner(identity, post)
    except AppError as exc:
        return _error_page(request, exc)
    return templates.TemplateResponse(
        request,
        "post_form.html",
        {"post_id": post.id, "title": post.title, "content": post.content, "errors": {}},
    )


@router.post("/posts/{post_id}", response_class=HTMLResponse)
def post_update(
    request: Request,
    post_id: int,
    title: str = Form(""),
    content: str = Form(""),
) -> HTMLResponse:
    identity = try_get_session_identity(request)
    try:
        post = service.update_post(request.app.state.post_store, identity, post_id, title, content)
    except Unauthenticated:
        return _login_redirect(request)
    except InvalidInput as exc:
        return templates.TemplateResponse(
            request,
            "post_form.html",
            {
                "post_id": post_id,
                "title": title,
                "content": content,
                "errors": _field_errors(exc),
            },
            status_code=400,
        )
    except AppError as exc:
        return _error_page(request, exc)
    return RedirectResponse(f"/posts/{post.id}", status_code=302)


@router.post("/posts/{post_id}/delete")
def post_delete(request: Request, post_id: int) -> HTMLResponse:
    identity = try_get_session_identity(request)
    try:
        service.delete_post(request.app.state.post_store, identity, post_id)
    except Unauthenticated:
        return _login_redirect(request)
    except AppError as exc:
        return _error_page(request, exc)
    return RedirectResponse("/", status_code=302)


# ---------------------------------------------------------------------------
# Auth routes -- login, logout, signup, password reset
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    """Render the login page."""
    # Redirect already-authenticated users to /
    if try_get_session_identity(request) is not None:
        return RedirectResponse("/", status_code=302)
    return templates.TemplateResponse(
        request,
        "login.html",
        {"next": _safe_next(request.query_params.get("next")), **_query_messages(request)},
    )


@limiter.limit(LOGIN_RATE_LIMIT)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next_url: str = Form("/", alias="next"),
) -> RedirectResponse:
    """Handle email/password login form submission."""
    try:
        identity = authenticate_user(request.app.state.user_store, email, password)  # [C1] timing equalization
    except Unauthenticated:
        return RedirectResponse("/login?error=bad_credentials", status_code=302)

    session_id = request.app.state.session_store.create(identity)
    resp = RedirectResponse(_safe_next(next_url), status_code=302)  # [C2]
    _set_session_cookie(resp, session_id)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """Destroy the server-side session, clear the cookie, redirect home."""
    request.app.state.session_store.destroy(request.cookies.get(SESSION_COOKIE))
    resp = RedirectResponse("/", status_code=302)
    resp.delete_cookie(SESSION_COOKIE, path="/")
    return resp


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request) -> HTMLResponse:
    if try_get_session_identity(request) is not None:
        return RedirectResponse("/", status_code=302)
    return templates.TemplateResponse(
        request,
        "signup.html",
        {"email": "", "display_name": "", "errors": {}, **_query_messages(request)},
    )


@router.post("/signup", response_class=HTMLResponse)
def signup_post(
    request: Request,
    background_tasks: BackgroundTasks,
    email: str = Form(""),
    password: str = Form(""),
    display_name: str = Form(""),
) -> HTMLResponse:
    """Create an account and send the confirmation mail after the redirect."""
    try:
        identity = register_user(request.app.state.user_store, email, password, display_name)
    except Conflict:
        return RedirectResponse("/signup?error=email_taken", status_code=302)
    except InvalidInput as exc:
        return templates.TemplateResponse(
            request,
            "signup.html",
            {"email": email, "display_name": display_name, "errors": _field_errors(exc)},
            status_code=400,
        )
    background_tasks.add_task(request.app.state.mailer.send_signup_confirmation, identity.email)
    return RedirectResponse("/login?notice=signed_up", status_code=302)


@router.get("/reset", response_class=HTMLResponse)
def reset_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "reset.html", _query_messages(request))


@limiter.limit(LOGIN_RATE_LIMIT)  # [H2]
@router.post("/reset", response_class=HTMLResponse)
def reset_post(
    request: Request,
    background_tasks: BackgroundTasks,
    email: str = Form(""),
) -> RedirectResponse:
    """Issue a reset token and mail the link. Same redirect for unknown emails."""
    email = normalize_email(email)
    token = request.app.state.reset_issuer.issue_for_email(email)
    if token is not None:
        reset_url = f"{_settings.base_url}/reset/{token.token_value}"
        background_tasks.add_task(request.app.state.mailer.send_password_reset, email, reset_url)
    return RedirectResponse("/login?notice=reset_sent", status_code=302)


@router.get("/reset/{token}", response_class=HTMLResponse)
def new_password_form(request: Request, token: str) -> HTMLResponse:
    return templates.TemplateResponse(request, "new_password.html", {"token": token, "errors": {}})


@router.post("/reset/{token}", response_class=HTMLResponse)
def new_password_post(request: Request, token: str, password: str = Form("")) -> HTMLResponse:
    try:
        request.app.state.reset_issuer.consume(token, password)
    except InvalidInput as exc:
        return templates.TemplateResponse(
            request,
            "new_password.html",
            {"token": token, "errors": _field_errors(exc)},
            status_code=400,
        )
    except TokenExpired:
        return RedirectResponse("/reset?error=token_expired", status_code=302)
    except TokenNotFound:
        return RedirectResponse("/reset?error=token_not_found", status_code=302)
    return RedirectResponse("/login?notice=reset_done", status_code=302)
