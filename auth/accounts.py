"""
auth/accounts.py -- Signup and login flows shared by both surfaces.

The session surface (web/) and the token surface (api/) both call
register_user() and authenticate_user(), so the two paths cannot drift apart.

Validation here is deliberately small: a shape check for the email and
length bounds for the secret. Failures are collected per field and raised
together as one InvalidInput.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError

from auth.models import Identity, User
from auth.passwords import DUMMY_HASH, hash_secret, verify_secret
from auth.store import UserStore
from core.errors import Conflict, InvalidInput, Unauthenticated

logger = logging.getLogger("inkwell.auth")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SECRET_MIN_LENGTH = 5
# bcrypt only looks at the first 72 bytes; longer secrets are refused rather
# than silently truncated.
SECRET_MAX_BYTES = 72
DISPLAY_NAME_MAX_LENGTH = 100

_BAD_CREDENTIALS = "Invalid email or password."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> list[dict]:
    if not _EMAIL_RE.match(email) or len(email) > 255:
        return [{"field": "email", "message": "Please enter a valid email address."}]
    return []


def validate_secret(secret: str, field: str = "password") -> list[dict]:
    if len(secret) < SECRET_MIN_LENGTH:
        return [{"field": field, "message": f"Password must be at least {SECRET_MIN_LENGTH} characters."}]
    if len(secret.encode("utf-8")) > SECRET_MAX_BYTES:
        return [{"field": field, "message": f"Password must be at most {SECRET_MAX_BYTES} bytes."}]
    return []


def register_user(store: UserStore, email: str, secret: str, display_name: str = "") -> Identity:
    """Create a new account and return its Identity.

    Raises:
        InvalidInput: malformed email, secret outside the length bounds, or an
            over-long display name. All field messages are reported at once.
        Conflict: the email is already registered.
    """
    email = normalize_email(email)
    display_name = display_name.strip()

    errors = validate_email(email) + validate_secret(secret)
    if len(display_name) > DISPLAY_NAME_MAX_LENGTH:
        errors.append({"field": "display_name", "message": "Name is too long."})
    if errors:
        raise InvalidInput("Validation failed, entered data is incorrect.", fields=errors)

    if store.find_by_email(email) is not None:
        raise Conflict("E-mail exists already, please pick a different one.")

    try:
        user = store.save(User(email=email, display_name=display_name, hashed_password=hash_secret(secret)))
    except IntegrityError as exc:
        # A concurrent signup with the same email won the insert.
        raise Conflict("E-mail exists already, please pick a different one.") from exc

    logger.info("User %d registered", user.id)
    return user.to_identity()


def authenticate_user(store: UserStore, email: str, secret: str) -> Identity:
    """Check an email/secret pair with timing equalization [C1].

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against DUMMY_HASH (same cost as a real check)
    - Wrong secret:  bcrypt runs against the real hash

    Both failures raise the same Unauthenticated with the same message, so the
    caller learns nothing about which emails are registered.
    """
    user = store.find_by_email(normalize_email(email))
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        verify_secret(secret, DUMMY_HASH)
        raise Unauthenticated(_BAD_CREDENTIALS)
    if not verify_secret(secret, user.hashed_password):
        raise Unauthenticated(_BAD_CREDENTIALS)
    return user.to_identity()
