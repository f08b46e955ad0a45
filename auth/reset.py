"""
auth/reset.py -- Time-limited, single-use password reset tokens.

Token format: secrets.token_hex(32), i.e. 256 bits of entropy as 64 hex
characters. Hex is URL-safe, so the value drops straight into the mailed link.

Storage: only SHA-256(token) is written to the user row. The digest is
deterministic, so lookup by value stays O(1) through the UNIQUE index, and a
leaked database does not hand out working reset links. bcrypt's slowness is
unnecessary for a 256-bit random value.

Expiry is a domain rule, checked explicitly against reset_token_expires_at
(epoch ms) on every consume(). It never relies on storage TTL.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import replace

from auth.accounts import normalize_email, validate_secret
from auth.models import Identity, ResetToken
from auth.passwords import hash_secret
from auth.store import UserStore
from core.errors import InvalidInput, NotFound, TokenExpired, TokenNotFound

logger = logging.getLogger("inkwell.auth")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _digest(token_value: str) -> str:
    return hashlib.sha256(token_value.encode("utf-8")).hexdigest()


class ResetTokenIssuer:
    """Issues and consumes reset tokens bound to a user record.

    now_ms is injectable so tests can move the clock past expiry without
    sleeping.
    """

    def __init__(
        self,
        store: UserStore,
        expire_seconds: int = 3600,
        now_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._expire_ms = expire_seconds * 1000
        self._now_ms = now_ms

    def issue(self, user_id: int) -> ResetToken:
        """Generate a fresh token for user_id, overwriting any live one.

        Raises NotFound if the user does not exist.
        """
        user = self._store.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found.")
        token_value = secrets.token_hex(32)
        expires_at_ms = self._now_ms() + self._expire_ms
        self._store.save(replace(user, reset_token_hash=_digest(token_value), reset_token_expires_at=expires_at_ms))
        logger.info("Reset token issued for user %d", user_id)
        return ResetToken(user_id=user_id, token_value=token_value, expires_at_ms=expires_at_ms)

    def issue_for_email(self, email: str) -> ResetToken | None:
        """Issue a token for the account behind email, or return None if there is none.

        Callers answer identically in both cases so the reset form cannot be
        used to probe for registered emails.
        """
        user = self._store.find_by_email(normalize_email(email))
        if user is None:
            return None
        return self.issue(user.id)

    def consume(self, token_value: str, new_secret: str) -> Identity:
        """Replace the credential of the user holding token_value.

        Raises:
            InvalidInput:  new_secret fails validation (token left untouched).
            TokenNotFound: no live token with this value (never issued,
                           already consumed, or superseded).
            TokenExpired:  token exists but its window has passed; it is
                           cleared so a retry reports TokenNotFound.
        """
        errors = validate_secret(new_secret)
        if errors:
            raise InvalidInput("Validation failed, entered data is incorrect.", fields=errors)

        user = self._store.find_by_reset_token(_digest(token_value))
        if user is None:
            raise TokenNotFound("Reset link is invalid or has already been used.")

        if user.reset_token_expires_at is None or self._now_ms() > user.reset_token_expires_at:
            self._store.save(replace(user, reset_token_hash=None, reset_token_expires_at=None))
            logger.info("Expired reset token cleared for user %d", user.id)
            raise TokenExpired("Reset link has expired. Please request a new one.")

        updated = replace(
            user,
            hashed_password=hash_secret(new_secret),
            reset_token_hash=None,
            reset_token_expires_at=None,
        )
        self._store.save(updated)
        logger.info("Password reset completed for user %d", user.id)
        return updated.to_identity()
