"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these classes only own shape.

Identity and BearerToken are value objects: frozen, freely copyable, never
shared-mutable. User is the persistence record; it carries the credential
(hashed_password) and the single live reset token, and is only mutated by
the auth core through read-modify-write against UserStore.save().

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """Surface-independent answer to "who is making this request"."""

    user_id: int
    email: str
    display_name: str = ""


@dataclass
class User:
    """A registered account.

    email is stored normalized (stripped, lower-cased) and is unique.
    reset_token_hash is the SHA-256 hex digest of the raw reset token; the raw
    value is never persisted. reset_token_expires_at is epoch milliseconds.
    """

    email: str
    hashed_password: str
    display_name: str = ""
    id: int | None = None
    reset_token_hash: str | None = None
    reset_token_expires_at: int | None = None
    created_at: str | None = None

    def to_identity(self) -> Identity:
        return Identity(user_id=self.id, email=self.email, display_name=self.display_name)


@dataclass(frozen=True)
class ResetToken:
    """Returned once by ResetTokenIssuer.issue(); token_value goes into the mailed link."""

    user_id: int
    token_value: str
    expires_at_ms: int


@dataclass
class Session:
    session_id: str
    user_id: int
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class BearerToken:
    """A signed, self-describing credential. value is the compact JWT."""

    value: str
    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """What token-surface handlers receive: {is_authenticated, user_id}."""

    identity: Identity | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def user_id(self) -> int | None:
        return self.identity.user_id if self.identity is not None else None
