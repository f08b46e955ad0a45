"""
auth/sessions.py -- Server-side sessions for the HTML surface.

The browser only ever holds the opaque session_id (httpOnly cookie); the
binding to a user lives in the "sessions" table next to "users".

Lifecycle:
  create(identity)        -- new row, no cap on concurrent sessions per user
  authenticate(id)        -- Identity while the row exists and is unexpired
  destroy(id)             -- idempotent delete (logout)
  purge_expired()         -- store-level TTL; called from the lifespan loop

Timestamps are epoch seconds (REAL), so expiry checks are a plain numeric
comparison.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import Column, Float, Integer, String, Table

from auth.models import Identity, Session
from auth.store import UserStore, metadata

logger = logging.getLogger("inkwell.auth")

_sessions = Table(
    "sessions",
    metadata,
    Column("session_id", String(64), primary_key=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("created_at", Float, nullable=False),
    Column("expires_at", Float, nullable=False),
)


class SessionStore:
    """Repository for Session rows, sharing the UserStore's engine.

    Usage:
        sessions = SessionStore(user_store)
        sid = sessions.create(identity)
        sessions.authenticate(sid)   # -> Identity
        sessions.destroy(sid)
        sessions.authenticate(sid)   # -> None
    """

    def __init__(
        self,
        user_store: UserStore,
        expire_seconds: int = 24 * 3600,
        now: Callable[[], float] = time.time,
    ) -> None:
        self._users = user_store
        self.engine = user_store.engine
        self._expire_seconds = expire_seconds
        self._now = now
        metadata.create_all(self.engine)

    def create(self, identity: Identity) -> str:
        session_id = secrets.token_urlsafe(32)
        now = self._now()
        with self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    session_id=session_id,
                    user_id=identity.user_id,
                    created_at=now,
                    expires_at=now + self._expire_seconds,
                )
            )
            conn.commit()
        logger.info("Session created for user %d", identity.user_id)
        return session_id

    def get(self, session_id: str) -> Session | None:
        """Return the raw session row, expired or not."""
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.session_id == session_id)).fetchone()
        return _row_to_session(row) if row is not None else None

    def authenticate(self, session_id: str | None) -> Identity | None:
        """Return the bound Identity, or None (anonymous).

        None covers: no id, unknown id, destroyed session, expired session,
        and a session whose user has since been deleted.
        """
        if not session_id:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.session_id == session_id)).fetchone()
        if row is None or row.expires_at < self._now():
            return None
        user = self._users.find_by_id(row.user_id)
        return user.to_identity() if user is not None else None

    def destroy(self, session_id: str | None) -> None:
        if not session_id:
            return
        with self.engine.connect() as conn:
            conn.execute(_sessions.delete().where(_sessions.c.session_id == session_id))
            conn.commit()

    def purge_expired(self) -> int:
        """Delete every expired row. Returns the number removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at < self._now()))
            conn.commit()
        if result.rowcount:
            logger.info("Purged %d expired sessions", result.rowcount)
        return result.rowcount


def _row_to_session(row) -> Session:
    return Session(
        session_id=row.session_id,
        user_id=row.user_id,
        created_at=datetime.fromtimestamp(row.created_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(row.expires_at, tz=timezone.utc),
    )
