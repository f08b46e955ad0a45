"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as feed/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly.

The auth core depends on exactly this contract:
  find_by_id / find_by_email / find_by_reset_token  -- single-row reads
  save                                              -- insert or full-row update
  delete_by_id                                      -- single-row delete

Each call is atomic on its own. A find() followed by save() is NOT one
transaction: two concurrent password resets for the same user may race, and
the last save() wins.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Reset tokens are stored as SHA-256 digests; the raw token never reaches
  the database.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import User
from core.config import DEFAULT_DB_URL

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

# Shared by every auth table (auth/sessions.py registers "sessions" here too)
# so one create_all() call builds the whole auth schema.
metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("display_name", String(100), nullable=False, server_default=""),
    Column("hashed_password", Text, nullable=False),
    Column("reset_token_hash", String(64), unique=True),  # SHA-256 hex, NULL when no live token
    Column("reset_token_expires_at", BigInteger),  # epoch milliseconds
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", set_wal_mode)
    return engine


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        user = store.save(User(email="a@x.com", hashed_password=hash_secret("abcde")))
        same = store.find_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DB_URL) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def find_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_email(self, email: str) -> User | None:
        """Look up by normalized email. Callers normalize before calling."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_reset_token(self, token_hash: str) -> User | None:
        """Look up the user holding a live reset token. O(1) via UNIQUE index."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.reset_token_hash == token_hash)).fetchone()
        return _row_to_user(row) if row is not None else None

    def save(self, user: User) -> User:
        """Insert (id is None) or overwrite every mutable column (id set).

        Returns the stored record, with id and created_at filled in on insert.
        Raises sqlalchemy.exc.IntegrityError if the email is already taken;
        auth/accounts.py turns that into Conflict.
        """
        values = {
            "email": user.email,
            "display_name": user.display_name,
            "hashed_password": user.hashed_password,
            "reset_token_hash": user.reset_token_hash,
            "reset_token_expires_at": user.reset_token_expires_at,
        }
        with self.engine.connect() as conn:
            if user.id is None:
                created_at = _now_iso()
                result = conn.execute(_users.insert().values(created_at=created_at, **values))
                conn.commit()
                return replace(user, id=result.inserted_primary_key[0], created_at=created_at)
            conn.execute(_users.update().where(_users.c.id == user.id).values(**values))
            conn.commit()
        return user

    def delete_by_id(self, user_id: int) -> bool:
        """Delete a user. Returns True if a row was removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        display_name=row.display_name or "",
        hashed_password=row.hashed_password,
        reset_token_hash=row.reset_token_hash,
        reset_token_expires_at=row.reset_token_expires_at,
        created_at=row.created_at,
    )
