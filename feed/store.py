"""
feed/store.py -- SQLAlchemy Core persistence for posts.

Pattern: Repository + Data Mapper (same as auth/store.py). PostStore exposes
the narrow contract the service layer depends on -- find_by_id, save,
delete_by_id -- plus list_posts/count_posts for the listing pages.

No ownership logic here: the store writes whatever it is handed. Callers go
through feed/service.py, which runs the guard before every write.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.store import make_engine
from core.config import DEFAULT_DB_URL
from feed.models import Post

metadata = MetaData()

_posts = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("content", Text, nullable=False),
    Column("creator_id", Integer, nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PostStore:
    def __init__(self, db_url: str = DEFAULT_DB_URL) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def find_by_id(self, post_id: int) -> Post | None:
        with self.engine.connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def save(self, post: Post) -> Post:
        """Insert (id is None) or overwrite title/content (id set).

        creator_id is written on insert only; an update never changes owner.
        Returns the stored record with id and timestamps filled in.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            if post.id is None:
                result = conn.execute(
                    _posts.insert().values(
                        title=post.title,
                        content=post.content,
                        creator_id=post.creator_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
                return replace(post, id=result.inserted_primary_key[0], created_at=now, updated_at=now)
            conn.execute(
                _posts.update()
                .where(_posts.c.id == post.id)
                .values(title=post.title, content=post.content, updated_at=now)
            )
            conn.commit()
        return replace(post, updated_at=now)

    def delete_by_id(self, post_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.id == post_id))
            conn.commit()
        return result.rowcount > 0

    def list_posts(self, offset: int = 0, limit: int = 20) -> list[Post]:
        """Return posts newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _posts.select().order_by(_posts.c.created_at.desc(), _posts.c.id.desc()).offset(offset).limit(limit)
            ).fetchall()
        return [_row_to_post(r) for r in rows]

    def count_posts(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_posts)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        title=row.title,
        content=row.content,
        creator_id=row.creator_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
