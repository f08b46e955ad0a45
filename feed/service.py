"""
feed/service.py -- Ownership-guarded post operations.

Both surfaces call these functions with whatever Identity their resolver
produced (or None). The guard order on every write path is:

  1. require_authenticated  -- before the post is even loaded, so an
                               anonymous caller cannot tell a missing post
                               from someone else's post
  2. find_by_id             -- NotFound
  3. require_owner          -- Forbidden

The ownership check runs on every call against a fresh read; nothing is
cached between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from auth.guards import require_authenticated, require_owner
from auth.models import Identity
from core.errors import InvalidInput, NotFound
from feed.models import Post
from feed.store import PostStore

logger = logging.getLogger("inkwell.feed")

TITLE_MIN_LENGTH = 5
CONTENT_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
PAGE_SIZE = 10


@dataclass(frozen=True)
class PostPage:
    posts: list[Post]
    total: int
    page: int
    total_pages: int


def _validate(title: str, content: str) -> tuple[str, str]:
    title = title.strip()
    content = content.strip()
    errors: list[dict] = []
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        errors.append(
            {"field": "title", "message": f"Title must be {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters."}
        )
    if len(content) < CONTENT_MIN_LENGTH:
        errors.append({"field": "content", "message": f"Content must be at least {CONTENT_MIN_LENGTH} characters."})
    if errors:
        raise InvalidInput("Validation failed, entered data is incorrect.", fields=errors)
    return title, content


def list_posts(store: PostStore, page: int = 1, page_size: int = PAGE_SIZE) -> PostPage:
    total = store.count_posts()
    total_pages = max(1, (total + page_size - 1) // page_size)
    page = max(1, min(page, total_pages))
    posts = store.list_posts(offset=(page - 1) * page_size, limit=page_size)
    return PostPage(posts=posts, total=total, page=page, total_pages=total_pages)


def get_post(store: PostStore, post_id: int) -> Post:
    post = store.find_by_id(post_id)
    if post is None:
        raise NotFound("Could not find post.")
    return post


def create_post(store: PostStore, identity: Identity | None, title: str, content: str) -> Post:
    identity = require_authenticated(identity)
    title, content = _validate(title, content)
    post = store.save(Post(title=title, content=content, creator_id=identity.user_id))
    logger.info("Post %d created by user %d", post.id, identity.user_id)
    return post


def update_post(store: PostStore, identity: Identity | None, post_id: int, title: str, content: str) -> Post:
    identity = require_authenticated(identity)
    post = get_post(store, post_id)
    require_owner(identity, post)
    title, content = _validate(title, content)
    updated = store.save(replace(post, title=title, content=content))
    logger.info("Post %d updated by user %d", post_id, identity.user_id)
    return updated


def delete_post(store: PostStore, identity: Identity | None, post_id: int) -> None:
    identity = require_authenticated(identity)
    post = get_post(store, post_id)
    require_owner(identity, post)
    store.delete_by_id(post_id)
    logger.info("Post %d deleted by user %d", post_id, identity.user_id)
