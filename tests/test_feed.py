"""
tests/test_feed.py -- Unit tests for feed/store.py and feed/service.py.

Covers:
  - PostStore insert/update/delete and newest-first listing
  - pagination math in list_posts (clamped page, total_pages >= 1)
  - validation: title 5-200 chars, content >= 5 chars
  - guard order on writes: Unauthenticated -> NotFound -> Forbidden
  - a non-owner write leaves the post unchanged
"""

from __future__ import annotations

import pytest

from auth.models import Identity
from core.errors import Forbidden, InvalidInput, NotFound, Unauthenticated
from feed import service
from feed.models import Post

ALICE = Identity(user_id=1, email="alice@example.com")
BOB = Identity(user_id=2, email="bob@example.com")


class TestPostStore:
    def test_insert_assigns_id_and_timestamps(self, post_store):
        post = post_store.save(Post(title="Hello", content="World", creator_id=1))
        assert post.id is not None
        assert post.created_at
        assert post.created_at == post.updated_at
        assert post_store.find_by_id(post.id) == post

    def test_update_keeps_creator(self, post_store):
        post = post_store.save(Post(title="Hello", content="World", creator_id=1))
        post.title = "Changed"
        post.creator_id = 2
        post_store.save(post)
        stored = post_store.find_by_id(post.id)
        assert stored.title == "Changed"
        assert stored.creator_id == 1

    def test_delete(self, post_store):
        post = post_store.save(Post(title="Hello", content="World", creator_id=1))
        assert post_store.delete_by_id(post.id) is True
        assert post_store.find_by_id(post.id) is None
        assert post_store.delete_by_id(post.id) is False

    def test_list_newest_first(self, post_store):
        ids = [post_store.save(Post(title=f"Post {i}", content="body", creator_id=1)).id for i in range(3)]
        assert [p.id for p in post_store.list_posts()] == list(reversed(ids))
        assert post_store.count_posts() == 3


class TestListPosts:
    def test_empty_store_has_one_page(self, post_store):
        page = service.list_posts(post_store)
        assert page.posts == []
        assert page.total == 0
        assert page.total_pages == 1

    def test_pages(self, post_store):
        for i in range(12):
            post_store.save(Post(title=f"Post {i:02d}", content="body", creator_id=1))
        first = service.list_posts(post_store, page=1)
        second = service.list_posts(post_store, page=2)
        assert len(first.posts) == 10
        assert len(second.posts) == 2
        assert first.total_pages == 2

    def test_out_of_range_page_is_clamped(self, post_store):
        post_store.save(Post(title="Only one", content="body", creator_id=1))
        assert service.list_posts(post_store, page=99).page == 1
        assert service.list_posts(post_store, page=0).page == 1


class TestCreatePost:
    def test_create(self, post_store):
        post = service.create_post(post_store, ALICE, "  A title  ", "Some content")
        assert post.creator_id == ALICE.user_id
        assert post.title == "A title"

    def test_anonymous_cannot_create(self, post_store):
        with pytest.raises(Unauthenticated):
            service.create_post(post_store, None, "A title", "Some content")
        assert post_store.count_posts() == 0

    @pytest.mark.parametrize(
        "title,content,field",
        [("abcd", "Some content", "title"), ("x" * 201, "Some content", "title"), ("A title", "abc", "content")],
    )
    def test_validation(self, post_store, title, content, field):
        with pytest.raises(InvalidInput) as exc_info:
            service.create_post(post_store, ALICE, title, content)
        assert [f["field"] for f in exc_info.value.fields] == [field]


class TestOwnership:
    @pytest.fixture
    def post(self, post_store) -> Post:
        return service.create_post(post_store, ALICE, "Alice's post", "Original content")

    def test_owner_can_update(self, post_store, post):
        updated = service.update_post(post_store, ALICE, post.id, "New title", "New content")
        assert updated.title == "New title"
        assert post_store.find_by_id(post.id).content == "New content"

    def test_non_owner_update_forbidden_and_unchanged(self, post_store, post):
        with pytest.raises(Forbidden):
            service.update_post(post_store, BOB, post.id, "Hijacked", "Hijacked content")
        assert post_store.find_by_id(post.id).title == "Alice's post"

    def test_non_owner_delete_forbidden(self, post_store, post):
        with pytest.raises(Forbidden):
            service.delete_post(post_store, BOB, post.id)
        assert post_store.find_by_id(post.id) is not None

    def test_owner_can_delete(self, post_store, post):
        service.delete_post(post_store, ALICE, post.id)
        assert post_store.find_by_id(post.id) is None

    def test_missing_post_not_found(self, post_store):
        with pytest.raises(NotFound):
            service.update_post(post_store, ALICE, 999, "New title", "New content")
        with pytest.raises(NotFound):
            service.delete_post(post_store, ALICE, 999)

    def test_anonymous_checked_before_lookup(self, post_store):
        # Missing post, anonymous caller: authentication fails first.
        with pytest.raises(Unauthenticated):
            service.update_post(post_store, None, 999, "New title", "New content")
        with pytest.raises(Unauthenticated):
            service.delete_post(post_store, None, 999)

    def test_invalid_update_after_ownership(self, post_store, post):
        with pytest.raises(Forbidden):
            service.update_post(post_store, BOB, post.id, "x", "y")
        with pytest.raises(InvalidInput):
            service.update_post(post_store, ALICE, post.id, "x", "y")
