"""
Post lifecycle tests.
"""
import pytest

from content_platform.documents import Comment, PostStatus
from content_platform.errors import (
    CommentNotFound,
    InvalidArgumentError,
    PostNotFound,
    UnauthorizedError,
)
from content_platform.pagination import PageRequest
from content_platform.services import posts


class TestCrud:

    async def test_create_defaults_to_draft(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="First", tags=["python"])

        assert post.status == PostStatus.DRAFT
        assert post.author_id == alice.id
        assert post.author_name == "alice"
        assert post.stats.views == 0

        fetched = await posts.get_post(store, post.id)
        assert fetched.slug == "first"
        assert fetched.tags == ["python"]

    async def test_get_by_slug(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="By Slug")
        assert (await posts.get_post_by_slug(store, "by-slug")).id == post.id

        with pytest.raises(PostNotFound):
            await posts.get_post_by_slug(store, "nope")
        with pytest.raises(InvalidArgumentError):
            await posts.get_post_by_slug(store, "   ")

    async def test_list_published_skips_drafts(self, store, allocator, alice):
        await posts.create_post(store, allocator, alice, title="Draft")
        live = await posts.create_post(store, allocator, alice, title="Live", status=PostStatus.PUBLISHED)

        page = await posts.list_published(store, PageRequest(0, 10))
        assert page.total == 1
        assert [p.id for p in page.items] == [live.id]

    async def test_list_by_author_with_status(self, store, allocator, alice, bob):
        await posts.create_post(store, allocator, alice, title="A draft")
        await posts.create_post(store, allocator, alice, title="A live", status=PostStatus.PUBLISHED)
        await posts.create_post(store, allocator, bob, title="B live", status=PostStatus.PUBLISHED)

        everything = await posts.list_by_author(store, alice.id, PageRequest(0, 10))
        published = await posts.list_by_author(store, alice.id, PageRequest(0, 10), PostStatus.PUBLISHED)

        assert everything.total == 2
        assert [p.title for p in published.items] == ["A live"]

    async def test_update_by_stranger(self, store, allocator, alice, bob):
        post = await posts.create_post(store, allocator, alice, title="Mine")
        with pytest.raises(UnauthorizedError):
            await posts.update_post(store, allocator, post.id, bob, content="defaced")

    async def test_admin_can_update(self, store, allocator, alice, admin):
        post = await posts.create_post(store, allocator, alice, title="Mine")
        updated = await posts.update_post(
            store, allocator, post.id, admin, status=PostStatus.PUBLISHED, content="edited"
        )
        assert updated.status == PostStatus.PUBLISHED
        assert updated.content == "edited"
        assert updated.slug == "mine"

    async def test_update_keeps_concurrent_comment(self, store, allocator, alice, bob):
        post = await posts.create_post(store, allocator, alice, title="Busy")
        await posts.add_comment(store, post.id, bob, "first!")

        updated = await posts.update_post(store, allocator, post.id, alice, content="new body")
        assert [c.content for c in updated.comments] == ["first!"]

    async def test_update_missing(self, store, allocator, alice):
        with pytest.raises(PostNotFound):
            await posts.update_post(store, allocator, "missing", alice, content="x")

    async def test_delete(self, store, allocator, alice, bob):
        post = await posts.create_post(store, allocator, alice, title="Short lived")

        with pytest.raises(UnauthorizedError):
            await posts.delete_post(store, post.id, bob)

        await posts.delete_post(store, post.id, alice)
        with pytest.raises(PostNotFound):
            await posts.get_post(store, post.id)
        with pytest.raises(PostNotFound):
            await posts.delete_post(store, post.id, alice)


class TestViews:

    async def test_increment(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="Viewed")
        assert await posts.increment_views(store, post.id) == 1
        assert await posts.increment_views(store, post.id) == 2
        assert (await posts.get_post(store, post.id)).stats.views == 2

    async def test_increment_missing(self, store):
        with pytest.raises(PostNotFound):
            await posts.increment_views(store, "missing")


class TestComments:

    async def test_add_and_delete_own(self, store, allocator, alice, bob):
        post = await posts.create_post(store, allocator, alice, title="Discuss")
        post = await posts.add_comment(store, post.id, bob, "nice")
        comment = post.comments[0]
        assert comment.author_id == bob.id
        assert comment.author_name == "bob"

        post = await posts.delete_comment(store, post.id, comment.id, bob)
        assert post.comments == []

    async def test_blank_comment(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="Quiet")
        with pytest.raises(InvalidArgumentError):
            await posts.add_comment(store, post.id, alice, "  ")

    async def test_comment_on_missing_post(self, store, alice):
        with pytest.raises(PostNotFound):
            await posts.add_comment(store, "missing", alice, "hello")

    async def test_post_author_cannot_delete_others_comment(self, store, allocator, alice, bob):
        post = await posts.create_post(store, allocator, alice, title="Mine")
        post = await posts.add_comment(store, post.id, bob, "bob's words")

        with pytest.raises(UnauthorizedError):
            await posts.delete_comment(store, post.id, post.comments[0].id, alice)

    async def test_admin_deletes_any_comment(self, store, allocator, alice, bob, admin):
        post = await posts.create_post(store, allocator, alice, title="Moderated")
        post = await posts.add_comment(store, post.id, bob, "spam")

        post = await posts.delete_comment(store, post.id, post.comments[0].id, admin)
        assert post.comments == []

    async def test_double_delete(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="Twice")
        post = await posts.add_comment(store, post.id, alice, "once")
        comment_id = post.comments[0].id

        await posts.delete_comment(store, post.id, comment_id, alice)
        with pytest.raises(CommentNotFound):
            await posts.delete_comment(store, post.id, comment_id, alice)

    async def test_pull_misses_when_comment_already_gone(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="Raced")
        comment = Comment(author_id=alice.id, author_name="alice", content="x")
        await store.push_post_comment(post.id, comment)

        assert await store.pull_post_comment(post.id, comment.id) is not None
        assert await store.pull_post_comment(post.id, comment.id) is None
