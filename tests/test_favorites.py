"""
Favorite set tests: conflict on repeat, reactivation, existence checks,
ownership on delete-by-id.
"""
import pytest
from sqlalchemy import func, select

from content_platform.documents import PostStatus
from content_platform.errors import (
    AlreadyFavorited,
    NotFavorited,
    NotFoundError,
    PostNotFound,
    UnauthorizedError,
    UserNotFound,
)
from content_platform.models import PostFavorite
from content_platform.services import favorites, identity, posts


@pytest.fixture
async def post(store, allocator, bob):
    return await posts.create_post(
        store, allocator, bob, title="Bookmarked", status=PostStatus.PUBLISHED
    )


class TestAddRemove:

    async def test_favorite_twice(self, db, store, alice, post):
        assert await favorites.add_favorite(db, store, alice.id, post.id) == 1
        assert await favorites.is_favorited(db, alice.id, post.id) is True

        with pytest.raises(AlreadyFavorited):
            await favorites.add_favorite(db, store, alice.id, post.id)
        assert await favorites.is_favorited(db, alice.id, post.id) is True

    async def test_reactivation_matches_single_favorite(self, db, store, alice, post):
        await favorites.add_favorite(db, store, alice.id, post.id)
        await favorites.remove_favorite(db, alice.id, post.id)
        assert await favorites.is_favorited(db, alice.id, post.id) is False

        assert await favorites.add_favorite(db, store, alice.id, post.id) == 1
        assert await favorites.is_favorited(db, alice.id, post.id) is True
        assert await favorites.list_favorite_post_ids(db, alice.id) == [post.id]

        rows = await db.execute(select(func.count()).select_from(PostFavorite))
        assert rows.scalar_one() == 1

    async def test_missing_post(self, db, store, alice):
        with pytest.raises(PostNotFound):
            await favorites.add_favorite(db, store, alice.id, "000000000000000000000000")

    async def test_missing_user(self, db, store, post):
        with pytest.raises(UserNotFound):
            await favorites.add_favorite(db, store, 777, post.id)

    async def test_remove_when_not_favorited(self, db, alice, post):
        with pytest.raises(NotFavorited):
            await favorites.remove_favorite(db, alice.id, post.id)

    async def test_list_ids_only_active(self, db, store, allocator, alice, bob, post):
        other = await posts.create_post(store, allocator, bob, title="Another")
        await favorites.add_favorite(db, store, alice.id, post.id)
        await favorites.add_favorite(db, store, alice.id, other.id)
        await favorites.remove_favorite(db, alice.id, post.id)

        assert await favorites.list_favorite_post_ids(db, alice.id) == [other.id]
        assert await favorites.list_favorite_post_ids(db, bob.id) == []


class TestRemoveById:

    async def _favorite_row(self, db, user_id, post_id):
        result = await db.execute(
            select(PostFavorite).where(PostFavorite.user_id == user_id, PostFavorite.post_id == post_id)
        )
        return result.scalar_one()

    async def test_owner_can_remove(self, db, store, alice, post):
        await favorites.add_favorite(db, store, alice.id, post.id)
        row = await self._favorite_row(db, alice.id, post.id)

        assert await favorites.remove_favorite_by_id(db, row.id, alice) == 1
        assert await favorites.is_favorited(db, alice.id, post.id) is False

    async def test_stranger_cannot_remove(self, db, store, alice, bob, post):
        await favorites.add_favorite(db, store, alice.id, post.id)
        row = await self._favorite_row(db, alice.id, post.id)

        with pytest.raises(UnauthorizedError):
            await favorites.remove_favorite_by_id(db, row.id, bob)
        assert await favorites.is_favorited(db, alice.id, post.id) is True

    async def test_admin_can_remove(self, db, store, alice, admin, post):
        await favorites.add_favorite(db, store, alice.id, post.id)
        row = await self._favorite_row(db, alice.id, post.id)

        assert await favorites.remove_favorite_by_id(db, row.id, admin) == 1

    async def test_unknown_favorite_id(self, db, alice):
        with pytest.raises(NotFoundError):
            await favorites.remove_favorite_by_id(db, "no-such-id", alice)


class TestConcurrentFlips:

    async def test_concurrent_refavorite(self, file_sessions, store, allocator):
        async with file_sessions() as setup:
            reader = await identity.create_user(setup, "reader")
            author = await identity.create_user(setup, "author")
            post = await posts.create_post(store, allocator, author, title="Contended")
            await favorites.add_favorite(setup, store, reader.id, post.id)
            await favorites.remove_favorite(setup, reader.id, post.id)
            await setup.commit()

        async with file_sessions() as first, file_sessions() as second:
            for session in (first, second):
                row = await favorites._find_row(session, reader.id, post.id)
                assert row.deleted == 1

            assert await favorites.add_favorite(first, store, reader.id, post.id) == 1
            await first.commit()

            with pytest.raises(AlreadyFavorited):
                await favorites.add_favorite(second, store, reader.id, post.id)

    async def test_concurrent_remove(self, file_sessions, store, allocator):
        async with file_sessions() as setup:
            reader = await identity.create_user(setup, "reader")
            post = await posts.create_post(store, allocator, reader, title="Twice removed")
            await favorites.add_favorite(setup, store, reader.id, post.id)
            await setup.commit()

        async with file_sessions() as first, file_sessions() as second:
            for session in (first, second):
                row = await favorites._find_row(session, reader.id, post.id)
                assert row.deleted == 0

            await favorites.remove_favorite(first, reader.id, post.id)
            await first.commit()

            with pytest.raises(NotFavorited):
                await favorites.remove_favorite(second, reader.id, post.id)
