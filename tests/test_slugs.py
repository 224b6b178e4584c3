"""
Slug allocation tests.
"""
import logging
from unittest.mock import AsyncMock

import fakeredis
import pytest

from content_platform.config import settings
from content_platform.errors import SlugConflict
from content_platform.services import posts
from content_platform.services.slugs import SlugAllocator, base_slug


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Hello World", "hello-world"),
        ("  Hello,   World!! ", "hello-world"),
        ("Python 与 MongoDB", "python-与-mongodb"),
        ("a -- b", "a-b"),
        ("-leading and trailing-", "leading-and-trailing"),
        ("!!!", "post"),
        ("", "post"),
        (None, "post"),
    ],
)
def test_base_slug(title, expected):
    assert base_slug(title) == expected


class TestAllocation:

    async def test_same_title_gets_suffix(self, store, allocator, alice):
        first = await posts.create_post(store, allocator, alice, title="Hello World")
        second = await posts.create_post(store, allocator, alice, title="Hello World")
        third = await posts.create_post(store, allocator, alice, title="hello   world!")

        assert first.slug == "hello-world"
        assert second.slug == "hello-world-1"
        assert third.slug == "hello-world-2"

    async def test_unchanged_title_keeps_slug(self, store, allocator, alice):
        await posts.create_post(store, allocator, alice, title="Hello World")
        mine = await posts.create_post(store, allocator, alice, title="Hello World")

        updated = await posts.update_post(store, allocator, mine.id, alice, title="Hello World")
        assert updated.slug == "hello-world-1"

    async def test_allocate_excludes_own_document(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="Mine")
        assert await allocator.allocate("Mine", exclude_id=post.id) == "mine"
        assert await allocator.allocate("Mine") == "mine-1"

    async def test_retitle_onto_taken_slug(self, store, allocator, alice):
        await posts.create_post(store, allocator, alice, title="Taken")
        other = await posts.create_post(store, allocator, alice, title="Free")

        updated = await posts.update_post(store, allocator, other.id, alice, title="Taken")
        assert updated.slug == "taken-1"
        assert (await store.find_post_by_slug("free")) is None

    async def test_explicit_slug_on_update(self, store, allocator, alice):
        post = await posts.create_post(store, allocator, alice, title="Some Title")
        updated = await posts.update_post(store, allocator, post.id, alice, slug="Custom Slug")
        assert updated.slug == "custom-slug"
        assert updated.title == "Some Title"

    async def test_lost_race_is_retried(self, store, allocator, alice):
        existing = await posts.create_post(store, allocator, alice, title="Race")
        # First lookup is stale (sees "race" as free), the unique index rejects it
        store.find_post_by_slug = AsyncMock(side_effect=[None, existing, None])

        created = await posts.create_post(store, allocator, alice, title="Race")
        assert created.slug == "race-1"

    async def test_gives_up_after_max_attempts(self, store, allocator, alice):
        await posts.create_post(store, allocator, alice, title="Stuck")
        store.find_post_by_slug = AsyncMock(return_value=None)

        with pytest.raises(SlugConflict):
            await posts.create_post(store, allocator, alice, title="Stuck")


class TestLocking:

    async def test_create_under_redis_lock(self, store, alice):
        redis = fakeredis.FakeAsyncRedis()
        locked = SlugAllocator(store, redis)

        first = await posts.create_post(store, locked, alice, title="Locked")
        second = await posts.create_post(store, locked, alice, title="Locked")

        assert (first.slug, second.slug) == ("locked", "locked-1")
        # Lock released after each write
        assert await redis.exists("slug-lock:locked") == 0

    async def test_no_redis_means_no_lock(self, store):
        allocator = SlugAllocator(store)
        async with allocator.lock("anything"):
            pass

    async def test_lock_held_elsewhere_is_a_conflict(self, store, alice, monkeypatch):
        monkeypatch.setattr(settings, "slug_lock_timeout", 0.1)
        redis = fakeredis.FakeAsyncRedis()
        await redis.set("slug-lock:busy", "another-writer")

        with pytest.raises(SlugConflict):
            await posts.create_post(store, SlugAllocator(store, redis), alice, title="Busy")
        assert await store.find_post_by_slug("busy") is None

    async def test_lock_expired_during_write(self, store, alice, caplog):
        redis = fakeredis.FakeAsyncRedis()
        locked = SlugAllocator(store, redis)
        insert_post = store.insert_post

        async def insert_after_expiry(post):
            await redis.delete("slug-lock:expiring")
            return await insert_post(post)

        store.insert_post = insert_after_expiry
        with caplog.at_level(logging.WARNING, logger="content_platform.services.slugs"):
            created = await posts.create_post(store, locked, alice, title="Expiring")

        assert created.slug == "expiring"
        assert (await store.find_post_by_slug("expiring")).id == created.id
        assert "expired before release" in caplog.text
