import pytest

from content_platform.errors import (
    CommentNotFound,
    InvalidArgumentError,
    MomentNotFound,
    UnauthorizedError,
)
from content_platform.pagination import PageRequest
from content_platform.services import feed, moments


class TestMoments:

    async def test_create_and_get(self, store, alice):
        moment = await moments.create_moment(store, alice, "hello world", images="a.png")
        fetched = await moments.get_moment(store, moment.id)

        assert fetched.content == "hello world"
        assert fetched.images == "a.png"
        assert fetched.like_count == 0
        assert fetched.author_name == "alice"

    async def test_blank_content(self, store, alice):
        with pytest.raises(InvalidArgumentError):
            await moments.create_moment(store, alice, "")

    async def test_like(self, store, alice):
        moment = await moments.create_moment(store, alice, "like me")
        assert await moments.like_moment(store, moment.id) == 1
        assert await moments.like_moment(store, moment.id) == 2

        with pytest.raises(MomentNotFound):
            await moments.like_moment(store, "missing")

    async def test_list_by_author(self, store, alice, bob):
        await moments.create_moment(store, alice, "a1")
        await moments.create_moment(store, alice, "a2")
        await moments.create_moment(store, bob, "b1")

        page = await moments.list_by_author(store, alice.id, PageRequest(0, 10))
        assert page.total == 2
        assert [m.content for m in page.items] == ["a2", "a1"]
        assert (await moments.list_moments(store, PageRequest(0, 2))).total == 3

    async def test_by_ids_drops_missing(self, store, alice):
        kept = await moments.create_moment(store, alice, "kept")
        found = await moments.get_moments_by_ids(store, [kept.id, "gone", kept.id])
        assert [m.id for m in found] == [kept.id]

        with pytest.raises(InvalidArgumentError):
            await moments.get_moments_by_ids(store, [])

    async def test_delete(self, store, alice, bob, admin):
        mine = await moments.create_moment(store, alice, "mine")
        with pytest.raises(UnauthorizedError):
            await moments.delete_moment(store, mine.id, bob)

        await moments.delete_moment(store, mine.id, admin)
        with pytest.raises(MomentNotFound):
            await moments.get_moment(store, mine.id)


class TestMomentComments:

    async def test_comment_lifecycle(self, store, alice, bob):
        moment = await moments.create_moment(store, alice, "talk")
        moment = await moments.add_comment(store, moment.id, bob, "reply")
        comment_id = moment.comments[0].id

        with pytest.raises(UnauthorizedError):
            await moments.delete_comment(store, moment.id, comment_id, alice)

        moment = await moments.delete_comment(store, moment.id, comment_id, bob)
        assert moment.comments == []

        with pytest.raises(CommentNotFound):
            await moments.delete_comment(store, moment.id, comment_id, bob)

    async def test_comment_on_missing_moment(self, store, alice):
        with pytest.raises(MomentNotFound):
            await moments.add_comment(store, "missing", alice, "hi")


class TestPopularMoments:

    async def test_threshold(self, store, alice):
        quiet = await moments.create_moment(store, alice, "quiet")
        loud = await moments.create_moment(store, alice, "loud")
        for _ in range(3):
            await moments.like_moment(store, loud.id)
        await moments.like_moment(store, quiet.id)

        page = await feed.get_popular_moments(store, 2, PageRequest(0, 10))
        assert [m.id for m in page.items] == [loud.id]

        with pytest.raises(InvalidArgumentError):
            await feed.get_popular_moments(store, -1, PageRequest(0, 10))
