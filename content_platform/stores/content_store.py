"""
Document-store access for posts and moments.

Every query that feeds a list endpoint goes through ``_page`` so that items,
total, page and size always come from the same filter. Id-set queries only
ever return documents that exist: callers holding relational ids get dangling
ones dropped here, never an error or a null.

Counters and embedded comment lists are changed with single atomic update
operators ($inc / $push / $pull) instead of read-modify-write.
"""
import logging
from typing import Iterable, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from content_platform.clients.mongo_client import MOMENTS, POSTS
from content_platform.documents import Comment, Moment, Post, PostStatus, utcnow
from content_platform.errors import SlugConflict
from content_platform.pagination import DESC, Page, PageRequest

logger = logging.getLogger(__name__)


class ContentStore:
    def __init__(self, db) -> None:
        self._db = db

    @property
    def posts(self):
        return self._db[POSTS]

    @property
    def moments(self):
        return self._db[MOMENTS]

    # ─────────────────────────── Shared helpers ───────────────────────────

    async def _page(self, collection, query: dict, request: PageRequest, model) -> Page:
        total = await collection.count_documents(query)
        if total == 0 or request.offset >= total:
            return Page(items=[], total=total, page=request.page, size=request.size)
        cursor = collection.find(
            query,
            sort=[(request.sort_field, request.sort_direction), ("_id", request.sort_direction)],
            skip=request.offset,
            limit=request.size,
        )
        docs = await cursor.to_list(length=None)
        logger.debug(
            "%s page %d (size %d): %d of %d", collection.name, request.page, request.size, len(docs), total
        )
        return Page(
            items=[model.from_document(d) for d in docs],
            total=total,
            page=request.page,
            size=request.size,
        )

    async def _list(self, collection, query: dict, model, limit: int = 0) -> list:
        cursor = collection.find(query, sort=[("created_at", DESC), ("_id", DESC)], limit=limit)
        docs = await cursor.to_list(length=None)
        return [model.from_document(d) for d in docs]

    @staticmethod
    def _id_filter(ids: Iterable[str]) -> dict:
        return {"_id": {"$in": list(dict.fromkeys(ids))}}

    # ─────────────────────────── Posts ────────────────────────────────────

    async def insert_post(self, post: Post) -> Post:
        try:
            await self.posts.insert_one(post.to_document())
        except DuplicateKeyError as exc:
            raise SlugConflict(post.slug) from exc
        return post

    async def update_post_fields(self, post_id: str, fields: dict) -> Optional[Post]:
        """$set the given top-level fields; None when the post no longer exists.

        Only the named fields are written, so comments pushed concurrently
        are not clobbered by an edit made from an older read.
        """
        try:
            doc = await self.posts.find_one_and_update(
                {"_id": post_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise SlugConflict(fields.get("slug", "")) from exc
        return Post.from_document(doc) if doc else None

    async def delete_post(self, post_id: str) -> bool:
        result = await self.posts.delete_one({"_id": post_id})
        return result.deleted_count == 1

    async def find_post(self, post_id: str) -> Optional[Post]:
        doc = await self.posts.find_one({"_id": post_id})
        return Post.from_document(doc) if doc else None

    async def find_post_by_slug(self, slug: str) -> Optional[Post]:
        doc = await self.posts.find_one({"slug": slug})
        return Post.from_document(doc) if doc else None

    async def post_exists(self, post_id: str) -> bool:
        return await self.posts.find_one({"_id": post_id}, projection={"_id": 1}) is not None

    async def find_posts_by_ids(self, post_ids: Iterable[str], request: PageRequest) -> Page:
        return await self._page(self.posts, self._id_filter(post_ids), request, Post)

    async def find_posts_by_authors(
        self,
        author_ids: Iterable[int],
        request: PageRequest,
        status: PostStatus = PostStatus.PUBLISHED,
    ) -> Page:
        query = {"author_id": {"$in": list(author_ids)}, "status": status.value}
        return await self._page(self.posts, query, request, Post)

    async def find_posts_by_author(
        self,
        author_id: int,
        request: PageRequest,
        status: Optional[PostStatus] = None,
    ) -> Page:
        query: dict = {"author_id": author_id}
        if status is not None:
            query["status"] = status.value
        return await self._page(self.posts, query, request, Post)

    async def find_posts_by_status(self, status: PostStatus, request: PageRequest) -> Page:
        return await self._page(self.posts, {"status": status.value}, request, Post)

    async def find_posts_by_tags(
        self,
        tags: Iterable[str],
        request: PageRequest,
        exclude_id: Optional[str] = None,
        status: PostStatus = PostStatus.PUBLISHED,
    ) -> Page:
        query: dict = {"tags": {"$in": list(tags)}, "status": status.value}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await self._page(self.posts, query, request, Post)

    async def find_popular_posts(self, min_likes: int, request: PageRequest) -> Page:
        query = {"status": PostStatus.PUBLISHED.value, "stats.likes": {"$gte": min_likes}}
        return await self._page(self.posts, query, request, Post)

    async def search_posts(self, keyword: str) -> list[Post]:
        query = {"$text": {"$search": keyword}, "status": PostStatus.PUBLISHED.value}
        return await self._list(self.posts, query, Post)

    async def increment_post_views(self, post_id: str) -> Optional[int]:
        doc = await self.posts.find_one_and_update(
            {"_id": post_id},
            {"$inc": {"stats.views": 1}},
            projection={"stats": 1},
            return_document=ReturnDocument.AFTER,
        )
        return doc["stats"]["views"] if doc else None

    async def push_post_comment(self, post_id: str, comment: Comment) -> Optional[Post]:
        return await self._push_comment(self.posts, post_id, comment, Post)

    async def pull_post_comment(self, post_id: str, comment_id: str) -> Optional[Post]:
        return await self._pull_comment(self.posts, post_id, comment_id, Post)

    # ─────────────────────────── Moments ──────────────────────────────────

    async def insert_moment(self, moment: Moment) -> Moment:
        await self.moments.insert_one(moment.to_document())
        return moment

    async def delete_moment(self, moment_id: str) -> bool:
        result = await self.moments.delete_one({"_id": moment_id})
        return result.deleted_count == 1

    async def find_moment(self, moment_id: str) -> Optional[Moment]:
        doc = await self.moments.find_one({"_id": moment_id})
        return Moment.from_document(doc) if doc else None

    async def find_moments(self, request: PageRequest) -> Page:
        return await self._page(self.moments, {}, request, Moment)

    async def find_moments_by_author(self, author_id: int, request: PageRequest) -> Page:
        return await self._page(self.moments, {"author_id": author_id}, request, Moment)

    async def find_moments_by_authors(self, author_ids: Iterable[int], request: PageRequest) -> Page:
        query = {"author_id": {"$in": list(author_ids)}}
        return await self._page(self.moments, query, request, Moment)

    async def find_moments_by_ids(self, moment_ids: Iterable[str]) -> list[Moment]:
        return await self._list(self.moments, self._id_filter(moment_ids), Moment)

    async def find_popular_moments(self, min_likes: int, request: PageRequest) -> Page:
        query = {"like_count": {"$gte": min_likes}}
        return await self._page(self.moments, query, request, Moment)

    async def search_moments(self, keyword: str) -> list[Moment]:
        return await self._list(self.moments, {"$text": {"$search": keyword}}, Moment)

    async def increment_moment_likes(self, moment_id: str) -> Optional[int]:
        doc = await self.moments.find_one_and_update(
            {"_id": moment_id},
            {"$inc": {"like_count": 1}},
            projection={"like_count": 1},
            return_document=ReturnDocument.AFTER,
        )
        return doc["like_count"] if doc else None

    async def push_moment_comment(self, moment_id: str, comment: Comment) -> Optional[Moment]:
        return await self._push_comment(self.moments, moment_id, comment, Moment)

    async def pull_moment_comment(self, moment_id: str, comment_id: str) -> Optional[Moment]:
        return await self._pull_comment(self.moments, moment_id, comment_id, Moment)

    # ─────────────────────────── Embedded comments ────────────────────────

    async def _push_comment(self, collection, parent_id: str, comment: Comment, model):
        doc = await collection.find_one_and_update(
            {"_id": parent_id},
            {
                "$push": {"comments": comment.model_dump(mode="python")},
                "$set": {"updated_at": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return model.from_document(doc) if doc else None

    async def _pull_comment(self, collection, parent_id: str, comment_id: str, model):
        # Matching on comments.id makes a concurrent double-delete a miss, not a no-op
        doc = await collection.find_one_and_update(
            {"_id": parent_id, "comments.id": comment_id},
            {
                "$pull": {"comments": {"id": comment_id}},
                "$set": {"updated_at": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return model.from_document(doc) if doc else None
