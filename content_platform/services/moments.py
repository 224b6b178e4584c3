"""
Moments: short-form posts with embedded comments and a flat like counter.

Same ownership rules as posts: the author or an elevated user may delete the
moment; a comment may be removed by its author or an elevated user.
"""
import logging

from content_platform.documents import Comment, Moment
from content_platform.errors import (
    CommentNotFound,
    InvalidArgumentError,
    MomentNotFound,
    UnauthorizedError,
)
from content_platform.models import User
from content_platform.pagination import Page, PageRequest
from content_platform.services.identity import can_modify
from content_platform.stores.content_store import ContentStore

logger = logging.getLogger(__name__)


async def create_moment(store: ContentStore, author: User, content: str, images=None) -> Moment:
    if not content or not content.strip():
        raise InvalidArgumentError("moment content cannot be blank")
    moment = Moment(
        content=content,
        images=images,
        author_id=author.id,
        author_name=author.username,
    )
    await store.insert_moment(moment)
    logger.info("Moment created: %s by user %s", moment.id, author.id)
    return moment


async def get_moment(store: ContentStore, moment_id: str) -> Moment:
    moment = await store.find_moment(moment_id)
    if moment is None:
        raise MomentNotFound(moment_id)
    return moment


async def list_moments(store: ContentStore, request: PageRequest) -> Page:
    return await store.find_moments(request)


async def list_by_author(store: ContentStore, author_id: int, request: PageRequest) -> Page:
    return await store.find_moments_by_author(author_id, request)


async def get_moments_by_ids(store: ContentStore, moment_ids: list[str]) -> list[Moment]:
    if not moment_ids:
        raise InvalidArgumentError("moment id list cannot be empty")
    return await store.find_moments_by_ids(moment_ids)


async def delete_moment(store: ContentStore, moment_id: str, actor: User) -> None:
    moment = await get_moment(store, moment_id)
    if not can_modify(actor, moment.author_id):
        raise UnauthorizedError(f"User {actor.id} is not the author of moment {moment_id}")
    if not await store.delete_moment(moment_id):
        raise MomentNotFound(moment_id)
    logger.info("Moment deleted: %s by user %s", moment_id, actor.id)


async def like_moment(store: ContentStore, moment_id: str) -> int:
    likes = await store.increment_moment_likes(moment_id)
    if likes is None:
        raise MomentNotFound(moment_id)
    return likes


async def add_comment(store: ContentStore, moment_id: str, author: User, content: str) -> Moment:
    if not content or not content.strip():
        raise InvalidArgumentError("comment content cannot be blank")
    comment = Comment(author_id=author.id, author_name=author.username, content=content)
    moment = await store.push_moment_comment(moment_id, comment)
    if moment is None:
        raise MomentNotFound(moment_id)
    return moment


async def delete_comment(store: ContentStore, moment_id: str, comment_id: str, actor: User) -> Moment:
    moment = await get_moment(store, moment_id)
    comment = next((c for c in moment.comments if c.id == comment_id), None)
    if comment is None:
        raise CommentNotFound(comment_id, moment_id)
    if not can_modify(actor, comment.author_id):
        raise UnauthorizedError(f"User {actor.id} is not the author of comment {comment_id}")

    updated = await store.pull_moment_comment(moment_id, comment_id)
    if updated is None:
        raise CommentNotFound(comment_id, moment_id)
    return updated
