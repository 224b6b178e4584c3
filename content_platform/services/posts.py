"""
Post lifecycle: create / read / update / delete, embedded comments, views.

Posts live only in MongoDB. Deleting one never touches the favorites table;
favorites pointing at it become dangling and are dropped at read time by the
feed assembler.
"""
import logging
from typing import Awaitable, Callable, Optional

from opentelemetry import trace

from content_platform.config import settings
from content_platform.documents import Comment, Post, PostStatus, utcnow
from content_platform.errors import (
    CommentNotFound,
    InvalidArgumentError,
    PostNotFound,
    SlugConflict,
    UnauthorizedError,
)
from content_platform.models import User
from content_platform.pagination import Page, PageRequest
from content_platform.services.identity import can_modify
from content_platform.services.slugs import SlugAllocator
from content_platform.stores.content_store import ContentStore
from content_platform.telemetry import SLUG_COLLISIONS_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def _write_with_slug(
    allocator: SlugAllocator,
    slug_source: Optional[str],
    exclude_id: Optional[str],
    write: Callable[[str], Awaitable[Post]],
) -> Post:
    """Allocate a slug and write; re-allocate if the unique index says we lost a race."""
    slug = ""
    for attempt in range(1, settings.slug_max_attempts + 1):
        async with allocator.lock(slug_source):
            slug = await allocator.allocate(slug_source, exclude_id)
            try:
                return await write(slug)
            except SlugConflict:
                SLUG_COLLISIONS_TOTAL.inc()
                logger.warning("Slug '%s' taken concurrently (attempt %d)", slug, attempt)
    raise SlugConflict(slug)


# ─────────────────────────── Reads ────────────────────────────────────────

async def get_post(store: ContentStore, post_id: str) -> Post:
    post = await store.find_post(post_id)
    if post is None:
        raise PostNotFound(post_id)
    return post


async def get_post_by_slug(store: ContentStore, slug: str) -> Post:
    if not slug or not slug.strip():
        raise InvalidArgumentError("slug cannot be blank")
    post = await store.find_post_by_slug(slug)
    if post is None:
        raise PostNotFound(slug)
    return post


async def list_published(store: ContentStore, request: PageRequest) -> Page:
    return await store.find_posts_by_status(PostStatus.PUBLISHED, request)


async def list_by_author(
    store: ContentStore,
    author_id: int,
    request: PageRequest,
    status: Optional[PostStatus] = None,
) -> Page:
    return await store.find_posts_by_author(author_id, request, status)


# ─────────────────────────── Writes ───────────────────────────────────────

async def create_post(
    store: ContentStore,
    allocator: SlugAllocator,
    author: User,
    title: str,
    content: str = "",
    tags: Optional[list[str]] = None,
    featured_image: Optional[str] = None,
    status: PostStatus = PostStatus.DRAFT,
) -> Post:
    with tracer.start_as_current_span("posts.create") as span:
        post = Post(
            title=title,
            content=content,
            author_id=author.id,
            author_name=author.username,
            tags=list(tags or []),
            featured_image=featured_image,
            status=status,
        )

        async def insert(slug: str) -> Post:
            post.slug = slug
            return await store.insert_post(post)

        created = await _write_with_slug(allocator, title, None, insert)
        span.set_attribute("post.id", created.id)
        logger.info("Post created: %s (%s) by user %s", created.id, created.slug, author.id)
        return created


async def update_post(
    store: ContentStore,
    allocator: SlugAllocator,
    post_id: str,
    actor: User,
    title: Optional[str] = None,
    content: Optional[str] = None,
    tags: Optional[list[str]] = None,
    status: Optional[PostStatus] = None,
    featured_image: Optional[str] = None,
    slug: Optional[str] = None,
) -> Post:
    with tracer.start_as_current_span("posts.update"):
        post = await get_post(store, post_id)
        if not can_modify(actor, post.author_id):
            raise UnauthorizedError(f"User {actor.id} is not the author of post {post_id}")

        fields: dict = {"updated_at": utcnow()}
        if title is not None and title != post.title:
            fields["title"] = title
        if content is not None:
            fields["content"] = content
        if tags is not None:
            fields["tags"] = list(tags)
        if status is not None:
            fields["status"] = status.value
        if featured_image is not None:
            fields["featured_image"] = featured_image

        # Slug follows the title; an explicit slug is honoured when the title
        # is unchanged; legacy documents without one get it generated.
        slug_source = None
        if "title" in fields:
            slug_source = title
        elif slug is not None and slug != post.slug:
            slug_source = slug
        elif not post.slug:
            slug_source = post.title

        if slug_source is None:
            updated = await store.update_post_fields(post_id, fields)
        else:
            async def write(new_slug: str) -> Post:
                return await store.update_post_fields(post_id, {**fields, "slug": new_slug})

            updated = await _write_with_slug(allocator, slug_source, post_id, write)

        if updated is None:
            raise PostNotFound(post_id)
        logger.info("Post updated: %s by user %s", post_id, actor.id)
        return updated


async def delete_post(store: ContentStore, post_id: str, actor: User) -> None:
    post = await get_post(store, post_id)
    if not can_modify(actor, post.author_id):
        raise UnauthorizedError(f"User {actor.id} is not the author of post {post_id}")
    if not await store.delete_post(post_id):
        raise PostNotFound(post_id)
    logger.info("Post deleted: %s by user %s", post_id, actor.id)


async def increment_views(store: ContentStore, post_id: str) -> int:
    """Atomically bump stats.views; returns the new count."""
    views = await store.increment_post_views(post_id)
    if views is None:
        raise PostNotFound(post_id)
    return views


# ─────────────────────────── Comments ─────────────────────────────────────

async def add_comment(store: ContentStore, post_id: str, author: User, content: str) -> Post:
    if not content or not content.strip():
        raise InvalidArgumentError("comment content cannot be blank")
    comment = Comment(author_id=author.id, author_name=author.username, content=content)
    post = await store.push_post_comment(post_id, comment)
    if post is None:
        raise PostNotFound(post_id)
    logger.info("Comment %s added to post %s by user %s", comment.id, post_id, author.id)
    return post


async def delete_comment(store: ContentStore, post_id: str, comment_id: str, actor: User) -> Post:
    post = await get_post(store, post_id)
    comment = next((c for c in post.comments if c.id == comment_id), None)
    if comment is None:
        raise CommentNotFound(comment_id, post_id)
    if not can_modify(actor, comment.author_id):
        raise UnauthorizedError(f"User {actor.id} is not the author of comment {comment_id}")

    updated = await store.pull_post_comment(post_id, comment_id)
    if updated is None:
        # Removed (or the post deleted) between our read and the $pull
        raise CommentNotFound(comment_id, post_id)
    logger.info("Comment %s removed from post %s by user %s", comment_id, post_id, actor.id)
    return updated
