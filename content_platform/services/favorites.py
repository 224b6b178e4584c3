"""
Favorite set: (user_id, post_id) bookmarks in MySQL.

post_id refers to a MongoDB document by its string id. Existence is checked
against the document store before insert so a missing post surfaces as
PostNotFound rather than a silently dangling row; the check and the insert
are not atomic across stores, so rows can still dangle after a post delete.
"""
import logging

from opentelemetry import trace
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.errors import (
    AlreadyFavorited,
    NotFavorited,
    NotFoundError,
    PostNotFound,
    UnauthorizedError,
)
from content_platform.models import PostFavorite, User, utcnow
from content_platform.services.identity import can_modify, resolve_user
from content_platform.stores.content_store import ContentStore
from content_platform.telemetry import SOCIAL_MUTATIONS_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def _find_row(db: AsyncSession, user_id: int, post_id: str):
    result = await db.execute(
        select(PostFavorite).where(
            PostFavorite.user_id == user_id,
            PostFavorite.post_id == post_id,
        )
    )
    return result.scalar_one_or_none()


async def _set_deleted(db: AsyncSession, row: PostFavorite, deleted: int, **values) -> bool:
    # Conditional on the prior value: a concurrent flip makes this a miss
    result = await db.execute(
        update(PostFavorite)
        .where(PostFavorite.id == row.id, PostFavorite.deleted == 1 - deleted)
        .values(deleted=deleted, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return False
    await db.refresh(row)
    return True


async def add_favorite(db: AsyncSession, store: ContentStore, user_id: int, post_id: str) -> int:
    """Favorite a post; returns the number of rows affected (1)."""
    with tracer.start_as_current_span("favorites.add") as span:
        span.set_attribute("user.id", user_id)
        span.set_attribute("post.id", post_id)

        await resolve_user(db, user_id)
        if not await store.post_exists(post_id):
            raise PostNotFound(post_id)

        row = await _find_row(db, user_id, post_id)
        if row is not None and not row.deleted:
            raise AlreadyFavorited(user_id, post_id)

        if row is not None:
            if not await _set_deleted(db, row, 0, created_at=utcnow()):
                raise AlreadyFavorited(user_id, post_id)
        else:
            db.add(PostFavorite(user_id=user_id, post_id=post_id))
            try:
                await db.flush()
            except IntegrityError as exc:
                await db.rollback()
                raise AlreadyFavorited(user_id, post_id) from exc

        SOCIAL_MUTATIONS_TOTAL.labels(op="favorite").inc()
        logger.info("User %s favorited post %s", user_id, post_id)
        return 1


async def remove_favorite(db: AsyncSession, user_id: int, post_id: str) -> int:
    with tracer.start_as_current_span("favorites.remove"):
        row = await _find_row(db, user_id, post_id)
        if row is None or row.deleted or not await _set_deleted(db, row, 1):
            raise NotFavorited(user_id, post_id)

        SOCIAL_MUTATIONS_TOTAL.labels(op="unfavorite").inc()
        logger.info("User %s unfavorited post %s", user_id, post_id)
        return 1


async def remove_favorite_by_id(db: AsyncSession, favorite_id: str, actor: User) -> int:
    """Delete a favorite row by its own id; owner or elevated actor only."""
    row = await db.get(PostFavorite, favorite_id)
    if row is None or row.deleted:
        raise NotFoundError(f"Favorite {favorite_id} not found or already removed")
    if not can_modify(actor, row.user_id):
        raise UnauthorizedError(f"User {actor.id} cannot remove favorite {favorite_id}")
    if not await _set_deleted(db, row, 1):
        raise NotFoundError(f"Favorite {favorite_id} not found or already removed")

    SOCIAL_MUTATIONS_TOTAL.labels(op="unfavorite").inc()
    logger.info("Removed favorite %s (user %s, post %s)", favorite_id, row.user_id, row.post_id)
    return 1


async def is_favorited(db: AsyncSession, user_id: int, post_id: str) -> bool:
    result = await db.execute(
        select(PostFavorite.id).where(
            PostFavorite.user_id == user_id,
            PostFavorite.post_id == post_id,
            PostFavorite.deleted == 0,
        )
    )
    return result.first() is not None


async def list_favorite_post_ids(db: AsyncSession, user_id: int) -> list[str]:
    result = await db.execute(
        select(PostFavorite.post_id)
        .where(PostFavorite.user_id == user_id, PostFavorite.deleted == 0)
        .order_by(PostFavorite.created_at)
    )
    return list(result.scalars().all())
