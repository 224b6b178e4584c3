"""
Follow graph: directed (follower → following) edges in MySQL.

Edges are soft-deleted. Unfollow sets ``deleted=1``; following again flips it
back and refreshes ``created_at`` so the edge sorts as a fresh follow. The
unique (follower_id, following_id) index keeps one row per ordered pair, so
two concurrent follows cannot both insert: the loser gets AlreadyFollowing.

Flipping ``deleted`` is a conditional UPDATE on the expected prior value, so
of two concurrent re-follows (or unfollows) exactly one changes the row.
"""
import logging

from opentelemetry import trace
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.errors import (
    AlreadyFollowing,
    InvalidArgumentError,
    NotFollowing,
)
from content_platform.models import User, UserFollow, utcnow
from content_platform.pagination import Page, PageRequest
from content_platform.services.identity import resolve_user
from content_platform.telemetry import SOCIAL_MUTATIONS_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def _find_edge(db: AsyncSession, follower_id: int, following_id: int):
    result = await db.execute(
        select(UserFollow).where(
            UserFollow.follower_id == follower_id,
            UserFollow.following_id == following_id,
        )
    )
    return result.scalar_one_or_none()


async def _set_deleted(db: AsyncSession, edge: UserFollow, deleted: int, **values) -> bool:
    """Flip ``deleted`` only if the row still holds the opposite value."""
    result = await db.execute(
        update(UserFollow)
        .where(UserFollow.id == edge.id, UserFollow.deleted == 1 - deleted)
        .values(deleted=deleted, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return False
    await db.refresh(edge)
    return True


async def follow(db: AsyncSession, follower_id: int, following_id: int) -> UserFollow:
    with tracer.start_as_current_span("follow_graph.follow"):
        if follower_id == following_id:
            raise InvalidArgumentError("Cannot follow yourself")

        await resolve_user(db, follower_id)
        await resolve_user(db, following_id)

        edge = await _find_edge(db, follower_id, following_id)
        if edge is not None and not edge.deleted:
            raise AlreadyFollowing(follower_id, following_id)

        if edge is not None:
            if not await _set_deleted(db, edge, 0, created_at=utcnow()):
                raise AlreadyFollowing(follower_id, following_id)
        else:
            edge = UserFollow(follower_id=follower_id, following_id=following_id)
            db.add(edge)
            try:
                await db.flush()
            except IntegrityError as exc:
                # Another request inserted the same pair between our read and write
                await db.rollback()
                raise AlreadyFollowing(follower_id, following_id) from exc

        SOCIAL_MUTATIONS_TOTAL.labels(op="follow").inc()
        logger.info("%s followed %s", follower_id, following_id)
        return edge


async def unfollow(db: AsyncSession, follower_id: int, following_id: int) -> None:
    with tracer.start_as_current_span("follow_graph.unfollow"):
        edge = await _find_edge(db, follower_id, following_id)
        if edge is None or edge.deleted or not await _set_deleted(db, edge, 1):
            raise NotFollowing(follower_id, following_id)

        SOCIAL_MUTATIONS_TOTAL.labels(op="unfollow").inc()
        logger.info("%s unfollowed %s", follower_id, following_id)


async def is_following(db: AsyncSession, follower_id: int, following_id: int) -> bool:
    result = await db.execute(
        select(UserFollow.id).where(
            UserFollow.follower_id == follower_id,
            UserFollow.following_id == following_id,
            UserFollow.deleted == 0,
        )
    )
    return result.first() is not None


async def count_following(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.follower_id == user_id, UserFollow.deleted == 0)
    )
    return result.scalar_one()


async def count_followers(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.following_id == user_id, UserFollow.deleted == 0)
    )
    return result.scalar_one()


async def list_following(db: AsyncSession, user_id: int, request: PageRequest) -> Page:
    """Users that `user_id` follows, most recently followed first."""
    await resolve_user(db, user_id)
    rows = await db.execute(
        select(User)
        .join(UserFollow, UserFollow.following_id == User.id)
        .where(UserFollow.follower_id == user_id, UserFollow.deleted == 0)
        .order_by(UserFollow.created_at.desc(), UserFollow.id.desc())
        .offset(request.offset)
        .limit(request.size)
    )
    # Separate count query: approximately consistent with the page under writes
    total = await count_following(db, user_id)
    return Page(items=list(rows.scalars().all()), total=total, page=request.page, size=request.size)


async def list_followers(db: AsyncSession, user_id: int, request: PageRequest) -> Page:
    """Users following `user_id`, most recent follower first."""
    await resolve_user(db, user_id)
    rows = await db.execute(
        select(User)
        .join(UserFollow, UserFollow.follower_id == User.id)
        .where(UserFollow.following_id == user_id, UserFollow.deleted == 0)
        .order_by(UserFollow.created_at.desc(), UserFollow.id.desc())
        .offset(request.offset)
        .limit(request.size)
    )
    total = await count_followers(db, user_id)
    return Page(items=list(rows.scalars().all()), total=total, page=request.page, size=request.size)
