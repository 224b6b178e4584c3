"""
Identity lookups and the single authorization predicate.

Every delete/update path on posts, comments, moments and favorites asks
``can_modify(actor, owner_id)`` instead of checking roles itself.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.errors import ConflictError, InvalidArgumentError, UserNotFound
from content_platform.models import User, UserStatus

logger = logging.getLogger(__name__)

ELEVATED_ROLES = frozenset({"ADMIN", "SUPER_ADMIN"})


def is_elevated(user: Optional[User]) -> bool:
    if user is None:
        return False
    return any(role.upper() in ELEVATED_ROLES for role in (user.roles or []))


def can_modify(actor: Optional[User], owner_id: Optional[int]) -> bool:
    """True when `actor` owns the resource or holds an elevated role."""
    if actor is None:
        return False
    return actor.id == owner_id or is_elevated(actor)


async def find_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def resolve_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


async def resolve_user_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFound(username)
    return user


async def create_user(
    db: AsyncSession,
    username: str,
    roles: Optional[list[str]] = None,
    password_hash: Optional[str] = None,
) -> User:
    existing = await db.execute(select(User.id).where(User.username == username))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Username '{username}' already taken")

    user = User(username=username, roles=roles or ["USER"], password_hash=password_hash)
    db.add(user)
    try:
        await db.flush()  # get id before commit
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(f"Username '{username}' already taken") from exc

    logger.info("Created user %s (id=%s)", user.username, user.id)
    return user


async def update_user_status(db: AsyncSession, user_id: int, status: str) -> User:
    try:
        new_status = UserStatus(status)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown user status '{status}'") from exc

    user = await resolve_user(db, user_id)
    user.status = new_status.value
    await db.flush()
    logger.info("User %s status → %s", user_id, new_status.value)
    return user


async def update_user_roles(db: AsyncSession, user_id: int, roles: list[str]) -> User:
    if not roles:
        raise InvalidArgumentError("A user needs at least one role")
    user = await resolve_user(db, user_id)
    user.roles = sorted({r.upper() for r in roles})
    await db.flush()
    logger.info("User %s roles → %s", user_id, user.roles)
    return user
