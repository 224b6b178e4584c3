"""
SQLAlchemy ORM models for the relational store.

Tables:
  users          — identity records (roles + account status)
  user_follow    — social graph edges (follower → following), soft-deletable
  post_favorite  — user × post bookmarks; post_id points into MongoDB

post_id is a free-form string with no foreign key: the referenced document
lives in another store and may disappear without this table noticing.
"""
import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from content_platform.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    BANNED = "banned"
    LOCKED = "locked"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    # e.g. ["USER"] or ["USER", "ADMIN"]
    roles: Mapped[list] = mapped_column(JSON, default=lambda: ["USER"], nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), default=UserStatus.ACTIVE.value, nullable=False
    )
    # Owned by the auth service; never read here.
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class UserFollow(Base):
    __tablename__ = "user_follow"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    following_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    # Reset on reactivation so listings order by the latest follow.
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        # One row per ordered pair; reactivation flips `deleted` instead of inserting
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        Index("idx_follow_following", "following_id", "deleted"),
    )


class PostFavorite(Base):
    __tablename__ = "post_favorite"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    post_id: Mapped[str] = mapped_column(String(64), nullable=False)
    deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_favorite_pair"),
        Index("idx_favorite_user", "user_id", "deleted"),
    )
