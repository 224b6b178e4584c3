"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models and stored documents to avoid coupling
transport to storage.
"""
from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from content_platform.documents import Comment, PostStats, PostStatus

T = TypeVar("T")


# ──────────────────────────── Paging ──────────────────────────────────────

class PageResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    size: int


# ──────────────────────────── Users ───────────────────────────────────────

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    roles: Optional[list[str]] = None


class UserResponse(BaseModel):
    id: int
    username: str
    roles: list[str]
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(active|banned|locked)$")


class UserRolesUpdate(BaseModel):
    roles: list[str] = Field(..., min_length=1)


class FollowStatus(BaseModel):
    follower_id: int
    following_id: int
    following: bool


class FollowCounts(BaseModel):
    user_id: int
    following: int
    followers: int


# ──────────────────────────── Posts ───────────────────────────────────────

class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    featured_image: Optional[str] = None
    status: PostStatus = PostStatus.DRAFT


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = None
    tags: Optional[list[str]] = None
    status: Optional[PostStatus] = None
    featured_image: Optional[str] = None
    slug: Optional[str] = None


class PostResponse(BaseModel):
    id: str
    slug: str
    title: str
    content: str
    author_id: int
    author_name: str
    tags: list[str]
    comments: list[Comment]
    featured_image: Optional[str]
    status: PostStatus
    stats: PostStats
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class ViewCount(BaseModel):
    post_id: str
    views: int


# ──────────────────────────── Favorites ───────────────────────────────────

class FavoriteRequest(BaseModel):
    post_id: str


class FavoriteResult(BaseModel):
    affected: int


class FavoriteStatus(BaseModel):
    post_id: str
    favorited: bool


# ──────────────────────────── Moments ─────────────────────────────────────

class MomentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    images: Optional[str] = None


class MomentResponse(BaseModel):
    id: str
    content: str
    images: Optional[str]
    author_id: int
    author_name: str
    like_count: int
    comments: list[Comment]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LikeCount(BaseModel):
    moment_id: str
    like_count: int
