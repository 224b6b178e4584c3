"""
Document shapes stored in MongoDB.

Collections:
  posts    — long-form posts; comments embedded, stats sub-document
  moments  — short-form posts; comments embedded, flat like_count

Author identity is copied in (author_id + author_name) at write time; there is
no live join back to the users table.
"""
import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    # Naive UTC: that's what MongoDB hands back without tz_aware=True
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_document_id() -> str:
    return str(ObjectId())


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Comment(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    author_id: int
    author_name: str
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class PostStats(BaseModel):
    views: int = 0
    likes: int = 0
    shares: int = 0


class _Document(BaseModel):
    id: str = Field(default_factory=new_document_id)

    @classmethod
    def from_document(cls, doc: dict):
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def to_document(self) -> dict:
        doc = self.model_dump(mode="python", exclude={"id"})
        doc["_id"] = self.id
        return doc


class Post(_Document):
    slug: str = ""
    title: str
    content: str = ""
    author_id: int
    author_name: str
    tags: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    featured_image: Optional[str] = None
    status: PostStatus = PostStatus.DRAFT
    stats: PostStats = Field(default_factory=PostStats)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        doc = super().to_document()
        doc["status"] = self.status.value
        return doc


class Moment(_Document):
    content: str
    images: Optional[str] = None
    author_id: int
    author_name: str
    like_count: int = 0
    comments: list[Comment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
