"""
MongoDB client wrapper.

Collection layout:
  posts    — unique index on slug, text index on (title, content),
             (author_id, created_at) and (tags, status, created_at) for feeds
  moments  — (author_id, created_at), (like_count, created_at), text on content

The client is created once at startup and shared by every request.
"""
import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING, TEXT, AsyncMongoClient

from content_platform.config import settings

logger = logging.getLogger(__name__)

_mongo: Optional[AsyncMongoClient] = None

POSTS = "posts"
MOMENTS = "moments"


async def init_mongo() -> None:
    global _mongo
    _mongo = AsyncMongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        connectTimeoutMS=settings.mongo_timeout_ms,
    )
    await _mongo.admin.command("ping")
    await ensure_indexes(get_database())
    logger.info("MongoDB connected at %s (db=%s)", settings.mongo_uri, settings.mongo_database)


async def stop_mongo() -> None:
    if _mongo is not None:
        await _mongo.close()


def get_database():
    if _mongo is None:
        raise RuntimeError("MongoDB not initialised; call init_mongo() at startup")
    return _mongo[settings.mongo_database]


async def ensure_indexes(db) -> None:
    """Create collection indexes if missing (idempotent)."""
    posts = db[POSTS]
    await posts.create_index([("slug", ASCENDING)], unique=True, name="uq_slug")
    await posts.create_index([("title", TEXT), ("content", TEXT)], name="txt_title_content")
    await posts.create_index(
        [("author_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
        name="author_status_created_idx",
    )
    await posts.create_index(
        [("tags", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
        name="tags_status_created_idx",
    )

    moments = db[MOMENTS]
    await moments.create_index(
        [("author_id", ASCENDING), ("created_at", DESCENDING)], name="author_created_idx"
    )
    await moments.create_index(
        [("like_count", DESCENDING), ("created_at", DESCENDING)], name="like_created_idx"
    )
    await moments.create_index([("content", TEXT)], name="txt_content")
    logger.info("MongoDB indexes ensured")
