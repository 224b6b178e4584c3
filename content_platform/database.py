"""
Async SQLAlchemy engine + session factory for MySQL.

Holds the relational half of the platform: users, follow edges and post
favorites. The engine is created once at import and reused across requests.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from content_platform.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_size=20,
    max_overflow=10,
    echo=False,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def init_db() -> None:
    """Create all tables if they don't exist (idempotent)."""
    # models must be imported so their tables are registered on Base.metadata
    from content_platform import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")


async def get_db():
    """
    One session per request: commit after the handler returns, roll back if it raises.

    The rollback only covers MySQL. Document writes made earlier in the same
    request (a post insert, a comment $push) are already durable and are not
    undone; handlers order their writes so the relational one comes last or
    the document one tolerates a dangling reference.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
