"""
Shared fixtures.

Each test gets a fresh in-memory SQLite schema (relational side) and a fresh
mongomock database (document side) carrying the unique slug index.
"""
import uuid

import pytest
from mongomock_motor import AsyncMongoMockClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from content_platform import models  # noqa: F401  (registers tables)
from content_platform.database import Base
from content_platform.services import identity
from content_platform.services.slugs import SlugAllocator
from content_platform.stores.content_store import ContentStore


@pytest.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def mongo_db():
    client = AsyncMongoMockClient()
    database = client[f"content_platform_{uuid.uuid4().hex}"]
    await database["posts"].create_index([("slug", 1)], unique=True)
    return database


@pytest.fixture
def store(mongo_db):
    return ContentStore(mongo_db)


@pytest.fixture
def allocator(store):
    return SlugAllocator(store)


@pytest.fixture
def make_user(db):
    async def _make(username: str, roles=None):
        return await identity.create_user(db, username, roles=roles)

    return _make


@pytest.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest.fixture
async def bob(make_user):
    return await make_user("bob")


@pytest.fixture
async def admin(make_user):
    return await make_user("root_admin", roles=["USER", "ADMIN"])


@pytest.fixture
async def file_sessions(tmp_path):
    """Session factory over a file-backed SQLite database, one connection per session."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'social.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
