"""
FastAPI dependencies shared by the routers.

Token verification happens upstream: the auth gateway validates the bearer
token and forwards the principal as ``X-User-Id``. This module only resolves
that id against the users table.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.clients.mongo_client import get_database
from content_platform.clients.redis_client import get_redis
from content_platform.database import get_db
from content_platform.models import User, UserStatus
from content_platform.pagination import PageRequest
from content_platform.services.identity import find_user
from content_platform.services.slugs import SlugAllocator
from content_platform.stores.content_store import ContentStore


def get_content_store() -> ContentStore:
    return ContentStore(get_database())


def get_slug_allocator(store: ContentStore = Depends(get_content_store)) -> SlugAllocator:
    return SlugAllocator(store, get_redis())


async def get_current_user(
    x_user_id: Optional[int] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing principal")
    user = await find_user(db, x_user_id)
    if user is None or user.status != UserStatus.ACTIVE.value:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def page_request(
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = Query(None, description="field,direction e.g. createdAt,desc"),
) -> PageRequest:
    return PageRequest.of(page=page, size=size, sort=sort)
