"""
Feed endpoints: GET /feed/following, GET /feed/following/moments

Both resolve the current user's follow list in MySQL first, then hydrate the
authors' content from MongoDB in one query (see services/feed.py).
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.database import get_db
from content_platform.deps import get_content_store, get_current_user, page_request
from content_platform.models import User
from content_platform.pagination import PageRequest
from content_platform.routers.moments import moments_page
from content_platform.routers.posts import posts_page
from content_platform.schemas import MomentResponse, PageResponse, PostResponse
from content_platform.services import feed
from content_platform.stores.content_store import ContentStore

router = APIRouter()


@router.get("/following", response_model=PageResponse[PostResponse])
async def following_feed(
    request: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return posts_page(await feed.get_following_feed(db, store, current.id, request))


@router.get("/following/moments", response_model=PageResponse[MomentResponse])
async def following_moments(
    request: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return moments_page(await feed.get_following_moments(db, store, current.id, request))
