"""
Favorite endpoints (all act on the current user):
  POST   /favorites                   — favorite a post
  DELETE /favorites/posts/{post_id}   — unfavorite a post
  DELETE /favorites/{favorite_id}     — remove a favorite row by id (owner or admin)
  GET    /favorites/posts/{post_id}   — is the post favorited?
  GET    /favorites                   — favorited posts, hydrated and paged
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.database import get_db
from content_platform.deps import get_content_store, get_current_user, page_request
from content_platform.models import User
from content_platform.pagination import PageRequest
from content_platform.routers.posts import posts_page
from content_platform.schemas import (
    FavoriteRequest,
    FavoriteResult,
    FavoriteStatus,
    PageResponse,
    PostResponse,
)
from content_platform.services import favorites, feed
from content_platform.stores.content_store import ContentStore

router = APIRouter()


@router.post("/", response_model=FavoriteResult, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    body: FavoriteRequest,
    db: AsyncSession = Depends(get_db),
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    affected = await favorites.add_favorite(db, store, current.id, body.post_id)
    return FavoriteResult(affected=affected)


@router.get("/", response_model=PageResponse[PostResponse])
async def my_favorites(
    request: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return posts_page(await feed.get_favorite_posts(db, store, current.id, request))


@router.get("/posts/{post_id}", response_model=FavoriteStatus)
async def check_favorite(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    return FavoriteStatus(post_id=post_id, favorited=await favorites.is_favorited(db, current.id, post_id))


@router.delete("/posts/{post_id}", response_model=FavoriteResult)
async def remove_favorite(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    return FavoriteResult(affected=await favorites.remove_favorite(db, current.id, post_id))


@router.delete("/{favorite_id}", response_model=FavoriteResult)
async def remove_favorite_by_id(
    favorite_id: str,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    return FavoriteResult(affected=await favorites.remove_favorite_by_id(db, favorite_id, current))
