"""
Moment endpoints:
  POST   /moments                        — create
  GET    /moments                        — all moments, paged
  GET    /moments/search?keyword=        — full-text search
  GET    /moments/popular?min_likes=     — moments above a like threshold
  POST   /moments/batch                  — fetch by id list
  GET    /moments/user/{user_id}         — one author's moments
  GET    /moments/{id}                   — fetch one
  DELETE /moments/{id}                   — delete (author or admin)
  POST   /moments/{id}/like              — bump like counter
  POST   /moments/{id}/comments          — add comment
  DELETE /moments/{id}/comments/{cid}    — delete comment (author or admin)
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from content_platform.config import settings
from content_platform.deps import get_content_store, get_current_user, page_request
from content_platform.models import User
from content_platform.pagination import PageRequest
from content_platform.schemas import (
    CommentCreate,
    LikeCount,
    MomentCreate,
    MomentResponse,
    PageResponse,
)
from content_platform.services import feed, moments
from content_platform.stores.content_store import ContentStore

router = APIRouter()


def moments_page(page) -> PageResponse[MomentResponse]:
    return PageResponse[MomentResponse](
        items=[MomentResponse.model_validate(m) for m in page.items],
        total=page.total,
        page=page.page,
        size=page.size,
    )


@router.post("/", response_model=MomentResponse, status_code=status.HTTP_201_CREATED)
async def create_moment(
    body: MomentCreate,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return await moments.create_moment(store, current, body.content, body.images)


@router.get("/", response_model=PageResponse[MomentResponse])
async def list_moments(
    request: PageRequest = Depends(page_request),
    store: ContentStore = Depends(get_content_store),
):
    return moments_page(await moments.list_moments(store, request))


@router.get("/search", response_model=list[MomentResponse])
async def search_moments(keyword: str = Query(""), store: ContentStore = Depends(get_content_store)):
    return await feed.search_moments(store, keyword)


@router.get("/popular", response_model=PageResponse[MomentResponse])
async def popular_moments(
    min_likes: Optional[int] = Query(None),
    request: PageRequest = Depends(page_request),
    store: ContentStore = Depends(get_content_store),
):
    threshold = settings.popular_min_likes if min_likes is None else min_likes
    return moments_page(await feed.get_popular_moments(store, threshold, request))


@router.post("/batch", response_model=list[MomentResponse])
async def moments_by_ids(
    ids: list[str] = Body(...),
    store: ContentStore = Depends(get_content_store),
):
    return await moments.get_moments_by_ids(store, ids)


@router.get("/user/{user_id}", response_model=PageResponse[MomentResponse])
async def moments_by_user(
    user_id: int,
    request: PageRequest = Depends(page_request),
    store: ContentStore = Depends(get_content_store),
):
    return moments_page(await moments.list_by_author(store, user_id, request))


@router.get("/{moment_id}", response_model=MomentResponse)
async def get_moment(moment_id: str, store: ContentStore = Depends(get_content_store)):
    return await moments.get_moment(store, moment_id)


@router.delete("/{moment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_moment(
    moment_id: str,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    await moments.delete_moment(store, moment_id, current)


@router.post("/{moment_id}/like", response_model=LikeCount)
async def like_moment(
    moment_id: str,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return LikeCount(moment_id=moment_id, like_count=await moments.like_moment(store, moment_id))


@router.post("/{moment_id}/comments", response_model=MomentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    moment_id: str,
    body: CommentCreate,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return await moments.add_comment(store, moment_id, current, body.content)


@router.delete("/{moment_id}/comments/{comment_id}", response_model=MomentResponse)
async def delete_comment(
    moment_id: str,
    comment_id: str,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return await moments.delete_comment(store, moment_id, comment_id, current)
