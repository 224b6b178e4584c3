"""
Post endpoints:
  POST   /posts                          — create (draft unless status given)
  GET    /posts                          — published posts, paged
  GET    /posts/search?keyword=          — full-text search over published posts
  GET    /posts/popular?min_likes=       — published posts above a like threshold
  GET    /posts/author/{author_id}       — posts by one author, paged
  GET    /posts/slug/{slug}              — fetch by slug (counts a view)
  GET    /posts/{id}                     — fetch by id
  PUT    /posts/{id}                     — update (author or admin)
  DELETE /posts/{id}                     — delete (author or admin)
  POST   /posts/{id}/views               — bump view counter
  GET    /posts/{id}/recommendations     — same-tag recommendations
  POST   /posts/{id}/comments            — add comment
  DELETE /posts/{id}/comments/{cid}      — delete comment (author or admin)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from content_platform.config import settings
from content_platform.deps import (
    get_content_store,
    get_current_user,
    get_slug_allocator,
    page_request,
)
from content_platform.documents import PostStatus
from content_platform.models import User
from content_platform.pagination import PageRequest
from content_platform.schemas import (
    CommentCreate,
    PageResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    ViewCount,
)
from content_platform.services import feed, posts
from content_platform.services.slugs import SlugAllocator
from content_platform.stores.content_store import ContentStore

logger = logging.getLogger(__name__)
router = APIRouter()


def posts_page(page) -> PageResponse[PostResponse]:
    return PageResponse[PostResponse](
        items=[PostResponse.model_validate(p) for p in page.items],
        total=page.total,
        page=page.page,
        size=page.size,
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    store: ContentStore = Depends(get_content_store),
    allocator: SlugAllocator = Depends(get_slug_allocator),
    current: User = Depends(get_current_user),
):
    return await posts.create_post(
        store,
        allocator,
        current,
        title=body.title,
        content=body.content,
        tags=body.tags,
        featured_image=body.featured_image,
        status=body.status,
    )


@router.get("/", response_model=PageResponse[PostResponse])
async def list_published(
    request: PageRequest = Depends(page_request),
    store: ContentStore = Depends(get_content_store),
):
    return posts_page(await posts.list_published(store, request))


@router.get("/search", response_model=list[PostResponse])
async def search_posts(keyword: str = Query(""), store: ContentStore = Depends(get_content_store)):
    return await feed.search_by_keyword(store, keyword)


@router.get("/popular", response_model=PageResponse[PostResponse])
async def popular_posts(
    min_likes: Optional[int] = Query(None),
    request: PageRequest = Depends(page_request),
    store: ContentStore = Depends(get_content_store),
):
    threshold = settings.popular_min_likes if min_likes is None else min_likes
    return posts_page(await feed.get_popular_posts(store, threshold, request))


@router.get("/author/{author_id}", response_model=PageResponse[PostResponse])
async def posts_by_author(
    author_id: int,
    post_status: Optional[PostStatus] = Query(None, alias="status"),
    request: PageRequest = Depends(page_request),
    store: ContentStore = Depends(get_content_store),
):
    return posts_page(await posts.list_by_author(store, author_id, request, post_status))


@router.get("/slug/{slug}", response_model=PostResponse)
async def get_post_by_slug(slug: str, store: ContentStore = Depends(get_content_store)):
    """Reading by slug is a page view: the counter is bumped on every fetch."""
    post = await posts.get_post_by_slug(store, slug)
    post.stats.views = await feed.increment_views(store, post.id)
    return post


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, store: ContentStore = Depends(get_content_store)):
    return await posts.get_post(store, post_id)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    body: PostUpdate,
    store: ContentStore = Depends(get_content_store),
    allocator: SlugAllocator = Depends(get_slug_allocator),
    current: User = Depends(get_current_user),
):
    return await posts.update_post(
        store,
        allocator,
        post_id,
        current,
        title=body.title,
        content=body.content,
        tags=body.tags,
        status=body.status,
        featured_image=body.featured_image,
        slug=body.slug,
    )


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    await posts.delete_post(store, post_id, current)


@router.post("/{post_id}/views", response_model=ViewCount)
async def increment_views(post_id: str, store: ContentStore = Depends(get_content_store)):
    views = await feed.increment_views(store, post_id)
    return ViewCount(post_id=post_id, views=views)


@router.get("/{post_id}/recommendations", response_model=list[PostResponse])
async def recommendations(
    post_id: str,
    limit: int = Query(settings.recommend_limit),
    store: ContentStore = Depends(get_content_store),
):
    return await feed.recommend_by_tag(store, post_id, limit)


@router.post("/{post_id}/comments", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    body: CommentCreate,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return await posts.add_comment(store, post_id, current, body.content)


@router.delete("/{post_id}/comments/{comment_id}", response_model=PostResponse)
async def delete_comment(
    post_id: str,
    comment_id: str,
    store: ContentStore = Depends(get_content_store),
    current: User = Depends(get_current_user),
):
    return await posts.delete_comment(store, post_id, comment_id, current)
