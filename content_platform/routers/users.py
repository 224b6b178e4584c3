"""
User & follow-graph endpoints:
  POST   /users                    — create a user record
  GET    /users/{id}               — fetch a user
  PUT    /users/{id}/status        — ban / lock / reactivate (elevated only)
  PUT    /users/{id}/roles         — replace role set (elevated only)
  POST   /users/{id}/follow        — current user follows {id}
  DELETE /users/{id}/follow        — current user unfollows {id}
  GET    /users/{id}/follow        — does the current user follow {id}?
  GET    /users/{id}/following     — paged users {id} follows
  GET    /users/{id}/followers     — paged users following {id}
  GET    /users/{id}/follow-counts — following / follower totals
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.database import get_db
from content_platform.deps import get_current_user, page_request
from content_platform.errors import UnauthorizedError
from content_platform.models import User
from content_platform.pagination import PageRequest
from content_platform.schemas import (
    FollowCounts,
    FollowStatus,
    PageResponse,
    UserCreate,
    UserResponse,
    UserRolesUpdate,
    UserStatusUpdate,
)
from content_platform.services import follow_graph, identity

logger = logging.getLogger(__name__)
router = APIRouter()


def users_page(page) -> PageResponse[UserResponse]:
    return PageResponse[UserResponse](
        items=[UserResponse.model_validate(u) for u in page.items],
        total=page.total,
        page=page.page,
        size=page.size,
    )


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    return await identity.create_user(db, body.username, roles=body.roles)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await identity.resolve_user(db, user_id)


@router.put("/{user_id}/status", response_model=UserResponse)
async def update_status(
    user_id: int,
    body: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    if not identity.is_elevated(current):
        raise UnauthorizedError("Only administrators can change account status")
    return await identity.update_user_status(db, user_id, body.status)


@router.put("/{user_id}/roles", response_model=UserResponse)
async def update_roles(
    user_id: int,
    body: UserRolesUpdate,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    if not identity.is_elevated(current):
        raise UnauthorizedError("Only administrators can change roles")
    return await identity.update_user_roles(db, user_id, body.roles)


@router.post("/{user_id}/follow", response_model=FollowStatus, status_code=status.HTTP_201_CREATED)
async def follow_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    await follow_graph.follow(db, current.id, user_id)
    return FollowStatus(follower_id=current.id, following_id=user_id, following=True)


@router.delete("/{user_id}/follow", response_model=FollowStatus)
async def unfollow_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    await follow_graph.unfollow(db, current.id, user_id)
    return FollowStatus(follower_id=current.id, following_id=user_id, following=False)


@router.get("/{user_id}/follow", response_model=FollowStatus)
async def is_following(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current: User = Depends(get_current_user),
):
    following = await follow_graph.is_following(db, current.id, user_id)
    return FollowStatus(follower_id=current.id, following_id=user_id, following=following)


@router.get("/{user_id}/following", response_model=PageResponse[UserResponse])
async def list_following(
    user_id: int,
    request: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
):
    return users_page(await follow_graph.list_following(db, user_id, request))


@router.get("/{user_id}/followers", response_model=PageResponse[UserResponse])
async def list_followers(
    user_id: int,
    request: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
):
    return users_page(await follow_graph.list_followers(db, user_id, request))


@router.get("/{user_id}/follow-counts", response_model=FollowCounts)
async def follow_counts(user_id: int, db: AsyncSession = Depends(get_db)):
    await identity.resolve_user(db, user_id)
    return FollowCounts(
        user_id=user_id,
        following=await follow_graph.count_following(db, user_id),
        followers=await follow_graph.count_followers(db, user_id),
    )
