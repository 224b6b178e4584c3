"""
Feed assembly: relational id set → one batched document fetch.

Every composed read runs in two sequential stages:

  Stage 1 │ Resolve ids (MySQL)
  ────────┼──────────────────────────────────────────────────────────────
          │  following feed  — one page of followed users → author ids
          │  favorites       — every active favorite → post ids
          │
  Stage 2 │ Hydrate (MongoDB)
  ────────┼──────────────────────────────────────────────────────────────
          │  One query filtered by the id set. The document store owns
          │  ordering, paging and the total. Ids whose document is gone are
          │  dropped, never surfaced as errors or nulls.

An empty id set short-circuits before stage 2; no document query is issued.
Stage 1 commits nothing, so a failure in stage 2 leaves no partial state.
"""
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from content_platform.errors import InvalidArgumentError
from content_platform.pagination import DESC, Page, PageRequest
from content_platform.services import favorites, follow_graph, posts
from content_platform.services.identity import resolve_user
from content_platform.stores.content_store import ContentStore
from content_platform.telemetry import DANGLING_REFERENCES_TOTAL, FEED_LATENCY

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def hydrate(
    ids: Sequence,
    fetch: Callable[[list, PageRequest], Awaitable[Page]],
    request: PageRequest,
    dangling_source: Optional[str] = None,
) -> Page:
    """
    Fetch documents for an id set with one paged query.

    With `dangling_source` set, ids are document ids and any that did not
    resolve are counted (and logged) as dangling references.
    """
    unique_ids = list(dict.fromkeys(ids))
    if not unique_ids:
        return Page.empty(request)

    page = await fetch(unique_ids, request)

    if dangling_source is not None:
        dangling = len(unique_ids) - page.total
        if dangling > 0:
            DANGLING_REFERENCES_TOTAL.labels(source=dangling_source).inc(dangling)
            logger.warning(
                "%d of %d %s ids point at missing documents, dropped",
                dangling, len(unique_ids), dangling_source,
            )
    return page


# ─────────────────────────── Favorites ────────────────────────────────────

async def get_favorite_posts(
    db: AsyncSession,
    store: ContentStore,
    user_id: int,
    request: PageRequest,
) -> Page:
    start_time = time.time()
    with tracer.start_as_current_span("feed.favorites") as span:
        span.set_attribute("user.id", user_id)
        await resolve_user(db, user_id)

        post_ids = await favorites.list_favorite_post_ids(db, user_id)
        span.set_attribute("favorites.id_count", len(post_ids))

        page = await hydrate(post_ids, store.find_posts_by_ids, request, "favorites")

    FEED_LATENCY.labels(feed="favorites").observe(time.time() - start_time)
    return page


# ─────────────────────────── Following ────────────────────────────────────

async def _following_author_ids(db: AsyncSession, user_id: int, request: PageRequest) -> list[int]:
    # Paged over followed *users*: page N of the feed draws from page N of the
    # follow list, newest follows first.
    followed = await follow_graph.list_following(db, user_id, PageRequest(request.page, request.size))
    return [u.id for u in followed.items]


async def get_following_feed(
    db: AsyncSession,
    store: ContentStore,
    user_id: int,
    request: PageRequest,
) -> Page:
    """Published posts by the users `user_id` follows, newest first."""
    start_time = time.time()
    with tracer.start_as_current_span("feed.following") as span:
        span.set_attribute("user.id", user_id)

        author_ids = await _following_author_ids(db, user_id, request)
        span.set_attribute("following.author_count", len(author_ids))

        page = await hydrate(
            author_ids,
            store.find_posts_by_authors,
            request.with_sort("created_at", DESC),
        )
        span.set_attribute("feed.total", page.total)

    FEED_LATENCY.labels(feed="following").observe(time.time() - start_time)
    return page


async def get_following_moments(
    db: AsyncSession,
    store: ContentStore,
    user_id: int,
    request: PageRequest,
) -> Page:
    start_time = time.time()
    with tracer.start_as_current_span("feed.following_moments") as span:
        span.set_attribute("user.id", user_id)

        author_ids = await _following_author_ids(db, user_id, request)
        page = await hydrate(
            author_ids,
            store.find_moments_by_authors,
            request.with_sort("created_at", DESC),
        )

    FEED_LATENCY.labels(feed="following_moments").observe(time.time() - start_time)
    return page


# ─────────────────────────── Search / discovery ───────────────────────────

async def search_by_keyword(store: ContentStore, keyword: Optional[str]) -> list:
    if keyword is None or not keyword.strip():
        raise InvalidArgumentError("search keyword cannot be blank")
    return await store.search_posts(keyword.strip())


async def search_moments(store: ContentStore, keyword: Optional[str]) -> list:
    if keyword is None or not keyword.strip():
        raise InvalidArgumentError("search keyword cannot be blank")
    return await store.search_moments(keyword.strip())


async def recommend_by_tag(store: ContentStore, post_id: str, limit: int) -> list:
    """Other published posts sharing at least one tag with `post_id`, newest first."""
    if limit < 1:
        raise InvalidArgumentError("limit must be >= 1")

    source = await posts.get_post(store, post_id)
    if not source.tags:
        return []

    page = await store.find_posts_by_tags(
        source.tags,
        PageRequest(page=0, size=limit),
        exclude_id=source.id,
    )
    return page.items


async def get_popular_posts(store: ContentStore, min_likes: int, request: PageRequest) -> Page:
    """Published posts with at least `min_likes` likes, most viewed first."""
    if min_likes < 0:
        raise InvalidArgumentError("min_likes cannot be negative")
    return await store.find_popular_posts(min_likes, request.with_sort("stats.views", DESC))


async def get_popular_moments(store: ContentStore, min_likes: int, request: PageRequest) -> Page:
    if min_likes < 0:
        raise InvalidArgumentError("min_likes cannot be negative")
    return await store.find_popular_moments(min_likes, request.with_sort("created_at", DESC))


async def increment_views(store: ContentStore, post_id: str) -> int:
    return await posts.increment_views(store, post_id)
