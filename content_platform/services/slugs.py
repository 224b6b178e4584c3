"""
Slug allocation for posts.

  "Hello, World!"  →  hello-world
  second one       →  hello-world-1, then hello-world-2, …
  "!!!"            →  post

Allocation looks up MongoDB by slug, which is a check-then-act. Two layers keep
it honest: an optional Redis lock per base slug serialises allocators on the
same title, and the unique slug index rejects whatever still slips through
(callers retry on SlugConflict).
"""
import contextlib
import logging
import re
from typing import Optional

from redis.exceptions import LockError

from content_platform.clients.redis_client import slug_lock
from content_platform.errors import SlugConflict
from content_platform.stores.content_store import ContentStore

logger = logging.getLogger(__name__)

PLACEHOLDER_SLUG = "post"

_DISALLOWED = re.compile(r"[^a-z0-9一-龥\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def base_slug(title: Optional[str]) -> str:
    if not title:
        return PLACEHOLDER_SLUG
    slug = _DISALLOWED.sub("", title.lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    slug = _HYPHENS.sub("-", slug).strip("-")
    return slug or PLACEHOLDER_SLUG


class SlugAllocator:
    def __init__(self, store: ContentStore, redis=None) -> None:
        self._store = store
        self._redis = redis

    @contextlib.asynccontextmanager
    async def lock(self, title: Optional[str]):
        """
        Hold across allocate() and the document write that uses the slug.

        Failing to acquire within the blocking timeout is a SlugConflict. A
        release that fails (the lock expired mid-write) is only logged: the
        write itself already succeeded and the unique index still guards it.
        """
        if self._redis is None:
            yield
            return

        base = base_slug(title)
        lock = slug_lock(self._redis, base)
        try:
            acquired = await lock.acquire()
        except LockError as exc:
            raise SlugConflict(base) from exc
        if not acquired:
            logger.warning("Timed out waiting for slug lock on '%s'", base)
            raise SlugConflict(base)

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as exc:
                logger.warning("Slug lock on '%s' expired before release: %s", base, exc)

    async def allocate(self, title: Optional[str], exclude_id: Optional[str] = None) -> str:
        """
        Return the first free slug for `title`.

        A slug already held by `exclude_id` counts as free, so re-saving a
        post under its own title keeps its slug.
        """
        base = base_slug(title)
        candidate = base
        counter = 0
        while True:
            existing = await self._store.find_post_by_slug(candidate)
            if existing is None or existing.id == exclude_id:
                return candidate
            counter += 1
            candidate = f"{base}-{counter}"
