"""
Paging primitives shared by the relational and document sides.

Pages are zero-based. Sort is requested with API field names
(``createdAt,desc``) and translated to document field paths here, so an
unknown field is rejected before any store is touched.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

from content_platform.config import settings
from content_platform.errors import InvalidArgumentError

T = TypeVar("T")
U = TypeVar("U")

ASC = 1
DESC = -1

SORT_FIELDS = {
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "title": "title",
    "views": "stats.views",
    "likes": "stats.likes",
    "likeCount": "like_count",
    "like_count": "like_count",
}


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 10
    sort_field: str = "created_at"
    sort_direction: int = DESC

    def __post_init__(self) -> None:
        if self.page < 0:
            raise InvalidArgumentError("page must be >= 0")
        if self.size < 1 or self.size > settings.max_page_size:
            raise InvalidArgumentError(
                f"size must be between 1 and {settings.max_page_size}"
            )
        if self.sort_direction not in (ASC, DESC):
            raise InvalidArgumentError("sort direction must be asc or desc")

    @property
    def offset(self) -> int:
        return self.page * self.size

    @classmethod
    def of(cls, page: int = 0, size: Optional[int] = None, sort: Optional[str] = None) -> "PageRequest":
        """Build from raw query parameters, e.g. ``sort="createdAt,desc"``."""
        size = settings.default_page_size if size is None else size
        if not sort:
            return cls(page=page, size=size)
        name, _, direction = sort.partition(",")
        sort_field = SORT_FIELDS.get(name.strip())
        if sort_field is None:
            raise InvalidArgumentError(f"Cannot sort by '{name}'")
        sort_direction = DESC if direction.strip().lower() == "desc" else ASC
        return cls(page=page, size=size, sort_field=sort_field, sort_direction=sort_direction)

    def with_sort(self, sort_field: str, sort_direction: int = DESC) -> "PageRequest":
        return PageRequest(self.page, self.size, sort_field, sort_direction)


@dataclass
class Page(Generic[T]):
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 10

    @classmethod
    def empty(cls, request: PageRequest) -> "Page[Any]":
        return cls(items=[], total=0, page=request.page, size=request.size)

    def map(self, fn: Callable[[T], U]) -> "Page[U]":
        return Page(items=[fn(i) for i in self.items], total=self.total, page=self.page, size=self.size)
