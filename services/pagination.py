import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from services.errors import ValidationError

T = TypeVar("T")

MAX_PAGE_SIZE = 100


def validate_pagination(page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> None:
    """Raise ValidationError unless page >= 1 and 1 <= page_size <= max_page_size."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if not 1 <= page_size <= max_page_size:
        raise ValidationError(f"page_size must be between 1 and {max_page_size}")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice an already-ordered sequence. A page past the end is empty, not an error."""
    validate_pagination(page, page_size)
    start = (page - 1) * page_size
    return Page(items=list(items[start : start + page_size]), page=page, page_size=page_size, total_count=len(items))
