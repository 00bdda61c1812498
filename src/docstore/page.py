"""
Page-number pagination over an already ordered result list.
"""

from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    count: int = 0  # total items across all pages
    next_page: Optional[int] = None
    previous_page: Optional[int] = None


class PaginationParams(BaseModel):
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=10, ge=1)

    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def paginate(self, items: List[T]) -> Page[T]:
        start = self.offset()
        end = min(start + self.per_page, len(items))
        return Page(
            items=list(items[start:end]),
            count=len(items),
            next_page=self.page + 1 if end < len(items) else None,
            previous_page=self.page - 1 if self.page > 1 else None,
        )
