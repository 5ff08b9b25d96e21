"""Offset pagination helpers.

Every list endpoint answers with the same envelope::

    {"page": 2, "limit": 10, "totalCount": 25,
     "totalPages": 3, "hasNext": true, "hasPrev": true}
"""

from dataclasses import dataclass
import math

from pydantic import BaseModel, Field


class PageRequest(BaseModel):
    """A validated page/limit pair (both 1-indexed and positive)."""

    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


def paginate(request: PageRequest, total_count: int) -> dict:
    """Build the pagination envelope for a page of ``total_count`` items."""
    return Pagination(request.page, request.limit, total_count).to_dict()
