"""
Shared schemas: pagination envelope and simple message responses.
"""

import math
from typing import Generic, List, Sequence, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field

# Generic type for pagination
T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PaginationParams:
    """Query-string pagination, injected with Depends()."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)"),
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    ):
        self.page = page
        self.limit = limit

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    """Paging information returned next to a page of results."""

    total: int
    page: int
    limit: int
    totalPages: int
    hasNextPage: bool
    hasPrevPage: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            totalPages=total_pages,
            hasNextPage=page < total_pages,
            hasPrevPage=page > 1,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response schema."""

    data: List[T]
    meta: PaginationMeta


def paginate(items: Sequence[T], total: int, params: PaginationParams) -> dict:
    """Build the `{data, meta}` envelope for a page of results."""
    return {
        "data": list(items),
        "meta": PaginationMeta.build(total, params.page, params.limit),
    }


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str = Field(..., description="Human readable result")


class SuccessResponse(BaseModel):
    success: bool = True
