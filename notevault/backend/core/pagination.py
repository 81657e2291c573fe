"""
Pagination Utilities.

Page-based pagination for list endpoints. Out-of-range page and limit
values are clamped rather than rejected, and a page past the end of the
result set is simply empty.

Offset arithmetic:
    offset   = (page - 1) * limit
    has_next = offset + limit < total
    has_prev = offset > 0
"""

import base64
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from notevault.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata

T = TypeVar("T")

DEFAULT_PAGE = 1


# =============================================================================
# Pagination Parameters
# =============================================================================


@dataclass(frozen=True)
class PageParams:
    """Validated page and limit for one page fetch."""

    page: int
    limit: int

    @classmethod
    def from_request(
        cls,
        page: int | None,
        limit: int | None,
        default_limit: int,
        max_limit: int,
    ) -> "PageParams":
        """
        Clamp raw page/limit values into a usable window.

        page < 1 or missing      -> 1
        limit < 1 or missing     -> default_limit
        limit > max_limit        -> max_limit
        """
        effective_page = page if page is not None and page >= 1 else DEFAULT_PAGE
        effective_limit = limit if limit is not None and limit >= 1 else default_limit
        effective_limit = min(effective_limit, max_limit)
        return cls(page=effective_page, limit=effective_limit)

    @property
    def offset(self) -> int:
        """Zero-based position of the first item on this page."""
        return (self.page - 1) * self.limit


# =============================================================================
# Cursor Encoding/Decoding
# =============================================================================


def encode_cursor(page: int, limit: int) -> str:
    """
    Encode a page position as an opaque cursor.

    Args:
        page: Page number
        limit: Page size

    Returns:
        URL-safe base64 cursor string
    """
    return base64.urlsafe_b64encode(f"{page}:{limit}".encode()).decode()


def decode_cursor(cursor: str) -> tuple[int, int]:
    """
    Decode a pagination cursor.

    Args:
        cursor: Cursor produced by encode_cursor

    Returns:
        Tuple of (page, limit)

    Raises:
        ValueError: If cursor is invalid
    """
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        page_text, limit_text = raw.split(":")
        return int(page_text), int(limit_text)
    except Exception as exc:
        raise ValueError(f"Invalid cursor: {cursor}") from exc


# =============================================================================
# Paginated Result
# =============================================================================


@dataclass
class PagedResult(Generic[T]):
    """
    One page of results plus the metadata needed to navigate.

    `items` never holds more than `limit` entries.
    """

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_next(self) -> bool:
        return self.offset + self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_next else None

    @property
    def prev_page(self) -> int | None:
        return self.page - 1 if self.has_prev else None

    def pagination_info(self) -> PaginationInfo:
        """Build the response pagination block, cursors included."""
        return PaginationInfo(
            total=self.total,
            page=self.page,
            limit=self.limit,
            has_next=self.has_next,
            has_prev=self.has_prev,
            next_page=self.next_page,
            prev_page=self.prev_page,
            next_cursor=encode_cursor(self.page + 1, self.limit) if self.has_next else None,
            prev_cursor=encode_cursor(self.page - 1, self.limit) if self.has_prev else None,
        )


async def paginate_query(
    query_func: Callable[[int, int], Awaitable[list[T]]],
    count_func: Callable[[], Awaitable[int]],
    params: PageParams,
) -> PagedResult[T]:
    """
    Execute a count and a page slice against the same query.

    Args:
        query_func: Async function that takes (limit, offset) and returns items
        count_func: Async function returning the total number of matches
        params: Page parameters

    Returns:
        PagedResult for the requested page

    Usage:
        result = await paginate_query(
            query_func=lambda limit, offset: repo.fetch_page(clauses, order, limit, offset),
            count_func=lambda: repo.count_matching(clauses),
            params=PageParams.from_request(page, limit, 10, 50),
        )
    """
    total = await count_func()

    if params.offset >= total:
        items: list[T] = []
    else:
        items = await query_func(params.limit, params.offset)

    return PagedResult(
        items=items[:params.limit],
        total=total,
        page=params.page,
        limit=params.limit,
    )


def create_paginated_response(
    result: PagedResult[Any],
    item_schema: type[BaseModel],
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Args:
        result: Page of items (model instances or dicts)
        item_schema: Pydantic schema to validate items
        request_id: Request ID for metadata

    Returns:
        Dict matching PaginatedResponse structure
    """
    validated_items = [
        item_schema.model_validate(item).model_dump(mode="json")
        for item in result.items
    ]

    response = PaginatedResponse(
        data=validated_items,
        pagination=result.pagination_info(),
        metadata=ResponseMetadata(request_id=request_id),
    )

    return response.model_dump(mode="json")
