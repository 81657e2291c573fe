"""
Unit Tests for Pagination Utilities.

Tests page parameter clamping, cursor encoding and page slicing.
"""

from unittest.mock import AsyncMock

import pytest

from notevault.backend.core.pagination import (
    PagedResult,
    PageParams,
    create_paginated_response,
    decode_cursor,
    encode_cursor,
    paginate_query,
)
from notevault.backend.schemas.note import NoteStatsOverview


class TestPageParams:
    """Tests for page/limit clamping."""

    def test_defaults_when_missing(self):
        params = PageParams.from_request(None, None, default_limit=10, max_limit=50)

        assert params.page == 1
        assert params.limit == 10
        assert params.offset == 0

    @pytest.mark.parametrize("page", [0, -1, -100])
    def test_page_below_one_becomes_one(self, page):
        """Should clamp non-positive pages to the first page."""
        params = PageParams.from_request(page, 10, default_limit=10, max_limit=50)

        assert params.page == 1

    @pytest.mark.parametrize("limit", [0, -5])
    def test_limit_below_one_uses_default(self, limit):
        """Should fall back to the default page size."""
        params = PageParams.from_request(1, limit, default_limit=10, max_limit=50)

        assert params.limit == 10

    def test_limit_above_max_is_capped(self):
        """Should cap the page size at max_limit."""
        params = PageParams.from_request(1, 500, default_limit=10, max_limit=50)

        assert params.limit == 50

    def test_offset_from_page_and_limit(self):
        params = PageParams.from_request(3, 12, default_limit=10, max_limit=50)

        assert params.offset == 24


class TestCursor:
    """Tests for opaque cursor tokens."""

    def test_cursor_carries_page_and_limit(self):
        assert decode_cursor(encode_cursor(4, 25)) == (4, 25)

    def test_cursor_is_url_safe(self):
        cursor = encode_cursor(123456, 50)

        assert "+" not in cursor
        assert "/" not in cursor

    @pytest.mark.parametrize("cursor", ["not-a-cursor", "", "YWJj"])
    def test_invalid_cursor_raises_value_error(self, cursor):
        """Should raise ValueError for tokens that are not page:limit."""
        with pytest.raises(ValueError, match="Invalid cursor"):
            decode_cursor(cursor)


class TestPagedResult:
    """Tests for navigation metadata."""

    def test_first_of_two_pages(self):
        """15 items with limit 12: page 1 has a next page only."""
        result = PagedResult(items=list(range(12)), total=15, page=1, limit=12)

        assert result.has_next is True
        assert result.has_prev is False
        assert result.next_page == 2
        assert result.prev_page is None

    def test_last_of_two_pages(self):
        """15 items with limit 12: page 2 has a previous page only."""
        result = PagedResult(items=list(range(3)), total=15, page=2, limit=12)

        assert result.has_next is False
        assert result.has_prev is True
        assert result.next_page is None
        assert result.prev_page == 1

    def test_exact_fit_has_no_next(self):
        result = PagedResult(items=list(range(10)), total=10, page=1, limit=10)

        assert result.has_next is False

    def test_pagination_info_includes_cursors(self):
        result = PagedResult(items=[], total=30, page=2, limit=10)

        info = result.pagination_info()

        assert decode_cursor(info.next_cursor) == (3, 10)
        assert decode_cursor(info.prev_cursor) == (1, 10)

    def test_pagination_info_omits_missing_cursors(self):
        info = PagedResult(items=[], total=0, page=1, limit=10).pagination_info()

        assert info.next_cursor is None
        assert info.prev_cursor is None


class TestPaginateQuery:
    """Tests for the count + slice runner."""

    @pytest.mark.asyncio
    async def test_fetches_slice_at_offset(self):
        """Should pass limit and offset to the query function."""
        query_func = AsyncMock(return_value=["a", "b"])
        count_func = AsyncMock(return_value=15)

        result = await paginate_query(
            query_func=query_func,
            count_func=count_func,
            params=PageParams(page=2, limit=12),
        )

        query_func.assert_awaited_once_with(12, 12)
        assert result.items == ["a", "b"]
        assert result.total == 15
        assert result.has_prev is True

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self):
        """Should return no items, without fetching, past the last page."""
        query_func = AsyncMock(return_value=["unexpected"])
        count_func = AsyncMock(return_value=5)

        result = await paginate_query(
            query_func=query_func,
            count_func=count_func,
            params=PageParams(page=10, limit=10),
        )

        query_func.assert_not_awaited()
        assert result.items == []
        assert result.total == 5
        assert result.has_next is False

    @pytest.mark.asyncio
    async def test_never_returns_more_than_limit(self):
        query_func = AsyncMock(return_value=list(range(20)))
        count_func = AsyncMock(return_value=100)

        result = await paginate_query(
            query_func=query_func,
            count_func=count_func,
            params=PageParams(page=1, limit=5),
        )

        assert len(result.items) == 5


class TestCreatePaginatedResponse:
    """Tests for the response envelope."""

    def test_builds_envelope(self):
        result = PagedResult(
            items=[{"total": 1, "archived": 0, "pinned": 0}],
            total=1,
            page=1,
            limit=10,
        )

        response = create_paginated_response(result, NoteStatsOverview, request_id="req-1")

        assert response["success"] is True
        assert response["data"] == [{"total": 1, "archived": 0, "pinned": 0}]
        assert response["pagination"]["total"] == 1
        assert response["pagination"]["has_next"] is False
        assert response["metadata"]["request_id"] == "req-1"
