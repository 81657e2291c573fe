"""
Integration Test Fixtures.

Fixtures for integration tests - uses real database and services.
These fixtures build on the root conftest.py database fixtures.

Authentication is replaced by a fixed owner. Send an `X-Test-Owner`
header to act as a different owner.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any

import pytest
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.database import get_db_session
from notevault.backend.core.dependencies import get_current_owner
from notevault.backend.core.utils import utc_now
from notevault.backend.models.note import Note

TEST_OWNER = "owner-alice"
OTHER_OWNER = "owner-bob"


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def app() -> Any:
    """Create a fresh application instance."""
    from notevault.backend.main import create_app

    return create_app()


@pytest.fixture
async def client(
    app: Any,
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with database session and owner overrides.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_current_owner(request: Request) -> str:
        return request.headers.get("X-Test-Owner", TEST_OWNER)

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_current_owner] = override_get_current_owner

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def client_no_auth(
    app: Any,
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the real bearer token check in place."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Data Fixtures
# =============================================================================


NoteFactory = Callable[..., Awaitable[Note]]


@pytest.fixture
def make_note(db_session: AsyncSession) -> NoteFactory:
    """
    Insert a note directly, with full control over flags and timestamps.

    `age_minutes` places created_at that many minutes in the past, so
    creation order is deterministic.

    Usage:
        note = await make_note(title="Meeting", is_pinned=True, age_minutes=5)
    """
    base_time = utc_now()

    async def _make(
        title: str = "Note",
        content: str = "Body",
        owner_id: str = TEST_OWNER,
        category: str = "other",
        priority: str = "medium",
        tags: list[str] | None = None,
        is_pinned: bool = False,
        is_archived: bool = False,
        age_minutes: float = 0,
        created_at: datetime | None = None,
    ) -> Note:
        timestamp = created_at or base_time - timedelta(minutes=age_minutes)
        note = Note(
            owner_id=owner_id,
            title=title,
            content=content,
            category=category,
            priority=priority,
            tags=tags or [],
            is_pinned=is_pinned,
            is_archived=is_archived,
            created_at=timestamp,
            updated_at=timestamp,
        )
        db_session.add(note)
        await db_session.flush()
        return note

    return _make


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """Assert API response is a request validation error (422)."""
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()
