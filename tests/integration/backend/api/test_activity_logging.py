"""
Integration Tests for activity logging through the API.

The deduplicator lives on app.state, so repeated identical actions in
quick succession produce a single audit record.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from notevault.backend.models.note import Note

NOTES_URL = "/api/v1/notes"


def _activity_actions(mock_logger) -> list[str]:
    return [
        call.kwargs["extra"]["action"]
        for call in mock_logger.info.call_args_list
        if call.args and call.args[0] == "User activity"
    ]


class TestActivityLogging:
    """Tests for audit records written by note operations."""

    @pytest.mark.asyncio
    async def test_repeated_view_logged_once(self, client: AsyncClient, api, app, make_note):
        note = await make_note(title="Watched")

        with patch("notevault.backend.core.activity.logger") as mock_logger:
            api.assert_success(await client.get(f"{NOTES_URL}/{note.id}"))
            api.assert_success(await client.get(f"{NOTES_URL}/{note.id}"))

        assert _activity_actions(mock_logger) == ["VIEW_NOTE"]
        assert len(app.state.activity_deduplicator) == 1

    @pytest.mark.asyncio
    async def test_distinct_actions_all_logged(self, client: AsyncClient, api):
        with patch("notevault.backend.core.activity.logger") as mock_logger:
            created = api.assert_success(
                await client.post(NOTES_URL, json={"title": "T", "content": "meeting"}),
                expected_status=201,
            )
            note_id = created["data"]["id"]
            api.assert_success(await client.post(f"{NOTES_URL}/{note_id}/pin"))
            api.assert_success(await client.post(f"{NOTES_URL}/{note_id}/pin"))
            api.assert_success(await client.get(f"{NOTES_URL}/search", params={"q": "meeting"}))

        assert _activity_actions(mock_logger) == [
            "CREATE_NOTE",
            "PIN_NOTE",
            "UNPIN_NOTE",
            "SEARCH_NOTES",
        ]

    @pytest.mark.asyncio
    async def test_listing_is_not_audited(self, client: AsyncClient, api, make_note):
        await make_note()

        with patch("notevault.backend.core.activity.logger") as mock_logger:
            api.assert_success(await client.get(NOTES_URL))

        assert _activity_actions(mock_logger) == []


class TestCommitFailure:
    """Tests for writes whose commit fails."""

    @pytest.mark.asyncio
    async def test_create_reports_unavailable_without_audit(
        self, client: AsyncClient, api, db_session, monkeypatch
    ):
        """A dropped connection at commit is a 503 and leaves no audit record."""
        monkeypatch.setattr(
            db_session,
            "commit",
            AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("server closed the connection"))),
        )

        with patch("notevault.backend.core.activity.logger") as mock_logger:
            response = await client.post(NOTES_URL, json={"title": "t", "content": "c"})

        api.assert_error(response, 503, "SYS_ENGINE_UNAVAILABLE")
        assert response.headers["Retry-After"] == "1"
        assert _activity_actions(mock_logger) == []

    @pytest.mark.asyncio
    async def test_successful_create_is_committed(self, client: AsyncClient, api, db_session_factory):
        api.assert_success(
            await client.post(NOTES_URL, json={"title": "kept", "content": "c"}),
            expected_status=201,
        )

        async with db_session_factory() as other:
            count = (await other.execute(select(func.count()).select_from(Note))).scalar_one()

        assert count == 1
