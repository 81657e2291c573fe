"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.activity import ActivityDeduplicator, ActivityRecorder
from notevault.backend.core.config import get_app_config
from notevault.backend.core.database import get_db_session
from notevault.backend.core.exceptions import AuthenticationError
from notevault.backend.core.logging import get_logger
from notevault.backend.core.security import owner_from_token
from notevault.backend.services.note import NoteService

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """
    Resolve the authenticated owner from the bearer token.

    Raises:
        AuthenticationError: If no valid token was sent
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")
    return owner_from_token(credentials.credentials)


CurrentOwner = Annotated[str, Depends(get_current_owner)]


def get_activity_recorder(request: Request) -> ActivityRecorder:
    """Wrap the app-wide activity deduplicator in a recorder."""
    deduplicator: ActivityDeduplicator = request.app.state.activity_deduplicator
    return ActivityRecorder(deduplicator)


def get_note_service(
    db: DbSession,
    activity: Annotated[ActivityRecorder, Depends(get_activity_recorder)],
) -> NoteService:
    """Build a NoteService wired to the configured paging and stats settings."""
    config = get_app_config()
    return NoteService(
        db,
        activity=activity,
        default_limit=config.application.pagination.default_limit,
        max_limit=config.application.pagination.max_limit,
        recent_activity_days=config.notes.stats.recent_activity_days,
    )
