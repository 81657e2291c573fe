"""
Notes API Endpoints.

REST API endpoints for owner-scoped notes. Every endpoint requires a
bearer token; the token subject is the note owner.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from notevault.backend.core.dependencies import (
    CurrentOwner,
    RequestId,
    get_note_service,
)
from notevault.backend.core.exceptions import ValidationError
from notevault.backend.core.pagination import create_paginated_response, decode_cursor
from notevault.backend.schemas import (
    ApiResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    NoteCreate,
    NoteFilterParams,
    NoteResponse,
    NoteStatsResponse,
    NoteUpdate,
)
from notevault.backend.services.note import NoteService

router = APIRouter()

Service = Annotated[NoteService, Depends(get_note_service)]


def get_filter_params(
    category: str | None = Query(default=None, description="Category, or 'all'"),
    priority: str | None = Query(default=None, description="Priority, or 'all'"),
    archived: bool | None = Query(default=None, description="Only archived (true) or active (false) notes"),
    pinned: bool | None = Query(default=None, description="Only pinned (true) or unpinned (false) notes"),
    tags: str | None = Query(default=None, description="Comma-separated tags; any match"),
    q: str | None = Query(default=None, description="Free-text search"),
    sort_by: str | None = Query(
        default=None,
        alias="sortBy",
        description="title, createdAt, updatedAt or priority",
    ),
    sort_order: str | None = Query(default=None, alias="sortOrder", description="asc or desc"),
    page: int | None = Query(default=None, description="Page number, starting at 1"),
    limit: int | None = Query(default=None, description="Items per page"),
    cursor: str | None = Query(default=None, description="Opaque cursor from a previous page"),
) -> NoteFilterParams:
    """
    Collect listing options from the query string.

    A cursor, when given, overrides page and limit.
    """
    if cursor:
        try:
            page, limit = decode_cursor(cursor)
        except ValueError as exc:
            raise ValidationError(
                "Invalid pagination cursor",
                details={"cursor": cursor},
            ) from exc

    return NoteFilterParams(
        category=category,
        priority=priority,
        archived=archived,
        pinned=pinned,
        tags=tags,
        q=q,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


Filters = Annotated[NoteFilterParams, Depends(get_filter_params)]


@router.get(
    "",
    summary="List notes (paginated)",
    description="List the caller's notes with filters, sorting and pagination. Pinned notes come first.",
)
async def list_notes(
    owner_id: CurrentOwner,
    service: Service,
    criteria: Filters,
    request_id: RequestId,
) -> dict[str, Any]:
    """List notes with full pagination support."""
    result = await service.list_notes(owner_id, criteria)
    return create_paginated_response(result, NoteResponse, request_id=request_id)


@router.get(
    "/search",
    summary="Search notes",
    description="Rank the caller's notes by relevance to `q`, then by pinned status.",
)
async def search_notes(
    owner_id: CurrentOwner,
    service: Service,
    criteria: Filters,
    request_id: RequestId,
) -> dict[str, Any]:
    """Search notes by title, tags and content."""
    result = await service.search_notes(owner_id, criteria)
    return create_paginated_response(result, NoteResponse, request_id=request_id)


@router.get(
    "/stats",
    response_model=ApiResponse[NoteStatsResponse],
    summary="Note statistics",
    description="Counts over all of the caller's notes.",
)
async def get_stats(
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[NoteStatsResponse]:
    stats = await service.get_stats(owner_id)
    return ApiResponse(data=stats)


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
)
async def create_note(
    data: NoteCreate,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Create a new note."""
    note = await service.create_note(owner_id, data)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.post(
    "/bulk-delete",
    response_model=ApiResponse[BulkDeleteResponse],
    summary="Delete several notes",
    description="Delete the listed notes. IDs the caller does not own are skipped.",
)
async def bulk_delete_notes(
    data: BulkDeleteRequest,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[BulkDeleteResponse]:
    deleted_count = await service.bulk_delete(owner_id, data.note_ids)
    return ApiResponse(data=BulkDeleteResponse(deleted_count=deleted_count))


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
)
async def get_note(
    note_id: str,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Get a note by ID."""
    note = await service.get_note(owner_id, note_id)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.patch(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Update an existing note. Only provided fields are updated.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Update a note."""
    note = await service.update_note(owner_id, note_id, data)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> None:
    """Delete a note."""
    await service.delete_note(owner_id, note_id)


@router.post(
    "/{note_id}/archive",
    response_model=ApiResponse[NoteResponse],
    summary="Toggle archive",
    description="Archive an active note or restore an archived one.",
)
async def toggle_archive(
    note_id: str,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    note = await service.toggle_archive(owner_id, note_id)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.post(
    "/{note_id}/pin",
    response_model=ApiResponse[NoteResponse],
    summary="Toggle pin",
)
async def toggle_pin(
    note_id: str,
    owner_id: CurrentOwner,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    note = await service.toggle_pin(owner_id, note_id)
    return ApiResponse(data=NoteResponse.model_validate(note))
