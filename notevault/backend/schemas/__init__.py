# Request and response schemas
from notevault.backend.schemas.base import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    PaginatedResponse,
    PaginationInfo,
    ResponseMetadata,
)
from notevault.backend.schemas.note import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    NoteCreate,
    NoteFilterParams,
    NoteResponse,
    NoteStatsResponse,
    NoteUpdate,
)

__all__ = [
    "ApiResponse",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "ErrorDetail",
    "ErrorResponse",
    "NoteCreate",
    "NoteFilterParams",
    "NoteResponse",
    "NoteStatsResponse",
    "NoteUpdate",
    "PaginatedResponse",
    "PaginationInfo",
    "ResponseMetadata",
]
