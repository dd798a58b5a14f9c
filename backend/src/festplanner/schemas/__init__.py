"""Pydantic schemas for API requests and responses."""

from festplanner.schemas.film import CombinedFilm, Film, Screening, SharedScheduleData
from festplanner.schemas.notion import (
    NotionCreateRequest,
    NotionDatabaseRequest,
    NotionPageRequest,
    NotionUpdateRequest,
)
from festplanner.schemas.parse import ExtractedPage, ParseRequest
from festplanner.schemas.share import ShareCreatedResponse, SharedScheduleResponse, ShareRequest

__all__ = [
    "CombinedFilm",
    "Film",
    "Screening",
    "SharedScheduleData",
    "ExtractedPage",
    "ParseRequest",
    "NotionCreateRequest",
    "NotionDatabaseRequest",
    "NotionPageRequest",
    "NotionUpdateRequest",
    "ShareRequest",
    "ShareCreatedResponse",
    "SharedScheduleResponse",
]
