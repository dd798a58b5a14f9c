"""Notion proxy endpoints.

The browser client cannot call the Notion API directly (CORS), so these
routes forward its requests with the user's own credentials.
"""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from festplanner.exceptions import RemoteSyncFailure
from festplanner.schemas.film import Film
from festplanner.schemas.notion import (
    NotionCreateRequest,
    NotionDatabaseRequest,
    NotionPageRequest,
    NotionUpdateRequest,
)
from festplanner.services.film_mapper import film_to_notion_properties, updates_to_notion_properties
from festplanner.services.notion_client import NotionClient

logger = logging.getLogger(__name__)
router = APIRouter()

NotionClientFactory = Callable[[str], NotionClient]


def get_notion_client_factory() -> NotionClientFactory:
    return NotionClient


def _sync_error(action: str, e: RemoteSyncFailure) -> HTTPException:
    logger.error(f"Notion {action} failed: {e}")
    return HTTPException(status_code=e.status_code or 500, detail=str(e))


@router.post("/notion/query")
async def query_database(
    request: NotionDatabaseRequest,
    client_factory: NotionClientFactory = Depends(get_notion_client_factory),
) -> dict[str, Any]:
    """Return every page of the user's film database."""
    if not request.database_id or not request.api_key:
        raise HTTPException(status_code=400, detail="Missing databaseId or apiKey")
    try:
        return await client_factory(request.api_key).query_database(request.database_id)
    except RemoteSyncFailure as e:
        raise _sync_error("query", e)


@router.post("/notion/test")
async def test_connection(
    request: NotionDatabaseRequest,
    client_factory: NotionClientFactory = Depends(get_notion_client_factory),
) -> dict[str, Any]:
    """Check that the key can read the database; returns its metadata."""
    if not request.database_id or not request.api_key:
        raise HTTPException(status_code=400, detail="Missing databaseId or apiKey")
    try:
        return await client_factory(request.api_key).test_connection(request.database_id)
    except RemoteSyncFailure as e:
        raise _sync_error("test", e)


@router.post("/notion/create")
async def create_page(
    request: NotionCreateRequest,
    client_factory: NotionClientFactory = Depends(get_notion_client_factory),
) -> dict[str, Any]:
    """
    Create a page for one film.

    Raises:
        HTTPException: 400 if fields are missing or the film is malformed
    """
    if not request.database_id or not request.api_key or not request.film:
        raise HTTPException(status_code=400, detail="Missing required fields")
    try:
        film = Film.model_validate(request.film)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid film: {e}")

    try:
        return await client_factory(request.api_key).create_page(
            request.database_id, film_to_notion_properties(film)
        )
    except RemoteSyncFailure as e:
        raise _sync_error("create", e)


@router.post("/notion/update")
async def update_page(
    request: NotionUpdateRequest,
    client_factory: NotionClientFactory = Depends(get_notion_client_factory),
) -> dict[str, Any]:
    """Apply a flat update bag; ``null`` start/end times clear the dates."""
    if not request.page_id or not request.api_key or not request.updates:
        raise HTTPException(status_code=400, detail="Missing required fields")
    try:
        return await client_factory(request.api_key).update_page(
            request.page_id, updates_to_notion_properties(request.updates)
        )
    except RemoteSyncFailure as e:
        raise _sync_error("update", e)


@router.post("/notion/delete")
async def delete_page(
    request: NotionPageRequest,
    client_factory: NotionClientFactory = Depends(get_notion_client_factory),
) -> dict[str, Any]:
    """Archive a page; Notion has no hard delete."""
    if not request.page_id or not request.api_key:
        raise HTTPException(status_code=400, detail="Missing pageId or apiKey")
    try:
        return await client_factory(request.api_key).archive_page(request.page_id)
    except RemoteSyncFailure as e:
        raise _sync_error("delete", e)
