"""Shared schedule endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from festplanner.database import get_db
from festplanner.exceptions import ShareNotFound
from festplanner.schemas.film import Film, SharedScheduleData
from festplanner.schemas.share import ShareCreatedResponse, SharedScheduleResponse, ShareRequest
from festplanner.services.share_store import ShareStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/share", response_model=ShareCreatedResponse, response_model_by_alias=True)
async def put_share(
    body: ShareRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> ShareCreatedResponse:
    """
    Create or overwrite a shared schedule.

    Passing back a previously returned ``shareId`` updates that share in
    place, so links already handed out show the new films.
    """
    if not body.user_name or body.films is None:
        raise HTTPException(status_code=400, detail="Missing userName or films")

    store = ShareStore(db)
    share_id = await store.put(body.share_id, SharedScheduleData(owner_name=body.user_name, films=body.films))
    url = f"{str(request.base_url).rstrip('/')}?shareId={share_id}"
    return ShareCreatedResponse(share_id=share_id, url=url)


@router.get("/share/{share_id}", response_model=SharedScheduleResponse, response_model_by_alias=True)
async def get_share(
    share_id: str,
    db: AsyncSession = Depends(get_db),
) -> SharedScheduleResponse:
    """
    Get a shared schedule by token.

    Raises:
        HTTPException: 404 if no schedule is stored under the token
    """
    try:
        record = await ShareStore(db).get(share_id)
    except ShareNotFound:
        raise HTTPException(status_code=404, detail="Share not found")

    try:
        films = [Film.model_validate(f) for f in record.films]
    except ValidationError as e:
        logger.error(f"Stored share {share_id} is unreadable: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Stored schedule is unreadable")

    return SharedScheduleResponse(
        user_name=record.owner_name,
        films=films,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
