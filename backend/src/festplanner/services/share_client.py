"""HTTP client for the share endpoints of a festplanner backend."""

import logging

import httpx

from festplanner.config import settings
from festplanner.exceptions import RemoteSyncFailure, ShareNotFound
from festplanner.schemas.film import Film, SharedScheduleData

logger = logging.getLogger(__name__)


class ShareClient:
    """Publish and fetch shared schedules on a backend server."""

    def __init__(self, backend_url: str) -> None:
        self.backend_url = backend_url.rstrip("/")

    async def put(self, share_id: str | None, schedule: SharedScheduleData) -> tuple[str, str]:
        """
        Publish a schedule.

        Args:
            share_id: Existing token to overwrite, or None for a new share
            schedule: Owner name and films

        Returns:
            ``(share_id, url)`` as reported by the server

        Raises:
            RemoteSyncFailure: on any transport or server error
        """
        body = {
            "userName": schedule.owner_name,
            "films": [film.to_wire() for film in schedule.films],
        }
        if share_id:
            body["shareId"] = share_id

        try:
            async with httpx.AsyncClient(timeout=settings.fetch_timeout) as client:
                response = await client.post(f"{self.backend_url}/api/share", json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Share upload failed with {e.response.status_code}: {e.response.text}")
            raise RemoteSyncFailure(e.response.text or str(e), status_code=e.response.status_code) from e
        except Exception as e:
            logger.error(f"Share upload error: {e}")
            raise RemoteSyncFailure(str(e)) from e

        return data["shareId"], data["url"]

    async def get(self, share_id: str) -> SharedScheduleData:
        """
        Raises:
            ShareNotFound: if the server has no schedule under ``share_id``
            RemoteSyncFailure: on any other transport or server error
        """
        try:
            async with httpx.AsyncClient(timeout=settings.fetch_timeout) as client:
                response = await client.get(f"{self.backend_url}/api/share/{share_id}")
                if response.status_code == 404:
                    raise ShareNotFound(f"Share not found: {share_id}")
                response.raise_for_status()
                data = response.json()
        except ShareNotFound:
            raise
        except Exception as e:
            logger.error(f"Share download error for {share_id}: {e}")
            raise RemoteSyncFailure(str(e)) from e

        return SharedScheduleData(
            owner_name=data.get("userName") or "",
            films=[Film.model_validate(f) for f in data.get("films") or []],
        )
