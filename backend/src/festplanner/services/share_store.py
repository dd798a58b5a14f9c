"""Server-side keyed store for shared schedules."""

import logging
import secrets
import string
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from festplanner.exceptions import ShareNotFound
from festplanner.models.shared_schedule import SharedSchedule
from festplanner.schemas.film import Film, SharedScheduleData

logger = logging.getLogger(__name__)

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase
TOKEN_LENGTH = 11


def mint_share_id() -> str:
    """Opaque lowercase base36 token."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


class ShareStore:
    """
    Shared schedules keyed by share token.

    ``put`` with a known token overwrites the stored films in place, so a
    link handed out once keeps showing the owner's latest schedule.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def put(self, share_id: str | None, schedule: SharedScheduleData) -> str:
        """
        Store a schedule, minting a token when none is given.

        Args:
            share_id: Existing token to overwrite, or None for a new share
            schedule: Owner name and films to publish

        Returns:
            The token the schedule is stored under
        """
        now = datetime.now(timezone.utc)
        films = [film.to_wire() for film in schedule.films]

        record = await self.db.get(SharedSchedule, share_id) if share_id else None
        if record is not None:
            record.owner_name = schedule.owner_name
            record.films = films
            record.updated_at = now
            logger.info(f"Updated share {record.share_id} ({len(films)} films)")
        else:
            record = SharedSchedule(
                share_id=share_id or mint_share_id(),
                owner_name=schedule.owner_name,
                films=films,
                created_at=now,
                updated_at=now,
            )
            self.db.add(record)
            logger.info(f"Created share {record.share_id} ({len(films)} films)")

        await self.db.flush()
        return record.share_id

    async def get(self, share_id: str) -> SharedSchedule:
        """
        Raises:
            ShareNotFound: if no schedule is stored under ``share_id``
        """
        record = await self.db.get(SharedSchedule, share_id)
        if record is None:
            raise ShareNotFound(f"Share not found: {share_id}")
        return record

    async def get_schedule(self, share_id: str) -> SharedScheduleData:
        record = await self.get(share_id)
        return SharedScheduleData(
            owner_name=record.owner_name,
            films=[Film.model_validate(f) for f in record.films],
        )
