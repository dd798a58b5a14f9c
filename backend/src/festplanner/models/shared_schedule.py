"""Shared schedule model: a published copy of one owner's films."""

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from festplanner.models.base import Base, TimestampMixin


class SharedSchedule(Base, TimestampMixin):
    """
    Shared schedule keyed by an opaque share token.

    The token is minted once per owner and reused, so a link always shows
    the latest version. Films are stored as their JSON wire form.
    """

    __tablename__ = "shared_schedules"

    share_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    films: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<SharedSchedule(share_id={self.share_id!r}, owner_name={self.owner_name!r}, films={len(self.films)})>"
