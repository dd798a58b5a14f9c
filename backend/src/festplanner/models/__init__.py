"""SQLAlchemy ORM models."""

from festplanner.models.base import Base
from festplanner.models.shared_schedule import SharedSchedule

__all__ = ["Base", "SharedSchedule"]
