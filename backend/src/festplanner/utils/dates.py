"""Date helpers for the festival calendar."""

from datetime import date, datetime, timedelta

from festplanner.config import settings


def festival_date(moment: datetime) -> date:
    """Calendar day of a timestamp in festival-local time."""
    return moment.astimezone(settings.festival_tz).date()


def duration_minutes(start: datetime, end: datetime) -> int:
    return round((end - start).total_seconds() / 60)


def clamp_view_anchor(saved: date | None) -> date:
    """Return the saved view anchor if it lies within the festival, else the festival start."""
    if saved is not None and settings.festival_start <= saved <= settings.festival_end:
        return saved
    return settings.festival_start


def can_navigate(anchor: date, days: int, days_to_show: int) -> bool:
    """
    Whether shifting the visible window by ``days`` keeps it inside the festival.

    Both the new first day and the new last day must fall within
    ``festival_start``..``festival_end``.
    """
    new_start = anchor + timedelta(days=days)
    new_end = new_start + timedelta(days=days_to_show - 1)
    start, end = settings.festival_start, settings.festival_end
    return start <= new_start <= end and start <= new_end <= end


def visible_days(anchor: date, days_to_show: int) -> list[date]:
    return [anchor + timedelta(days=offset) for offset in range(days_to_show)]
