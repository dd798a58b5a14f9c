"""Same-day conflict detection and status display rules for the calendar."""

from dataclasses import dataclass
from enum import Enum

from festplanner.schemas.film import Film
from festplanner.utils.dates import festival_date


class DisplayStatus(str, Enum):
    UNAVAILABLE = "unavailable"
    MODERATING = "moderating"
    TICKET = "ticket"
    FAVORITED = "favorited"
    DEFAULT = "default"


@dataclass(frozen=True)
class OverlapSlot:
    """Position of a film among the films it overlaps with."""

    index: int
    total: int

    @property
    def simplified(self) -> bool:
        # Narrow slots get a reduced rendering.
        return self.total > 1


@dataclass(frozen=True)
class StatusToggle:
    active: bool
    disabled: bool


def _same_id(a: Film, b: Film) -> bool:
    if a is b:
        return True
    return a.id is not None and b.id is not None and str(a.id) == str(b.id)


def overlaps_of(film: Film, all_films: list[Film]) -> list[Film]:
    """
    Films sharing calendar time with ``film``, including ``film`` itself.

    Only scheduled, non-blocked films on the same festival-local day count.
    Intervals are half-open, so back-to-back screenings do not overlap.
    The result follows the order of ``all_films``; ``film`` is appended if
    it is not in the list.
    """
    if film.unavailable or not film.is_scheduled:
        return [film]

    day = festival_date(film.start_time)
    result = []
    seen_self = False
    for other in all_films:
        if _same_id(other, film):
            result.append(film)
            seen_self = True
            continue
        if other.unavailable or not other.is_scheduled:
            continue
        if festival_date(other.start_time) != day:
            continue
        if film.start_time < other.end_time and other.start_time < film.end_time:
            result.append(other)

    if not seen_self:
        result.append(film)
    return result


def resolve_slot(film: Film, all_films: list[Film]) -> OverlapSlot:
    group = overlaps_of(film, all_films)
    index = next(i for i, other in enumerate(group) if _same_id(other, film))
    return OverlapSlot(index=index, total=len(group))


def has_ticket_equivalent(film: Film) -> bool:
    """Moderating implies a ticket."""
    return film.ticket or film.moderating


def display_status(film: Film) -> DisplayStatus:
    if film.unavailable:
        return DisplayStatus.UNAVAILABLE
    if film.moderating:
        return DisplayStatus.MODERATING
    if film.ticket:
        return DisplayStatus.TICKET
    if film.favorited:
        return DisplayStatus.FAVORITED
    return DisplayStatus.DEFAULT


def status_toggles(film: Film, read_only: bool = False) -> dict[str, StatusToggle]:
    """
    Active/disabled state of the favorite, ticket and moderating buttons.

    The ticket toggle is locked while moderating (it is implied) and while
    the film has no screening time.
    """
    return {
        "favorited": StatusToggle(active=film.favorited, disabled=read_only),
        "ticket": StatusToggle(
            active=has_ticket_equivalent(film),
            disabled=read_only or film.moderating or not film.is_scheduled,
        ),
        "moderating": StatusToggle(active=film.moderating, disabled=read_only),
    }
