"""Pydantic schemas for films and screenings.

Field names are snake_case in Python; the JSON wire names follow the
camelCase keys the web client and the stored schedules already use
(``startTime``, ``hasQA``, ``iffrLink``...). Both spellings are accepted
on input.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from festplanner.config import settings

SOLD_OUT = "Sold Out"
PRESS_AND_INDUSTRY = "Press & Industry"
NOT_AVAILABLE = "Not Available"

UNAVAILABLE_TITLE = "Unavailable for IFFR"


def _festival_local(value: datetime | None) -> datetime | None:
    # Offset-less timestamps are festival-local wall-clock time.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=settings.festival_tz)
    return value


class Screening(BaseModel):
    """One concrete showing of a film or combined programme."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    location: str = ""
    link: str | None = None
    has_qa: bool = Field(default=False, alias="hasQA")
    available: bool = True
    unavailable_reason: str | None = Field(default=None, alias="unavailableReason")
    films: list[str] = Field(default_factory=list)  # member titles of a combined programme
    note: str | None = None  # set on fallback screenings only

    @field_validator("start_time", "end_time")
    @classmethod
    def _attach_festival_tz(cls, value: datetime | None) -> datetime | None:
        return _festival_local(value)

    @model_validator(mode="after")
    def _sync_availability(self) -> "Screening":
        if self.end_time <= self.start_time:
            raise ValueError("screening must end after it starts")
        # The reason is present exactly when the screening is unavailable.
        if self.unavailable_reason:
            self.available = False
        elif not self.available:
            self.unavailable_reason = NOT_AVAILABLE
        if self.available:
            self.unavailable_reason = None
        return self

    @property
    def duration_minutes(self) -> int:
        return round((self.end_time - self.start_time).total_seconds() / 60)


class CombinedFilm(BaseModel):
    """A film bundled into a combined programme."""

    title: str
    link: str | None = None


class Film(BaseModel):
    """A schedulable (or favorited-only) festival entry.

    ``start_time`` and ``end_time`` are either both set (scheduled) or both
    ``None`` (a favorite waiting to be scheduled). ``unavailable`` marks a
    blocked time range rather than a real screening.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | int | None = None
    title: str = Field(min_length=1)
    director: str = ""
    country: str = ""
    programme: str = ""
    start_time: datetime | None = Field(default=None, alias="startTime")
    end_time: datetime | None = Field(default=None, alias="endTime")
    location: str = ""
    room: str = ""
    external_link: str | None = Field(default=None, alias="iffrLink")
    moderating: bool = False
    favorited: bool = False
    ticket: bool = False
    unavailable: bool = False
    has_qa: bool = Field(default=False, alias="hasQA")
    notes: str = ""
    screenings: list[Screening] = Field(default_factory=list)
    is_combined_programme: bool = Field(default=False, alias="isCombinedProgramme")
    combined_films: list[CombinedFilm] = Field(default_factory=list, alias="combinedFilms")
    notion_page_id: str | None = Field(default=None, alias="notionPageId")

    @field_validator("start_time", "end_time")
    @classmethod
    def _attach_festival_tz(cls, value: datetime | None) -> datetime | None:
        return _festival_local(value)

    @model_validator(mode="after")
    def _check_schedule_pair(self) -> "Film":
        if not self.has_consistent_schedule():
            raise ValueError("start_time and end_time must be set together")
        return self

    def has_consistent_schedule(self) -> bool:
        return (self.start_time is None) == (self.end_time is None)

    @property
    def is_scheduled(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    @property
    def duration_minutes(self) -> int | None:
        if not self.is_scheduled:
            return None
        return round((self.end_time - self.start_time).total_seconds() / 60)

    def display_details(self) -> dict[str, object]:
        """Details a calendar or detail view may show for this entry.

        Blocked time only exposes its title and time range.
        """
        details: dict[str, object] = {
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
        if self.unavailable:
            return details

        details.update(
            director=self.director,
            country=self.country,
            programme=self.programme,
            location=self.location,
            duration_minutes=self.duration_minutes,
        )
        if self.is_combined_programme:
            details["combined_films"] = [f.title for f in self.combined_films]
        return details

    def to_wire(self) -> dict:
        """JSON-ready dict using the client's camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class SharedScheduleData(BaseModel):
    """A schedule as published to others: owner display name plus films."""

    model_config = ConfigDict(populate_by_name=True)

    owner_name: str = Field(default="", alias="userName")
    films: list[Film] = Field(default_factory=list)
