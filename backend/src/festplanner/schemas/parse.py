"""Pydantic schemas for festival page extraction."""

from pydantic import BaseModel, ConfigDict, Field

from festplanner.schemas.film import CombinedFilm, Screening


class ParseRequest(BaseModel):
    """Request body for the parse endpoint."""

    url: str = ""


class ExtractedPage(BaseModel):
    """Everything the extractor could read from one festival page."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    director: str = ""
    country: str = ""
    programme: str = ""
    link: str = Field(alias="iffrLink")
    is_event_page: bool = Field(default=False, alias="isEventPage")
    is_combined_programme: bool = Field(default=False, alias="isCombinedProgramme")
    combined_films: list[CombinedFilm] = Field(default_factory=list, alias="combinedFilms")
    screenings: list[Screening] = Field(default_factory=list)
