"""Persisted client state: the film list plus a few scalar preferences."""

import json
import logging
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from festplanner.config import settings
from festplanner.exceptions import ValidationFailure
from festplanner.schemas.film import Film
from festplanner.utils.dates import clamp_view_anchor

logger = logging.getLogger(__name__)


class Preferences(BaseModel):
    """Scalar preferences kept next to the film list."""

    model_config = ConfigDict(populate_by_name=True)

    current_start_date: date | None = Field(default=None, alias="currentStartDate")
    user_name: str = Field(default="", alias="userName")
    notion_api_key: str = Field(default="", alias="notionApiKey")
    notion_database_id: str = Field(default="", alias="notionDatabaseId")
    backend_url: str = Field(default="", alias="backendUrl")
    my_share_id: str | None = Field(default=None, alias="myShareId")

    @property
    def has_notion_credentials(self) -> bool:
        return bool(self.notion_api_key and self.notion_database_id)

    def validate_credentials(self) -> None:
        """
        Raises:
            ValidationFailure: if only one of key / database id is filled in
        """
        if bool(self.notion_api_key.strip()) != bool(self.notion_database_id.strip()):
            raise ValidationFailure("Enter both the Notion API key and database id, or neither")

    @property
    def view_anchor(self) -> date:
        """Saved first visible day, reset to the festival start when out of range."""
        return clamp_view_anchor(self.current_start_date)


class LocalStateStore:
    """
    Flat JSON key-value file.

    Keys: ``films`` (list of films in wire form) plus one key per
    preference. A missing or corrupt file loads as empty state.
    """

    FILMS_KEY = "films"

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or settings.state_file)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read state file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")

    def load_films(self) -> list[Film]:
        films = []
        for raw in self._read().get(self.FILMS_KEY) or []:
            try:
                films.append(Film.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Dropping unreadable saved film: {e}")
        return films

    def save_films(self, films: list[Film]) -> None:
        data = self._read()
        data[self.FILMS_KEY] = [film.to_wire() for film in films]
        self._write(data)
        logger.debug(f"Saved {len(films)} films to {self.path}")

    def load_preferences(self) -> Preferences:
        data = self._read()
        data.pop(self.FILMS_KEY, None)
        try:
            return Preferences.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable preferences: {e}")
            return Preferences()

    def save_preferences(self, preferences: Preferences) -> None:
        """
        Raises:
            ValidationFailure: if the Notion credentials are half filled in
        """
        preferences.validate_credentials()
        data = self._read()
        data.update(preferences.model_dump(mode="json", by_alias=True))
        self._write(data)
