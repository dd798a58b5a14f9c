"""In-memory collection of the films on a personal schedule."""

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime

from pydantic import ValidationError

from festplanner.exceptions import ValidationFailure
from festplanner.schemas.film import Film
from festplanner.utils.dates import festival_date

logger = logging.getLogger(__name__)


class ScheduleStore:
    """
    Ordered id → Film mapping.

    Ids are compared as strings, so ``1`` and ``"1"`` address the same film.
    Insertion order is kept; overlap ordering depends on it.
    """

    def __init__(self, films: Iterable[Film] = (), on_change: Callable[[], None] | None = None):
        self._films: dict[str, Film] = {}
        self._last_minted = 0
        self.on_change = on_change
        for film in films:
            self._insert(film)

    def __len__(self) -> int:
        return len(self._films)

    def __iter__(self) -> Iterator[Film]:
        return iter(list(self._films.values()))

    def __contains__(self, film_id: object) -> bool:
        return str(film_id) in self._films

    def all(self) -> list[Film]:
        return list(self._films.values())

    def find(self, film_id: str | int | None) -> Film | None:
        if film_id is None:
            return None
        return self._films.get(str(film_id))

    def add(self, film: Film) -> Film:
        """
        Add a film, minting an id when it has none.

        Raises:
            ValidationFailure: if a film with the same id is already stored
        """
        self._insert(film)
        logger.debug(f"Added '{film.title}' ({film.id})")
        self._changed()
        return film

    def remove(self, film_id: str | int) -> Film | None:
        film = self._films.pop(str(film_id), None)
        if film is not None:
            logger.debug(f"Removed '{film.title}' ({film.id})")
            self._changed()
        return film

    def update(self, film_id: str | int, mutator: Callable[[Film], None]) -> Film:
        """
        Mutate a stored film in place.

        The mutator may change any field; if it leaves only one of
        start/end time set, or breaks another field constraint, the film is
        restored and ValidationFailure is raised. A mutator that raises
        also leaves the film as it was.
        """
        film = self.find(film_id)
        if film is None:
            raise ValidationFailure(f"Film not found: {film_id}")

        snapshot = film.model_copy(deep=True)
        try:
            mutator(film)
        except Exception:
            self._restore(film, snapshot)
            raise

        try:
            Film.model_validate(film.model_dump())
        except ValidationError as e:
            self._restore(film, snapshot)
            raise ValidationFailure(f"Invalid update for '{snapshot.title}': {e}") from e

        self._changed()
        return film

    def set_schedule(self, film_id: str | int, start: datetime, end: datetime, location: str | None = None) -> Film:
        def apply(film: Film) -> None:
            film.start_time = start
            film.end_time = end
            if location is not None:
                film.location = location

        return self.update(film_id, apply)

    def clear_schedule(self, film_id: str | int) -> Film:
        def apply(film: Film) -> None:
            film.start_time = None
            film.end_time = None
            film.location = ""

        return self.update(film_id, apply)

    def favorites_unscheduled(self) -> list[Film]:
        """Favorited films that are not on the calendar yet."""
        return [f for f in self._films.values() if f.favorited and not f.is_scheduled]

    def on_day(self, day: date) -> list[Film]:
        """Scheduled films starting on ``day`` (festival-local), by start time."""
        films = [f for f in self._films.values() if f.is_scheduled and festival_date(f.start_time) == day]
        return sorted(films, key=lambda f: f.start_time)

    def replace_all(self, films: Iterable[Film]) -> None:
        """Swap the whole collection, e.g. after loading from a remote source."""
        self._films = {}
        for film in films:
            self._insert(film)
        self._changed()

    def mint_id(self) -> str:
        """Millisecond timestamp id, strictly increasing for this store."""
        candidate = int(time.time() * 1000)
        if candidate <= self._last_minted:
            candidate = self._last_minted + 1
        while str(candidate) in self._films:
            candidate += 1
        self._last_minted = candidate
        return str(candidate)

    def _insert(self, film: Film) -> None:
        if film.id is None or film.id == "":
            film.id = self.mint_id()
        key = str(film.id)
        if key in self._films:
            raise ValidationFailure(f"Duplicate film id: {film.id}")
        self._films[key] = film

    @staticmethod
    def _restore(film: Film, snapshot: Film) -> None:
        for name in Film.model_fields:
            setattr(film, name, getattr(snapshot, name))

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
