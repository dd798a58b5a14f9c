"""
Schedule planner: the user-facing operations on a personal schedule.

Every operation updates the local ScheduleStore first and persists it; the
Notion mirror and the shared copy are updated afterwards on a best-effort
basis. Remote failures are logged and collected in ``sync_errors`` and never
undo the local change.
"""

import logging
from datetime import date, datetime, time, timedelta

from festplanner.config import settings
from festplanner.exceptions import (
    DecodeFailure,
    ExtractionFetchError,
    PlannerError,
    ReadOnlyScheduleError,
    RemoteSyncFailure,
    ValidationFailure,
)
from festplanner.schemas.film import NOT_AVAILABLE, UNAVAILABLE_TITLE, Film, Screening, SharedScheduleData
from festplanner.schemas.parse import ExtractedPage
from festplanner.scrapers.base import BaseExtractor
from festplanner.services.film_mapper import apply_screening, film_from_extraction
from festplanner.services.local_state import LocalStateStore, Preferences
from festplanner.services.notion_client import NotionClient
from festplanner.services.overlap import status_toggles
from festplanner.services.schedule_store import ScheduleStore
from festplanner.services.share_client import ShareClient
from festplanner.services.share_codec import decode_compact, share_params, static_share_url

logger = logging.getLogger(__name__)

STATUS_FIELDS = ("favorited", "ticket", "moderating")
DEFAULT_OWNER = "Anonymous"


class SchedulePlanner:
    """
    Operations on one owner's schedule.

    A planner opened from a share link is read-only: every mutating
    operation raises ReadOnlyScheduleError before touching anything.
    """

    def __init__(
        self,
        store: ScheduleStore,
        extractor: BaseExtractor | None = None,
        preferences: Preferences | None = None,
        state: LocalStateStore | None = None,
        notion: NotionClient | None = None,
        share_client: ShareClient | None = None,
        read_only: bool = False,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.preferences = preferences or Preferences()
        self.state = state
        self.notion = notion
        self.share_client = share_client
        self.read_only = read_only
        self.sync_errors: list[str] = []

    @classmethod
    def from_preferences(
        cls,
        state: LocalStateStore,
        extractor: BaseExtractor | None = None,
    ) -> "SchedulePlanner":
        """Build a planner from saved state, wiring remotes the user configured."""
        preferences = state.load_preferences()
        notion = NotionClient(preferences.notion_api_key) if preferences.has_notion_credentials else None
        share_client = ShareClient(preferences.backend_url) if preferences.backend_url else None
        return cls(
            ScheduleStore(state.load_films()),
            extractor=extractor,
            preferences=preferences,
            state=state,
            notion=notion,
            share_client=share_client,
        )

    @classmethod
    async def open_shared(cls, query: str, share_client: ShareClient | None = None) -> "SchedulePlanner":
        """
        Open a shared schedule from a link or query string, read-only.

        A ``shareId`` link is fetched from the share server; a ``share``
        link is decoded in place. When a link carries both and the server
        cannot be reached, the embedded snapshot is used.

        Raises:
            ValidationFailure: if the link is not a share link
            DecodeFailure: if the embedded snapshot is malformed
        """
        share_id, payload = share_params(query)
        if not share_id and not payload:
            raise ValidationFailure("Not a share link")

        schedule: SharedScheduleData | None = None
        if share_id and share_client is not None:
            try:
                schedule = await share_client.get(share_id)
            except PlannerError as e:
                logger.warning(f"Could not load shared schedule {share_id}: {e}")

        if schedule is None:
            if not payload:
                raise DecodeFailure("Shared schedule could not be loaded")
            schedule = decode_compact(payload)

        preferences = Preferences(user_name=schedule.owner_name)
        logger.info(f"Opened shared schedule of '{schedule.owner_name or 'Shared'}' ({len(schedule.films)} films)")
        return cls(ScheduleStore(schedule.films), preferences=preferences, read_only=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_writable(self) -> None:
        if self.read_only:
            raise ReadOnlyScheduleError("This is a read-only shared schedule")

    def _require(self, film_id: str | int) -> Film:
        film = self.store.find(film_id)
        if film is None:
            raise ValidationFailure(f"Film not found: {film_id}")
        return film

    def _record_sync_error(self, action: str, error: Exception) -> None:
        message = f"{action}: {error}"
        logger.error(f"Remote sync failed, {message}")
        self.sync_errors.append(message)

    async def _persist(self) -> None:
        """Save locally, then refresh the owner's shared copy if one exists."""
        if self.state is not None:
            self.state.save_films(self.store.all())

        share_id = self.preferences.my_share_id
        if share_id and self.share_client is not None and not self.read_only:
            try:
                await self.share_client.put(share_id, self._shared_data())
                logger.debug(f"Shared schedule {share_id} updated")
            except RemoteSyncFailure as e:
                self._record_sync_error("share update", e)

    async def _create_remote(self, film: Film) -> None:
        if self.notion is None or not self.preferences.notion_database_id:
            return
        try:
            film.notion_page_id = await self.notion.create_film(self.preferences.notion_database_id, film)
        except RemoteSyncFailure as e:
            self._record_sync_error(f"create '{film.title}'", e)
            return
        await self._persist()

    async def _update_remote(self, film: Film) -> None:
        if self.notion is None or not film.notion_page_id:
            return
        try:
            await self.notion.update_film(film.notion_page_id, film)
        except RemoteSyncFailure as e:
            self._record_sync_error(f"update '{film.title}'", e)

    async def _reparse(self, film: Film) -> ExtractedPage | None:
        if self.extractor is None or not film.external_link:
            return None
        try:
            return await self.extractor.fetch_and_extract(film.external_link)
        except (ExtractionFetchError, ValidationFailure) as e:
            logger.warning(f"Could not re-parse '{film.title}': {e}")
            return None

    def _shared_data(self) -> SharedScheduleData:
        return SharedScheduleData(
            owner_name=self.preferences.user_name or DEFAULT_OWNER,
            films=self.store.all(),
        )

    # ------------------------------------------------------------------
    # Adding films
    # ------------------------------------------------------------------

    async def parse(self, url: str) -> ExtractedPage:
        if self.extractor is None:
            raise ValidationFailure("No extractor configured")
        return await self.extractor.fetch_and_extract(url)

    async def add_from_screening(self, page: ExtractedPage, screening_index: int) -> Film:
        """
        Schedule a parsed film at one of its screenings.

        Raises:
            ValidationFailure: if the screening does not exist or is unavailable
        """
        self._check_writable()
        if not 0 <= screening_index < len(page.screenings):
            raise ValidationFailure("Screening not found")
        screening = page.screenings[screening_index]
        if not screening.available:
            raise ValidationFailure(f"This screening is not available: {screening.unavailable_reason}")

        film = self.store.add(film_from_extraction(page, screening))
        logger.info(f"Scheduled '{film.title}' at {film.start_time}")
        await self._persist()
        await self._create_remote(film)
        return film

    async def add_to_favorites(self, page: ExtractedPage) -> Film:
        """Keep a parsed film, with all its screenings, for scheduling later."""
        self._check_writable()
        film = self.store.add(film_from_extraction(page))
        logger.info(f"Added '{film.title}' to favorites ({len(film.screenings)} screenings)")
        await self._persist()
        await self._create_remote(film)
        return film

    async def add_manual(
        self,
        day: date,
        start: time,
        end: time,
        title: str = "",
        location: str = "",
        room: str = "",
        unavailable: bool = False,
        director: str = "",
        country: str = "",
        programme: str = "",
        link: str | None = None,
        moderating: bool = False,
        favorited: bool = False,
        ticket: bool = False,
    ) -> Film:
        """
        Add a film or a blocked time range by hand.

        Times are festival-local. An end before the start is a late-night
        screening ending the next day.

        Raises:
            ValidationFailure: if a film (not blocked time) has no title
        """
        self._check_writable()
        title = title.strip() or (UNAVAILABLE_TITLE if unavailable else "")
        if not title:
            raise ValidationFailure("Missing title")

        tz = settings.festival_tz
        start_time = datetime.combine(day, start, tzinfo=tz)
        end_time = datetime.combine(day, end, tzinfo=tz)
        if end_time < start_time:
            end_time += timedelta(days=1)

        film = self.store.add(
            Film(
                title=title,
                director=director,
                country=country,
                programme=programme,
                start_time=start_time,
                end_time=end_time,
                location=f"{location} {room}".strip() if room else location,
                external_link=link or None,
                moderating=moderating,
                favorited=favorited,
                ticket=ticket,
                unavailable=unavailable,
            )
        )
        logger.info(f"Manually added '{film.title}' at {film.start_time}")
        await self._persist()
        await self._create_remote(film)
        return film

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def refresh_screenings(self, film_id: str | int) -> Film:
        """
        Re-parse a film's festival page for current screenings.

        Only blank director/country/programme fields are filled in; user
        edits are kept.
        """
        self._check_writable()
        film = self._require(film_id)
        page = await self._reparse(film)
        if page is None:
            return film

        def apply(f: Film) -> None:
            f.screenings = page.screenings or f.screenings
            f.director = f.director or page.director
            f.country = f.country or page.country
            f.programme = f.programme or page.programme

        self.store.update(film.id, apply)
        await self._persist()
        return film

    def _select_screening(self, film: Film, screening_index: int) -> Screening:
        if not 0 <= screening_index < len(film.screenings):
            raise ValidationFailure("This screening is no longer available. Please select a different screening.")
        screening = film.screenings[screening_index]
        if not screening.available:
            reason = screening.unavailable_reason or NOT_AVAILABLE
            raise ValidationFailure(f"This screening is not available: {reason}")
        return screening

    async def schedule_from_favorites(self, film_id: str | int, screening_index: int) -> Film:
        """
        Put a favorite on the calendar at one of its stored screenings.

        Favorites loaded without screenings are re-parsed first.
        """
        self._check_writable()
        film = self._require(film_id)
        if not film.screenings:
            await self.refresh_screenings(film.id)
        if not film.screenings:
            raise ValidationFailure("No screenings available for this film")

        screening = self._select_screening(film, screening_index)
        self.store.update(film.id, lambda f: apply_screening(f, screening))
        logger.info(f"Scheduled favorite '{film.title}' at {film.start_time}")
        await self._persist()
        await self._update_remote(film)
        return film

    async def switch_screening(self, film_id: str | int, screening_index: int) -> Film:
        """
        Move a film to another of its screenings.

        Availability is re-checked against the live page first; if the page
        cannot be fetched the stored screenings are used.
        """
        self._check_writable()
        film = self._require(film_id)
        await self.refresh_screenings(film.id)

        screening = self._select_screening(film, screening_index)
        self.store.update(film.id, lambda f: apply_screening(f, screening))
        logger.info(f"Switched '{film.title}' to {film.start_time}")
        await self._persist()
        await self._update_remote(film)
        return film

    async def unschedule(self, film_id: str | int) -> Film:
        """Take a film off the calendar, keeping it as a favorite."""
        self._check_writable()
        film = self._require(film_id)
        if not film.is_scheduled:
            raise ValidationFailure("This film is not scheduled")

        def apply(f: Film) -> None:
            f.start_time = None
            f.end_time = None
            f.location = ""
            f.favorited = True

        self.store.update(film.id, apply)
        await self._persist()
        await self._update_remote(film)
        return film

    async def toggle_status(self, film_id: str | int, status: str) -> Film:
        """
        Flip one of the favorited / ticket / moderating flags.

        Raises:
            ValidationFailure: for an unknown status, or a ticket toggle while
                it is locked (moderating, or no screening time)
        """
        self._check_writable()
        if status not in STATUS_FIELDS:
            raise ValidationFailure(f"Unknown status: {status}")
        film = self._require(film_id)
        if status_toggles(film)[status].disabled:
            raise ValidationFailure(f"'{status}' cannot be changed for '{film.title}' right now")

        self.store.update(film.id, lambda f: setattr(f, status, not getattr(f, status)))
        await self._persist()
        await self._update_remote(film)
        return film

    async def delete(self, film_id: str | int) -> Film:
        """Archive the remote record (best effort), then remove locally."""
        self._check_writable()
        film = self._require(film_id)
        if self.notion is not None and film.notion_page_id:
            try:
                await self.notion.archive_page(film.notion_page_id)
            except RemoteSyncFailure as e:
                self._record_sync_error(f"archive '{film.title}'", e)

        self.store.remove(film.id)
        logger.info(f"Deleted '{film.title}'")
        await self._persist()
        return film

    # ------------------------------------------------------------------
    # Loading and sharing
    # ------------------------------------------------------------------

    async def load_from_remote(self) -> list[Film]:
        """
        Replace the local films with the Notion database contents.

        Falls back to the saved local films when Notion is not configured or
        the query fails.
        """
        self._check_writable()
        if self.notion is None or not self.preferences.notion_database_id:
            logger.info("Notion not configured, using local state")
            films = self.state.load_films() if self.state is not None else self.store.all()
            self.store.replace_all(films)
            return self.store.all()

        try:
            films = await self.notion.fetch_films(self.preferences.notion_database_id)
        except RemoteSyncFailure as e:
            self._record_sync_error("load", e)
            if self.state is not None:
                self.store.replace_all(self.state.load_films())
            return self.store.all()

        self.store.replace_all(films)
        if self.state is not None:
            self.state.save_films(self.store.all())
        return self.store.all()

    async def share(self, app_url: str | None = None) -> str:
        """
        Publish the schedule and return a link to it.

        The owner's share id is minted on first share and reused afterwards,
        so the link keeps showing the latest version. Without a reachable
        share server a static snapshot link is returned instead.

        Raises:
            ValidationFailure: if there is nothing to share
        """
        self._check_writable()
        if not len(self.store):
            raise ValidationFailure("No films to share")

        schedule = self._shared_data()
        if self.share_client is not None:
            try:
                share_id, url = await self.share_client.put(self.preferences.my_share_id, schedule)
            except RemoteSyncFailure as e:
                self._record_sync_error("share", e)
            else:
                if share_id != self.preferences.my_share_id:
                    self.preferences.my_share_id = share_id
                    if self.state is not None:
                        self.state.save_preferences(self.preferences)
                return url

        base_url = app_url or self.preferences.backend_url or f"http://localhost:{settings.api_port}"
        return static_share_url(base_url, schedule)
