"""Tests for SchedulePlanner operations."""

from datetime import date, datetime, time, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from festplanner.exceptions import (
    DecodeFailure,
    ExtractionFetchError,
    ReadOnlyScheduleError,
    RemoteSyncFailure,
    ShareNotFound,
    ValidationFailure,
)
from festplanner.schemas.film import SOLD_OUT, UNAVAILABLE_TITLE, Film, Screening, SharedScheduleData
from festplanner.schemas.parse import ExtractedPage
from festplanner.services.local_state import LocalStateStore, Preferences
from festplanner.services.planner import SchedulePlanner
from festplanner.services.schedule_store import ScheduleStore
from festplanner.services.share_codec import static_share_url

LINK = "https://iffr.com/nl/iffr/2026/films/sirat"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


def make_screening(day: int = 31, hour: int = 18, available: bool = True, location: str = "KINO 2") -> Screening:
    return Screening(
        start_time=utc(day, hour, 45),
        end_time=utc(day, hour + 3, 57),
        location=location,
        link=LINK,
        unavailable_reason=None if available else SOLD_OUT,
    )


def make_page(*screenings: Screening) -> ExtractedPage:
    return ExtractedPage(
        title="Sirât",
        director="Oliver Laxe",
        country="Spain",
        programme="Limelight",
        link=LINK,
        screenings=list(screenings) or [make_screening()],
    )


def make_scheduled_film(**overrides) -> Film:
    defaults = dict(
        id="1",
        title="Sirât",
        start_time=utc(31, 18, 45),
        end_time=utc(31, 21, 57),
        location="KINO 2",
        external_link=LINK,
        favorited=True,
        screenings=[make_screening(31), make_screening(30, 12), make_screening(29, 10, available=False)],
    )
    defaults.update(overrides)
    return Film(**defaults)


def make_notion() -> AsyncMock:
    notion = AsyncMock()
    notion.create_film = AsyncMock(return_value="page-1")
    return notion


def make_planner(*films: Film, **kwargs) -> SchedulePlanner:
    return SchedulePlanner(ScheduleStore(films), **kwargs)


NOTION_PREFS = dict(notion_api_key="secret", notion_database_id="db1")


# ---------------------------------------------------------------------------
# Adding films
# ---------------------------------------------------------------------------


class TestAddFilms:
    async def test_add_from_screening_schedules_and_mirrors(self, tmp_path: Path) -> None:
        state = LocalStateStore(tmp_path / "state.json")
        notion = make_notion()
        planner = make_planner(state=state, notion=notion, preferences=Preferences(**NOTION_PREFS))

        film = await planner.add_from_screening(make_page(), 0)

        assert film.is_scheduled
        assert film.favorited is True
        assert film.location == "KINO 2"
        assert film.notion_page_id == "page-1"
        notion.create_film.assert_awaited_once()
        assert [f.notion_page_id for f in state.load_films()] == ["page-1"]

    async def test_add_from_unavailable_screening_rejected(self) -> None:
        planner = make_planner()
        with pytest.raises(ValidationFailure):
            await planner.add_from_screening(make_page(make_screening(available=False)), 0)
        assert len(planner.store) == 0

    async def test_add_from_missing_screening_rejected(self) -> None:
        planner = make_planner()
        with pytest.raises(ValidationFailure):
            await planner.add_from_screening(make_page(), 5)

    async def test_add_to_favorites_keeps_all_screenings(self) -> None:
        planner = make_planner()
        film = await planner.add_to_favorites(make_page(make_screening(30), make_screening(31)))

        assert not film.is_scheduled
        assert film.favorited is True
        assert len(film.screenings) == 2
        assert planner.store.favorites_unscheduled() == [film]

    async def test_notion_create_failure_keeps_local_film(self) -> None:
        notion = make_notion()
        notion.create_film.side_effect = RemoteSyncFailure("down", status_code=503)
        planner = make_planner(notion=notion, preferences=Preferences(**NOTION_PREFS))

        film = await planner.add_to_favorites(make_page())

        assert film in planner.store.all()
        assert film.notion_page_id is None
        assert len(planner.sync_errors) == 1

    async def test_add_manual_late_night_rolls_over(self) -> None:
        planner = make_planner()
        film = await planner.add_manual(date(2026, 1, 31), time(23, 30), time(1, 10), title="Midnight", location="Pathé", room="5")

        assert film.duration_minutes == 100
        assert film.end_time.date() == date(2026, 2, 1)
        assert film.location == "Pathé 5"

    async def test_add_manual_blocked_time_gets_default_title(self) -> None:
        planner = make_planner()
        film = await planner.add_manual(date(2026, 1, 30), time(9, 0), time(12, 0), unavailable=True)

        assert film.title == UNAVAILABLE_TITLE
        assert film.unavailable is True

    async def test_add_manual_requires_title(self) -> None:
        planner = make_planner()
        with pytest.raises(ValidationFailure):
            await planner.add_manual(date(2026, 1, 30), time(9, 0), time(12, 0), title="  ")


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class TestScheduling:
    async def test_schedule_from_favorites(self) -> None:
        notion = make_notion()
        favorite = make_scheduled_film(start_time=None, end_time=None, location="", notion_page_id="p1")
        planner = make_planner(favorite, notion=notion)

        film = await planner.schedule_from_favorites("1", 1)

        assert film.start_time == utc(30, 12, 45)
        notion.update_film.assert_awaited_once_with("p1", film)

    async def test_schedule_from_favorites_refreshes_empty_screenings(self) -> None:
        extractor = MagicMock()
        extractor.fetch_and_extract = AsyncMock(return_value=make_page(make_screening(2)))
        favorite = Film(id="1", title="Sirât", external_link=LINK, favorited=True)
        planner = make_planner(favorite, extractor=extractor)

        film = await planner.schedule_from_favorites("1", 0)

        assert film.is_scheduled
        assert film.director == "Oliver Laxe"

    async def test_switch_to_unavailable_screening_rejected(self) -> None:
        extractor = MagicMock()
        extractor.fetch_and_extract = AsyncMock(side_effect=ExtractionFetchError("offline"))
        planner = make_planner(make_scheduled_film(), extractor=extractor)

        with pytest.raises(ValidationFailure, match=SOLD_OUT):
            await planner.switch_screening("1", 2)

        assert planner.store.find("1").start_time == utc(31, 18, 45)

    async def test_switch_uses_live_screenings(self) -> None:
        live = make_page(make_screening(31, available=False), make_screening(1, 14))
        extractor = MagicMock()
        extractor.fetch_and_extract = AsyncMock(return_value=live)
        planner = make_planner(make_scheduled_film(), extractor=extractor)

        film = await planner.switch_screening("1", 1)

        assert film.start_time == make_screening(1, 14).start_time
        assert film.screenings == live.screenings

    async def test_unschedule_keeps_favorite(self) -> None:
        planner = make_planner(make_scheduled_film(favorited=False))
        film = await planner.unschedule("1")

        assert not film.is_scheduled
        assert film.favorited is True
        assert film.location == ""

    async def test_unschedule_unscheduled_film_rejected(self) -> None:
        planner = make_planner(Film(id="1", title="Sirât"))
        with pytest.raises(ValidationFailure):
            await planner.unschedule("1")

    async def test_moderating_locks_ticket_toggle(self) -> None:
        planner = make_planner(make_scheduled_film())
        film = await planner.toggle_status("1", "moderating")
        assert film.moderating is True

        with pytest.raises(ValidationFailure):
            await planner.toggle_status("1", "ticket")
        assert film.ticket is False

    async def test_unknown_status_rejected(self) -> None:
        planner = make_planner(make_scheduled_film())
        with pytest.raises(ValidationFailure):
            await planner.toggle_status("1", "title")

    async def test_delete_survives_archive_failure(self) -> None:
        notion = make_notion()
        notion.archive_page.side_effect = RemoteSyncFailure("gone", status_code=404)
        planner = make_planner(make_scheduled_film(notion_page_id="p1"), notion=notion)

        await planner.delete("1")

        assert len(planner.store) == 0
        assert planner.sync_errors and "archive" in planner.sync_errors[0]


# ---------------------------------------------------------------------------
# Read-only shared schedules
# ---------------------------------------------------------------------------


class TestReadOnly:
    async def test_every_mutation_refused(self) -> None:
        planner = make_planner(make_scheduled_film(), read_only=True)

        with pytest.raises(ReadOnlyScheduleError):
            await planner.add_manual(date(2026, 1, 30), time(9, 0), time(10, 0), title="X")
        with pytest.raises(ReadOnlyScheduleError):
            await planner.toggle_status("1", "ticket")
        with pytest.raises(ReadOnlyScheduleError):
            await planner.delete("1")
        with pytest.raises(ReadOnlyScheduleError):
            await planner.share()

        assert len(planner.store) == 1
        assert planner.store.find("1").ticket is False

    async def test_open_static_link(self) -> None:
        schedule = SharedScheduleData(owner_name="A", films=[make_scheduled_film()])
        url = static_share_url("http://app", schedule)

        planner = await SchedulePlanner.open_shared(url)

        assert planner.read_only is True
        assert planner.preferences.user_name == "A"
        assert [f.title for f in planner.store] == ["Sirât"]

    async def test_open_dynamic_link(self) -> None:
        share_client = AsyncMock()
        share_client.get = AsyncMock(
            return_value=SharedScheduleData(owner_name="B", films=[Film(id="9", title="Dead Man")])
        )
        planner = await SchedulePlanner.open_shared("http://app/?shareId=k3x9", share_client=share_client)

        share_client.get.assert_awaited_once_with("k3x9")
        assert planner.preferences.user_name == "B"
        assert planner.read_only is True

    async def test_dynamic_failure_falls_back_to_snapshot(self) -> None:
        share_client = AsyncMock()
        share_client.get = AsyncMock(side_effect=ShareNotFound("k3x9"))
        snapshot = static_share_url("http://app", SharedScheduleData(owner_name="C", films=[make_scheduled_film()]))

        planner = await SchedulePlanner.open_shared(f"{snapshot}&shareId=k3x9", share_client=share_client)

        assert planner.preferences.user_name == "C"

    async def test_dynamic_failure_without_snapshot(self) -> None:
        share_client = AsyncMock()
        share_client.get = AsyncMock(side_effect=ShareNotFound("k3x9"))
        with pytest.raises(DecodeFailure):
            await SchedulePlanner.open_shared("?shareId=k3x9", share_client=share_client)

    async def test_not_a_share_link(self) -> None:
        with pytest.raises(ValidationFailure):
            await SchedulePlanner.open_shared("http://app/?foo=bar")


# ---------------------------------------------------------------------------
# Loading and sharing
# ---------------------------------------------------------------------------


class TestLoadAndShare:
    async def test_load_from_remote_replaces_films(self) -> None:
        notion = make_notion()
        notion.fetch_films = AsyncMock(return_value=[Film(id="n1", title="Remote")])
        planner = make_planner(make_scheduled_film(), notion=notion, preferences=Preferences(**NOTION_PREFS))

        films = await planner.load_from_remote()

        assert [f.title for f in films] == ["Remote"]
        notion.fetch_films.assert_awaited_once_with("db1")

    async def test_load_failure_falls_back_to_local(self, tmp_path: Path) -> None:
        state = LocalStateStore(tmp_path / "state.json")
        state.save_films([Film(id="1", title="Saved")])
        notion = make_notion()
        notion.fetch_films = AsyncMock(side_effect=RemoteSyncFailure("down"))
        planner = make_planner(state=state, notion=notion, preferences=Preferences(**NOTION_PREFS))

        films = await planner.load_from_remote()

        assert [f.title for f in films] == ["Saved"]
        assert planner.sync_errors

    async def test_share_saves_share_id(self, tmp_path: Path) -> None:
        state = LocalStateStore(tmp_path / "state.json")
        share_client = AsyncMock()
        share_client.put = AsyncMock(return_value=("k3x9", "http://api?shareId=k3x9"))
        planner = make_planner(make_scheduled_film(), state=state, share_client=share_client)

        url = await planner.share()

        assert url == "http://api?shareId=k3x9"
        assert share_client.put.await_args.args[0] is None
        assert share_client.put.await_args.args[1].owner_name == "Anonymous"
        assert state.load_preferences().my_share_id == "k3x9"

    async def test_share_reuses_existing_id(self) -> None:
        share_client = AsyncMock()
        share_client.put = AsyncMock(return_value=("k3x9", "u"))
        planner = make_planner(
            make_scheduled_film(), share_client=share_client, preferences=Preferences(my_share_id="k3x9")
        )

        await planner.share()

        assert share_client.put.await_args.args[0] == "k3x9"

    async def test_share_falls_back_to_static_link(self) -> None:
        share_client = AsyncMock()
        share_client.put = AsyncMock(side_effect=RemoteSyncFailure("unreachable"))
        planner = make_planner(
            make_scheduled_film(), share_client=share_client, preferences=Preferences(user_name="A")
        )

        url = await planner.share(app_url="http://app")

        assert url.startswith("http://app/?share=")
        assert planner.sync_errors
        shared = await SchedulePlanner.open_shared(url)
        assert shared.preferences.user_name == "A"

    async def test_share_empty_schedule_rejected(self) -> None:
        with pytest.raises(ValidationFailure):
            await make_planner().share()

    async def test_mutations_refresh_existing_share(self) -> None:
        share_client = AsyncMock()
        share_client.put = AsyncMock(return_value=("k3x9", "u"))
        planner = make_planner(
            make_scheduled_film(), share_client=share_client, preferences=Preferences(my_share_id="k3x9")
        )

        await planner.toggle_status("1", "ticket")

        share_client.put.assert_awaited_once()
        schedule = share_client.put.await_args.args[1]
        assert schedule.films[0].ticket is True
