"""Unit tests for the IFFR page extractor."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from festplanner.exceptions import ExtractionFetchError, ValidationFailure
from festplanner.schemas.film import PRESS_AND_INDUSTRY, SOLD_OUT
from festplanner.scrapers.iffr import FALLBACK_NOTE, PLACEHOLDER_NOTE, IFFRExtractor

FILM_URL = "https://iffr.com/nl/iffr/2026/films/the-quiet-hours"
EVENT_URL = "https://iffr.com/nl/iffr/2026/events/short-stack-1"


@pytest.fixture
def extractor() -> IFFRExtractor:
    return IFFRExtractor()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_row(
    datetime_attr: str = "2026-01-31 19:45",
    text: str = "zaterdag 31 januari 2026 | 19.45 - 22.57",
    location: str = "KINO 2",
    extra: str = "",
) -> str:
    return (
        f'<li><time datetime="{datetime_attr}">{text}</time>'
        f"<span>{location}</span>{extra}</li>"
    )


def make_page(rows: list[str], head: str = "", tail: str = "") -> str:
    return f"""
    <html>
      <head><title>The Quiet Hours | IFFR 2026</title></head>
      <body>
        {head}
        <ul class="flex flex-col">{''.join(rows)}</ul>
        {tail}
      </body>
    </html>
    """


FILM_HEAD = """
<h1 class="font-heading">The Quiet Hours</h1>
<a class="underline" href="/nl/person/anna-de-vries">Anna de Vries</a>
<span class="whitespace-nowrap">Netherlands</span>
<span class="whitespace-nowrap">2025</span>
<span class="whitespace-nowrap">95'</span>
<span class="whitespace-nowrap">Belgium</span>
<span class="whitespace-nowrap">Netherlands</span>
<a class="absolute-link" href="/nl/iffr/2026/programme/bright-future">Bright Future</a>
"""


def make_http_response(text: str, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if status_code >= 400:
        response.raise_for_status.side_effect = Exception(f"HTTP {status_code}")
    else:
        response.raise_for_status = MagicMock()
    return response


def make_async_client_ctx(response: MagicMock | None = None, error: Exception | None = None) -> AsyncMock:
    inner = AsyncMock()
    if error is not None:
        inner.get = AsyncMock(side_effect=error)
    else:
        inner.get = AsyncMock(return_value=response)
    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(return_value=inner)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


# ---------------------------------------------------------------------------
# Screening rows
# ---------------------------------------------------------------------------


class TestIFFRScreenings:
    def test_parses_dutch_screening_row(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract(make_page([make_row()]), FILM_URL)

        assert len(page.screenings) == 1
        screening = page.screenings[0]
        assert screening.start_time == datetime(2026, 1, 31, 18, 45, tzinfo=timezone.utc)
        assert screening.end_time == datetime(2026, 1, 31, 21, 57, tzinfo=timezone.utc)
        assert screening.location == "KINO 2"
        assert screening.available is True
        assert screening.unavailable_reason is None
        assert screening.link == FILM_URL

    def test_parses_english_screening_row(self, extractor: IFFRExtractor) -> None:
        row = make_row("2026-02-03 10:00", "Tuesday 3 February 2026 | 10.00 - 11.42", "Pathé Schouwburgplein 5")
        page = extractor.extract(make_page([row]), FILM_URL)

        screening = page.screenings[0]
        assert screening.start_time == datetime(2026, 2, 3, 9, 0, tzinfo=timezone.utc)
        assert screening.end_time == datetime(2026, 2, 3, 10, 42, tzinfo=timezone.utc)
        assert screening.location == "Pathé Schouwburgplein 5"

    def test_uses_text_when_datetime_attribute_is_malformed(self, extractor: IFFRExtractor) -> None:
        row = make_row("tomorrow", "Sunday 1 February 2026 | 21.15 - 23.00")
        page = extractor.extract(make_page([row]), FILM_URL)

        assert page.screenings[0].start_time == datetime(2026, 2, 1, 20, 15, tzinfo=timezone.utc)

    def test_end_time_after_midnight_rolls_to_next_day(self, extractor: IFFRExtractor) -> None:
        row = make_row("2026-02-06 23:30", "Friday 6 February 2026 | 23.30 - 01.10")
        page = extractor.extract(make_page([row]), FILM_URL)

        screening = page.screenings[0]
        assert screening.end_time - screening.start_time == timedelta(minutes=100)

    def test_skips_row_whose_time_cannot_be_parsed(self, extractor: IFFRExtractor) -> None:
        rows = [make_row("soon", "To be announced"), make_row()]
        page = extractor.extract(make_page(rows), FILM_URL)

        assert len(page.screenings) == 1
        assert page.screenings[0].location == "KINO 2"
        assert page.screenings[0].note is None

    def test_ignores_rows_without_time_element(self, extractor: IFFRExtractor) -> None:
        rows = ["<li>Trailer</li>", make_row()]
        page = extractor.extract(make_page(rows), FILM_URL)
        assert len(page.screenings) == 1

    def test_caps_screenings_at_twenty(self, extractor: IFFRExtractor) -> None:
        rows = [make_row() for _ in range(25)]
        page = extractor.extract(make_page(rows), FILM_URL)
        assert len(page.screenings) == 20

    def test_location_skips_long_spans(self, extractor: IFFRExtractor) -> None:
        long_text = "This screening is followed by an extended conversation with the makers"
        row = (
            '<li><time datetime="2026-01-31 19:45">zaterdag 31 januari 2026 | 19.45 - 22.57</time>'
            f"<span>{long_text}</span><span>LantarenVenster 3</span></li>"
        )
        page = extractor.extract(make_page([row]), FILM_URL)
        assert page.screenings[0].location == "LantarenVenster 3"

    def test_detects_qa(self, extractor: IFFRExtractor) -> None:
        row = make_row(extra="<p>with Q&amp;A</p>")
        page = extractor.extract(make_page([row]), FILM_URL)
        assert page.screenings[0].has_qa is True

    def test_no_qa_by_default(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract(make_page([make_row()]), FILM_URL)
        assert page.screenings[0].has_qa is False


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


class TestIFFRAvailability:
    def test_sold_out_without_buy_button(self, extractor: IFFRExtractor) -> None:
        row = make_row(extra="<span>Sold out</span>")
        screening = extractor.extract(make_page([row]), FILM_URL).screenings[0]

        assert screening.available is False
        assert screening.unavailable_reason == SOLD_OUT

    def test_sold_out_before_buy_button(self, extractor: IFFRExtractor) -> None:
        row = make_row(extra="<span>Sold out</span><button>Buy ticket</button>")
        screening = extractor.extract(make_page([row]), FILM_URL).screenings[0]
        assert screening.unavailable_reason == SOLD_OUT

    def test_buy_button_before_sold_out_text_is_available(self, extractor: IFFRExtractor) -> None:
        row = make_row(extra="<button>Buy ticket</button><p>Almost sold out</p>")
        screening = extractor.extract(make_page([row]), FILM_URL).screenings[0]
        assert screening.available is True

    def test_press_and_industry_badge(self, extractor: IFFRExtractor) -> None:
        row = make_row(extra='<div style="writing-mode: sideways-lr">Press &amp; Industry</div>')
        screening = extractor.extract(make_page([row]), FILM_URL).screenings[0]

        assert screening.available is False
        assert screening.unavailable_reason == PRESS_AND_INDUSTRY

    def test_press_text_without_badge_styling_is_available(self, extractor: IFFRExtractor) -> None:
        row = make_row(extra="<p>Press &amp; Industry welcome</p>")
        screening = extractor.extract(make_page([row]), FILM_URL).screenings[0]
        assert screening.available is True

    def test_press_and_industry_wins_over_sold_out(self, extractor: IFFRExtractor) -> None:
        row = make_row(
            extra='<div style="writing-mode: sideways-lr">Press &amp; Industry</div><span>Sold out</span>'
        )
        screening = extractor.extract(make_page([row]), FILM_URL).screenings[0]
        assert screening.unavailable_reason == PRESS_AND_INDUSTRY


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestIFFRMetadata:
    def test_extracts_film_metadata(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract(make_page([make_row()], head=FILM_HEAD), FILM_URL)

        assert page.title == "The Quiet Hours"
        assert page.director == "Anna de Vries"
        assert page.country == "Netherlands, Belgium"
        assert page.programme == "Bright Future"
        assert page.link == FILM_URL
        assert page.is_event_page is False
        assert page.is_combined_programme is False

    def test_title_falls_back_to_document_title(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract(make_page([make_row()]), FILM_URL)
        assert page.title == "The Quiet Hours"

    def test_unknown_title_when_page_has_none(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract("<html><body><p>Nothing</p></body></html>", FILM_URL)
        assert page.title == "Unknown Film"

    def test_missing_metadata_defaults_to_empty(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract(make_page([make_row()]), FILM_URL)
        assert page.director == ""
        assert page.country == ""
        assert page.programme == ""

    def test_malformed_html_does_not_raise(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract("<html><ul class='flex flex-col'><li><time datetime=", FILM_URL)
        assert len(page.screenings) == 1


# ---------------------------------------------------------------------------
# Combined programmes
# ---------------------------------------------------------------------------


class TestIFFRCombinedProgramme:
    def test_event_page_collects_member_films(self, extractor: IFFRExtractor) -> None:
        members = (
            "<h3>This screening consists of the following films:</h3>"
            "<ul><li>Night Swim</li><li>Paper Moon River</li></ul>"
        )
        tail = """
        <section>
          <h2>In this combined programme</h2>
          <ul>
            <li><a href="/nl/iffr/2026/films/night-swim"><h3>Night Swim</h3></a></li>
            <li><a href="/nl/iffr/2026/films/paper-moon-river"><h3>Paper Moon River</h3></a></li>
          </ul>
        </section>
        """
        page = extractor.extract(make_page([make_row(extra=members)], tail=tail), EVENT_URL)

        assert page.is_event_page is True
        assert page.is_combined_programme is True
        assert page.screenings[0].films == ["Night Swim", "Paper Moon River"]
        assert [(f.title, f.link) for f in page.combined_films] == [
            ("Night Swim", "https://iffr.com/nl/iffr/2026/films/night-swim"),
            ("Paper Moon River", "https://iffr.com/nl/iffr/2026/films/paper-moon-river"),
        ]

    def test_film_page_in_combined_programme_excludes_itself(self, extractor: IFFRExtractor) -> None:
        tail = """
        <h2>Also in this combined programme</h2>
        <ul>
          <li><a href="/nl/iffr/2026/films/the-quiet-hours">The Quiet Hours</a></li>
          <li><a href="https://iffr.com/nl/iffr/2026/films/low-tide">Low Tide</a></li>
          <li><a href="/nl/iffr/2026/films/glass-garden">Glass Garden</a></li>
        </ul>
        """
        page = extractor.extract(make_page([make_row()], head=FILM_HEAD, tail=tail), FILM_URL)

        assert page.is_combined_programme is True
        assert [f.title for f in page.combined_films] == ["Low Tide", "Glass Garden"]

    def test_single_linked_film_is_not_combined(self, extractor: IFFRExtractor) -> None:
        tail = """
        <h2>Also in this combined programme</h2>
        <ul><li><a href="/nl/iffr/2026/films/low-tide">Low Tide</a></li></ul>
        """
        page = extractor.extract(make_page([make_row()], head=FILM_HEAD, tail=tail), FILM_URL)

        assert page.is_combined_programme is False
        assert page.combined_films == []

    def test_event_page_is_combined_even_without_film_list(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract(make_page([make_row()]), EVENT_URL)
        assert page.is_combined_programme is True
        assert page.combined_films == []


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


class TestIFFRFallbacks:
    def test_uses_first_time_element_when_no_rows(self, extractor: IFFRExtractor) -> None:
        html = """
        <html><body>
          <h1>Lone Film</h1>
          <div><time datetime="2026-02-01 14:00">Sunday 1 February 2026 | 14.00 - 15.30</time></div>
        </body></html>
        """
        page = extractor.extract(html, FILM_URL)

        assert len(page.screenings) == 1
        screening = page.screenings[0]
        assert screening.start_time == datetime(2026, 2, 1, 13, 0, tzinfo=timezone.utc)
        assert screening.end_time == datetime(2026, 2, 1, 14, 30, tzinfo=timezone.utc)
        assert screening.location == ""
        assert screening.note == FALLBACK_NOTE

    def test_placeholder_when_no_time_found(self, extractor: IFFRExtractor) -> None:
        page = extractor.extract("<html><body><h1>Mystery</h1></body></html>", FILM_URL)

        assert len(page.screenings) == 1
        screening = page.screenings[0]
        assert screening.end_time - screening.start_time == timedelta(minutes=120)
        assert screening.note == PLACEHOLDER_NOTE
        assert screening.available is True

    def test_placeholder_starts_now(self, extractor: IFFRExtractor) -> None:
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        page = extractor.extract("<html></html>", FILM_URL)
        after = datetime.now(timezone.utc) + timedelta(seconds=1)

        assert before <= page.screenings[0].start_time <= after


# ---------------------------------------------------------------------------
# fetch_and_extract with HTTP mocked
# ---------------------------------------------------------------------------


class TestIFFRFetch:
    async def test_rejects_empty_url(self, extractor: IFFRExtractor) -> None:
        with pytest.raises(ValidationFailure, match="Missing URL"):
            await extractor.fetch_and_extract("  ")

    async def test_fetches_and_extracts(self, extractor: IFFRExtractor) -> None:
        ctx = make_async_client_ctx(make_http_response(make_page([make_row()], head=FILM_HEAD)))
        with patch("httpx.AsyncClient", return_value=ctx):
            page = await extractor.fetch_and_extract(FILM_URL)

        assert page.title == "The Quiet Hours"
        assert len(page.screenings) == 1
        headers = ctx.__aenter__.return_value.get.call_args.kwargs["headers"]
        assert headers["User-Agent"].startswith("Mozilla/5.0")

    async def test_http_error_raises_fetch_error(self, extractor: IFFRExtractor) -> None:
        ctx = make_async_client_ctx(make_http_response("", status_code=503))
        with patch("httpx.AsyncClient", return_value=ctx):
            with pytest.raises(ExtractionFetchError):
                await extractor.fetch_and_extract(FILM_URL)

    async def test_network_error_raises_fetch_error(self, extractor: IFFRExtractor) -> None:
        ctx = make_async_client_ctx(error=Exception("Connection refused"))
        with patch("httpx.AsyncClient", return_value=ctx):
            with pytest.raises(ExtractionFetchError):
                await extractor.fetch_and_extract(FILM_URL)
