"""International Film Festival Rotterdam (IFFR) page extractor."""

import logging
import re
from datetime import date, datetime, timedelta, timezone
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from festplanner.config import settings
from festplanner.schemas.film import PRESS_AND_INDUSTRY, SOLD_OUT, CombinedFilm, Screening
from festplanner.schemas.parse import ExtractedPage
from festplanner.scrapers.base import BaseExtractor
from festplanner.utils.text import clean_page_title, looks_like_location

logger = logging.getLogger(__name__)

# English and Dutch month names
MONTH_MAP = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
    "januari": 1, "februari": 2, "maart": 3, "mei": 5,
    "juni": 6, "juli": 7, "augustus": 8, "oktober": 10,
}

# "2026-01-31 19:45"
DATETIME_ATTR_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})\s+(\d{2}):(\d{2})")

# "Saturday 31 January 2026 | 18.30 - 20.03" / "zaterdag 31 januari 2026 | 19.45 - 22.57"
FULL_TIME_TEXT_RE = re.compile(
    r"(?:Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday|"
    r"Maandag|Dinsdag|Woensdag|Donderdag|Vrijdag|Zaterdag|Zondag)\s+"
    r"(\d{1,2})\s+(" + "|".join(MONTH_MAP) + r")\s+(\d{4})\s*\|\s*"
    r"(\d{1,2})\.(\d{2})\s*-\s*(\d{1,2})\.(\d{2})",
    re.IGNORECASE,
)

# "| 19.45 - 22.57" → end time only
END_TIME_RE = re.compile(r"\|\s*\d{1,2}\.\d{2}\s*-\s*(\d{1,2})\.(\d{2})")

CONSISTS_OF_HEADING = "This screening consists of the following films:"
FALLBACK_NOTE = "Parsed from first time element; location may be missing"
PLACEHOLDER_NOTE = "No screenings found - please add manually"


class IFFRExtractor(BaseExtractor):
    """
    Extractor for IFFR film and event pages.

    Film pages (``/films/...``) describe one film, which may itself be part
    of a combined programme. Event pages (``/events/...``) describe a
    programme that bundles several films under one set of showtimes.
    Screenings are ``<li>`` rows carrying a ``<time datetime="...">`` tag.
    """

    BASE_URL = "https://iffr.com"

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = base_url or settings.festival_base_url or self.BASE_URL
        self.tz = settings.festival_tz

    def is_event_page(self, url: str) -> bool:
        return "/events/" in url

    def extract(self, html: str, source_url: str) -> ExtractedPage:
        """Parse an IFFR page into an ExtractedPage."""
        soup = BeautifulSoup(html or "", "html.parser")
        is_event_page = self.is_event_page(source_url)

        title = self._extract_title(soup)
        screenings = self._extract_screenings(soup, source_url)
        combined_films = self._extract_combined_films(soup, screenings, title, is_event_page)

        if not screenings:
            screenings = [self._fallback_screening(soup, source_url)]

        page = ExtractedPage(
            title=title,
            director=self._extract_director(soup),
            country=self._extract_countries(soup),
            programme=self._extract_programme(soup),
            link=source_url,
            is_event_page=is_event_page,
            is_combined_programme=bool(combined_films) or is_event_page,
            combined_films=combined_films,
            screenings=screenings,
        )

        logger.info(
            f"IFFR: Parsed '{page.title}' (event page: {is_event_page}, "
            f"combined: {page.is_combined_programme}, screenings: {len(screenings)})"
        )
        return page

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _extract_title(self, soup: BeautifulSoup) -> str:
        candidates = [
            soup.find("h1", class_="font-heading"),
            soup.find("h1"),
            soup.find("title"),
        ]
        for elem in candidates:
            if elem is None:
                continue
            text = clean_page_title(elem.get_text(" ", strip=True))
            if text:
                return text
        return "Unknown Film"

    def _extract_director(self, soup: BeautifulSoup) -> str:
        person_href = re.compile(r"/person/")
        link = soup.find("a", class_="underline", href=person_href) or soup.find("a", href=person_href)
        return link.get_text(" ", strip=True) if link else ""

    def _extract_countries(self, soup: BeautifulSoup) -> str:
        countries: list[str] = []
        for span in soup.find_all("span", class_="whitespace-nowrap"):
            text = span.get_text(" ", strip=True)
            # Year and running time share the same styling
            if not text or re.fullmatch(r"\d{4}", text) or re.fullmatch(r"\d+'", text):
                continue
            if text not in countries:
                countries.append(text)

        if countries:
            return ", ".join(countries)

        label = soup.find(string=re.compile(r"Countries of production"))
        if label:
            value = label.find_next(string=lambda s: bool(s and s.strip()))
            if value:
                return value.strip()
        return ""

    def _extract_programme(self, soup: BeautifulSoup) -> str:
        link = soup.find("a", class_="absolute-link")
        return link.get_text(" ", strip=True) if link else ""

    # ------------------------------------------------------------------
    # Screenings
    # ------------------------------------------------------------------

    def _screening_rows(self, soup: BeautifulSoup) -> list[Tag]:
        containers = soup.select("ul.flex.flex-col")
        if not containers:
            return soup.find_all("li")

        rows: list[Tag] = []
        seen: set[int] = set()
        for container in containers:
            for li in container.find_all("li"):
                if id(li) not in seen:
                    seen.add(id(li))
                    rows.append(li)
        return rows

    def _extract_screenings(self, soup: BeautifulSoup, source_url: str) -> list[Screening]:
        screenings: list[Screening] = []
        rows = self._screening_rows(soup)
        logger.debug(f"IFFR: {len(rows)} candidate <li> rows")

        for index, li in enumerate(rows):
            if len(screenings) >= settings.max_screenings:
                break

            time_tag = li.find("time", attrs={"datetime": True})
            if time_tag is None:
                continue

            try:
                screening = self._parse_screening(li, time_tag, source_url)
            except Exception as e:
                logger.warning(f"IFFR: Failed to parse screening row {index + 1}: {e}")
                continue

            if screening is None:
                logger.debug(
                    f"IFFR: Skipping row {index + 1}, could not resolve time "
                    f"'{time_tag.get_text(' ', strip=True)}' ({time_tag.get('datetime')})"
                )
                continue

            screenings.append(screening)

        logger.debug(f"IFFR: {len(screenings)} screenings parsed")
        return screenings

    def _parse_screening(self, li: Tag, time_tag: Tag, source_url: str) -> Screening | None:
        times = self._parse_time_range(time_tag.get("datetime", ""), time_tag.get_text(" ", strip=True))
        if times is None:
            return None
        start_time, end_time = times

        li_text = li.get_text(" ", strip=True)
        available, reason = self._classify_availability(li, li_text)

        return Screening(
            start_time=start_time,
            end_time=end_time,
            location=self._extract_location(time_tag),
            link=source_url,
            has_qa=bool(re.search(r"with Q(?:&|&amp;)A", li_text)),
            available=available,
            unavailable_reason=reason,
            films=self._extract_member_titles(li),
        )

    def _parse_time_range(self, datetime_attr: str, text: str) -> tuple[datetime, datetime] | None:
        """
        Resolve start and end of a screening.

        The ``datetime`` attribute is authoritative for the start; the end
        only exists in the human-readable range. The full text form
        (day name, date, range) is the fallback for both.

        Returns:
            (start, end) in UTC, or None if either cannot be resolved
        """
        start: datetime | None = None
        end: datetime | None = None
        day: date | None = None

        attr_match = DATETIME_ATTR_RE.search(datetime_attr or "")
        if attr_match:
            year, month, dd, hour, minute = (int(g) for g in attr_match.groups())
            try:
                start = datetime(year, month, dd, hour, minute, tzinfo=self.tz)
                day = start.date()
            except ValueError:
                start = None

        text_match = FULL_TIME_TEXT_RE.search(text or "")
        if text_match:
            dd, month_name, year, start_h, start_m, end_h, end_m = text_match.groups()
            month = MONTH_MAP[month_name.lower()]
            text_day = date(int(year), month, int(dd))
            if start is None:
                start = self._at(text_day, int(start_h), int(start_m))
                day = text_day
            end = self._at(text_day, int(end_h), int(end_m))
        elif start is not None:
            end_match = END_TIME_RE.search(text or "")
            if end_match:
                end = self._at(day, int(end_match.group(1)), int(end_match.group(2)))

        if start is None or end is None:
            return None

        # Late-night screenings run past midnight
        if end < start:
            end += timedelta(days=1)
        if end <= start:
            return None

        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)

    def _at(self, day: date, hour: int, minute: int) -> datetime:
        return datetime(day.year, day.month, day.day, hour, minute, tzinfo=self.tz)

    def _extract_location(self, time_tag: Tag) -> str:
        for span in time_tag.find_next_siblings("span"):
            text = span.get_text(" ", strip=True)
            if looks_like_location(text):
                return text
        return ""

    def _classify_availability(self, li: Tag, li_text: str) -> tuple[bool, str | None]:
        """
        Work out whether a screening can still be booked.

        Sold out: "sold out" shown with no "buy ticket" button, or before it.
        Press & Industry: the badge is rendered with sideways text.
        """
        lowered = li_text.lower()
        has_buy_button = re.search(r"buy\s*ticket", lowered) is not None
        has_sold_out = re.search(r"sold\s*out", lowered) is not None
        has_sideways = li.find(style=re.compile(r"writing-mode:\s*sideways-lr")) is not None
        has_press_text = re.search(r"press\s*(?:&|and|&amp;)\s*industry", lowered) is not None

        is_press_only = has_sideways and has_press_text
        is_sold_out = has_sold_out and (
            not has_buy_button or lowered.find("sold") < lowered.find("buy")
        )

        if is_press_only:
            return False, PRESS_AND_INDUSTRY
        if is_sold_out:
            return False, SOLD_OUT
        return True, None

    def _extract_member_titles(self, li: Tag) -> list[str]:
        titles: list[str] = []
        for heading in li.find_all("h3"):
            if CONSISTS_OF_HEADING not in heading.get_text(" ", strip=True):
                continue
            film_list = heading.find_next_sibling("ul")
            if film_list is None:
                continue
            for film_li in film_list.find_all("li"):
                film_title = film_li.get_text(" ", strip=True)
                if film_title:
                    titles.append(film_title)
        return titles

    # ------------------------------------------------------------------
    # Combined programmes
    # ------------------------------------------------------------------

    def _extract_combined_films(
        self,
        soup: BeautifulSoup,
        screenings: list[Screening],
        title: str,
        is_event_page: bool,
    ) -> list[CombinedFilm]:
        """
        Collect the films of a combined programme.

        Returns an empty list unless more than one distinct title was found.
        """
        films: dict[str, str | None] = {}
        for screening in screenings:
            for film_title in screening.films:
                films.setdefault(film_title, None)

        heading_text = "In this combined programme" if is_event_page else "Also in this combined programme"
        for label in soup.find_all(string=re.compile(re.escape(heading_text))):
            film_list = self._list_after(label.parent)
            if film_list is None:
                continue

            for link in film_list.find_all("a", href=re.compile(r"/films/")):
                href = link["href"]
                film_url = href if href.startswith("http") else urljoin(self.base_url, href)
                heading = link.find(["h2", "h3"])
                film_title = (heading or link).get_text(" ", strip=True)
                if film_title and (is_event_page or film_title != title):
                    films[film_title] = film_url

        if len(films) <= 1:
            return []

        logger.debug(f"IFFR: Combined programme with {len(films)} films")
        return [CombinedFilm(title=t, link=link) for t, link in films.items()]

    def _list_after(self, elem: Tag | None) -> Tag | None:
        """First <ul>/<ol> following the element or one of its ancestors."""
        while elem is not None and elem.name not in ("body", "html", "[document]"):
            film_list = elem.find_next_sibling(["ul", "ol"])
            if film_list is not None:
                return film_list
            elem = elem.parent
        return None

    # ------------------------------------------------------------------
    # Fallbacks
    # ------------------------------------------------------------------

    def _fallback_screening(self, soup: BeautifulSoup, source_url: str) -> Screening:
        """
        Build a screening when no rows could be parsed.

        First tries the first ``<time datetime>`` on the page; otherwise a
        placeholder starting now with a default duration.
        """
        time_tag = soup.find("time", attrs={"datetime": True})
        if time_tag is not None:
            try:
                datetime_attr = time_tag.get("datetime", "")
                text = time_tag.get_text(" ", strip=True)
                if DATETIME_ATTR_RE.search(datetime_attr) and END_TIME_RE.search(text):
                    times = self._parse_time_range(datetime_attr, text)
                    if times is not None:
                        logger.warning("IFFR: No screening rows, using first <time> element")
                        return Screening(
                            start_time=times[0],
                            end_time=times[1],
                            location="",
                            link=source_url,
                            note=FALLBACK_NOTE,
                        )
            except Exception as e:
                logger.warning(f"IFFR: Fallback from first <time> element failed: {e}")

        logger.warning(f"IFFR: No screenings found on {source_url}, using placeholder")
        start = datetime.now(timezone.utc).replace(microsecond=0)
        return Screening(
            start_time=start,
            end_time=start + timedelta(minutes=settings.placeholder_duration_minutes),
            location="",
            link=source_url,
            note=PLACEHOLDER_NOTE,
        )
