"""Debug helper: fetch a festival page and print what the extractor finds."""

import argparse
import asyncio
import logging
import sys

from festplanner.config import settings
from festplanner.exceptions import PlannerError
from festplanner.schemas.parse import ExtractedPage
from festplanner.scrapers.iffr import IFFRExtractor
from festplanner.utils.dates import duration_minutes
from festplanner.utils.text import location_shortcode


def print_summary(page: ExtractedPage) -> None:
    tz = settings.festival_tz

    print(f"Title:      {page.title}")
    print(f"Director:   {page.director or '-'}")
    print(f"Country:    {page.country or '-'}")
    print(f"Programme:  {page.programme or '-'}")
    print(f"Event page: {'yes' if page.is_event_page else 'no'}")
    if page.is_combined_programme:
        titles = ", ".join(f.title for f in page.combined_films) or "-"
        print(f"Combined:   {titles}")

    print(f"\n{len(page.screenings)} screening{'s' if len(page.screenings) != 1 else ''}:")
    for s in page.screenings:
        start = s.start_time.astimezone(tz)
        end = s.end_time.astimezone(tz)
        status = "✓" if s.available else "✗"
        extras = []
        if s.has_qa:
            extras.append("Q&A")
        if s.unavailable_reason:
            extras.append(s.unavailable_reason)
        if s.note:
            extras.append(s.note)
        print(
            f"  {status}  {start:%a %d %b %H:%M}-{end:%H:%M} ({duration_minutes(s.start_time, s.end_time)} min)"
            f"  {location_shortcode(s.location) or '?':<8} {' | '.join(extras)}"
        )


async def parse_link(url: str) -> bool:
    try:
        page = await IFFRExtractor().fetch_and_extract(url)
    except PlannerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False
    print_summary(page)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse an IFFR film or event page and print its screenings.")
    parser.add_argument("url", help="Festival page URL, e.g. https://iffr.com/nl/iffr/2026/films/...")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show extractor debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    ok = asyncio.run(parse_link(args.url))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
