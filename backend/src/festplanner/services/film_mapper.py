"""Mapping between external records (Notion pages, extractor output) and Film."""

import json
import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from festplanner.schemas.film import CombinedFilm, Film, Screening
from festplanner.schemas.parse import ExtractedPage

logger = logging.getLogger(__name__)

# Accepted spellings per field, first match wins. The remote database is
# edited by hand, so its property names are not guaranteed.
PROPERTY_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("Title", "title", "Name", "name"),
    "director": ("Director", "director"),
    "country": ("Country", "country"),
    "programme": ("Programme", "programme"),
    "start_time": ("Start Time", "StartTime", "startTime"),
    "end_time": ("End Time", "EndTime", "endTime"),
    "location": ("Location", "location"),
    "external_link": ("IFFR Link", "IFFRLink", "iffrLink", "Link", "link"),
    "moderating": ("Moderating", "moderating"),
    "favorited": ("Favorited", "favorited"),
    "ticket": ("Ticket", "ticket"),
    "unavailable": ("Unavailable", "unavailable"),
    "has_qa": ("Q&A", "hasQA"),
    "notes": ("Notes", "notes"),
    "screenings": ("Screenings", "screenings"),
    "combined_programme": ("Combined Programme", "combinedProgramme", "CombinedProgramme"),
}


def _resolve(props: dict[str, Any], field: str) -> Any:
    for key in PROPERTY_ALIASES[field]:
        if key in props and props[key] is not None:
            return props[key]
    return None


def _text(prop: Any) -> str:
    """Plain text of a title/rich_text property, or of a raw value."""
    if prop is None:
        return ""
    if isinstance(prop, str):
        return prop
    if isinstance(prop, dict):
        prop_type = prop.get("type")
        if prop_type in ("title", "rich_text"):
            parts = prop.get(prop_type) or []
            return "".join(p.get("plain_text") or p.get("text", {}).get("content", "") for p in parts)
        if prop_type == "url":
            return prop.get("url") or ""
        return ""
    return str(prop)


def _date(prop: Any) -> datetime | None:
    if prop is None:
        return None
    if isinstance(prop, datetime):
        return prop
    value = prop
    if isinstance(prop, dict):
        if prop.get("type") != "date" or not prop.get("date"):
            return None
        value = prop["date"].get("start")
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable date value: {value!r}")
        return None


def _checkbox(prop: Any) -> bool:
    if isinstance(prop, dict):
        return prop.get("type") == "checkbox" and prop.get("checkbox") is True
    if isinstance(prop, str):
        return prop.lower() == "true"
    return prop is True


def map_screenings_json(text: str | None) -> list[Screening]:
    """
    Parse screenings stored as JSON text.

    Older entries lack availability fields; they default to available.
    Never raises: unparseable text is logged and treated as no screenings,
    and a malformed entry is logged and skipped.
    """
    if not text:
        return []
    try:
        raw = json.loads(text)
        if not isinstance(raw, list):
            raise ValueError("screenings JSON is not a list")
    except ValueError as e:
        logger.warning(f"Failed to parse screenings JSON: {e}")
        return []

    screenings = []
    for index, item in enumerate(raw):
        try:
            item = dict(item)
            item.setdefault("available", True)
            item["unavailableReason"] = item.get("unavailableReason") or None
            item["films"] = item.get("films") or []
            screenings.append(Screening.model_validate(item))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed screening {index + 1}: {e}")
    return screenings


def _combined_films(raw: Any) -> list[CombinedFilm]:
    try:
        return [CombinedFilm.model_validate(f) for f in raw or []]
    except (ValidationError, TypeError) as e:
        logger.warning(f"Failed to parse combined programme films: {e}")
        return []


def _map_combined_programme(text: str) -> tuple[bool, list[CombinedFilm]]:
    if not text:
        return False, []
    try:
        data = json.loads(text)
    except ValueError:
        return text.strip().lower() == "true", []

    if not isinstance(data, dict):
        return bool(data is True), []

    return bool(data.get("isCombinedProgramme")), _combined_films(data.get("combinedFilms"))


def map_external_to_film(record: dict[str, Any]) -> Film | None:
    """
    Map a remote-database page (or a flat property bag) to a Film.

    Args:
        record: Either a Notion page ``{"id": ..., "properties": {...}}``
            or a flat dict of property values

    Returns:
        The Film, or None if the record has no title
    """
    props = record.get("properties") if isinstance(record.get("properties"), dict) else record

    title = _text(_resolve(props, "title")).strip()
    if not title:
        logger.debug(f"Skipping record without title: {record.get('id')}")
        return None

    start_time = _date(_resolve(props, "start_time"))
    end_time = _date(_resolve(props, "end_time"))
    if (start_time is None) != (end_time is None):
        logger.warning(f"'{title}' has only one of start/end time, treating as unscheduled")
        start_time = end_time = None

    screenings_prop = _resolve(props, "screenings")
    if isinstance(screenings_prop, list):
        screenings = map_screenings_json(json.dumps(screenings_prop, default=str))
    else:
        screenings = map_screenings_json(_text(screenings_prop))

    combined_prop = _resolve(props, "combined_programme")
    if "isCombinedProgramme" in props or "combinedFilms" in props:
        is_combined = _checkbox(props.get("isCombinedProgramme"))
        combined_films = _combined_films(props.get("combinedFilms"))
    else:
        is_combined, combined_films = _map_combined_programme(_text(combined_prop))

    page_id = record.get("id") if "properties" in record else None
    if page_id is not None:
        film_id: str | int | None = str(page_id).replace("-", "")
        notion_page_id = str(page_id)
    else:
        film_id = record.get("id")
        notion_page_id = record.get("notionPageId") or record.get("notion_page_id")

    return Film(
        id=film_id,
        notion_page_id=notion_page_id,
        title=title,
        director=_text(_resolve(props, "director")),
        country=_text(_resolve(props, "country")),
        programme=_text(_resolve(props, "programme")),
        start_time=start_time,
        end_time=end_time,
        location=_text(_resolve(props, "location")),
        external_link=_text(_resolve(props, "external_link")) or None,
        moderating=_checkbox(_resolve(props, "moderating")),
        favorited=_checkbox(_resolve(props, "favorited")),
        ticket=_checkbox(_resolve(props, "ticket")),
        unavailable=_checkbox(_resolve(props, "unavailable")),
        has_qa=_checkbox(_resolve(props, "has_qa")),
        notes=_text(_resolve(props, "notes")),
        screenings=screenings,
        is_combined_programme=is_combined,
        combined_films=combined_films,
    )


def map_external_records(records: list[dict[str, Any]]) -> list[Film]:
    """Map a batch of records, dropping those without a title."""
    films = []
    for record in records:
        try:
            film = map_external_to_film(record)
        except ValidationError as e:
            logger.warning(f"Skipping malformed record {record.get('id')}: {e}")
            continue
        if film is not None:
            films.append(film)
    return films


def film_from_extraction(page: ExtractedPage, screening: Screening | None = None) -> Film:
    """
    Build a Film from an extraction result.

    With a screening: a scheduled, favorited film at that screening.
    Without: a favorites-only entry holding every screening for later.
    """
    film = Film(
        title=page.title,
        director=page.director,
        country=page.country,
        programme=page.programme,
        external_link=page.link,
        favorited=True,
        screenings=list(page.screenings),
        is_combined_programme=page.is_combined_programme,
        combined_films=list(page.combined_films),
    )
    if screening is not None:
        apply_screening(film, screening)
    return film


def apply_screening(film: Film, screening: Screening) -> None:
    """Point a film at one of its screenings (time, venue, link, Q&A)."""
    film.start_time = screening.start_time
    film.end_time = screening.end_time
    film.location = screening.location
    film.external_link = screening.link or film.external_link
    film.has_qa = screening.has_qa


# ----------------------------------------------------------------------
# Outbound: Film → Notion properties
# ----------------------------------------------------------------------


def _rich_text(value: str) -> dict:
    return {"rich_text": [{"text": {"content": value}}]}


def _date_prop(value: datetime | str) -> dict:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return {"date": {"start": value.isoformat()}}


def _screenings_json(film: Film) -> str:
    return json.dumps([s.model_dump(mode="json", by_alias=True) for s in film.screenings])


def _combined_json(film: Film) -> str:
    return json.dumps(
        {
            "isCombinedProgramme": True,
            "combinedFilms": [f.model_dump(mode="json") for f in film.combined_films],
        }
    )


def film_to_notion_properties(film: Film) -> dict[str, Any]:
    """Notion page properties for creating a film record."""
    properties: dict[str, Any] = {"Title": {"title": [{"text": {"content": film.title}}]}}

    for key, value in (
        ("Director", film.director),
        ("Country", film.country),
        ("Programme", film.programme),
        ("Location", film.location),
        ("Notes", film.notes),
    ):
        if value:
            properties[key] = _rich_text(value)

    if film.external_link:
        properties["IFFR Link"] = {"url": film.external_link}
    else:
        logger.warning(f"No festival link on film '{film.title}'")

    if film.start_time:
        properties["Start Time"] = _date_prop(film.start_time)
    if film.end_time:
        properties["End Time"] = _date_prop(film.end_time)

    properties["Favorited"] = {"checkbox": film.favorited}
    properties["Ticket"] = {"checkbox": film.ticket}
    properties["Moderating"] = {"checkbox": film.moderating}
    properties["Q&A"] = {"checkbox": film.has_qa}
    properties["Unavailable"] = {"checkbox": film.unavailable}

    if film.screenings:
        properties["Screenings"] = _rich_text(_screenings_json(film))
    if film.is_combined_programme and film.combined_films:
        properties["Combined Programme"] = _rich_text(_combined_json(film))

    return properties


def film_to_notion_updates(film: Film) -> dict[str, Any]:
    """
    Flat update bag for a film, keyed by Notion property name.

    ``None`` start/end values clear the dates on the remote record, and an
    empty Location clears the venue.
    """
    updates: dict[str, Any] = {
        "Title": film.title,
        "Start Time": film.start_time.isoformat() if film.start_time else None,
        "End Time": film.end_time.isoformat() if film.end_time else None,
        "favorited": film.favorited,
        "ticket": film.ticket,
        "moderating": film.moderating,
        "hasQA": film.has_qa,
        "unavailable": film.unavailable,
        "Location": film.location,
    }
    for key, value in (
        ("Director", film.director),
        ("Country", film.country),
        ("Programme", film.programme),
        ("IFFR Link", film.external_link),
        ("Notes", film.notes),
    ):
        if value:
            updates[key] = value

    if film.screenings:
        updates["Screenings"] = _screenings_json(film)
    if film.is_combined_programme and film.combined_films:
        updates["Combined Programme"] = _combined_json(film)
    return updates


def updates_to_notion_properties(updates: dict[str, Any]) -> dict[str, Any]:
    """Translate a flat update bag into Notion PATCH properties."""
    properties: dict[str, Any] = {}

    if updates.get("Title"):
        properties["Title"] = {"title": [{"text": {"content": updates["Title"]}}]}

    for key in ("Start Time", "End Time"):
        if key in updates:
            value = updates[key]
            properties[key] = None if value is None else _date_prop(value)

    if "Location" in updates:
        # An empty value clears the venue left over from an old screening.
        properties["Location"] = _rich_text(updates["Location"]) if updates["Location"] else {"rich_text": []}

    for key in ("Director", "Country", "Programme", "Notes"):
        if updates.get(key):
            properties[key] = _rich_text(updates[key])

    if updates.get("IFFR Link"):
        properties["IFFR Link"] = {"url": updates["IFFR Link"]}

    for key in ("Screenings", "Combined Programme"):
        value = updates.get(key)
        if value:
            properties[key] = _rich_text(value if isinstance(value, str) else json.dumps(value))

    for key, prop_name in (
        ("favorited", "Favorited"),
        ("ticket", "Ticket"),
        ("moderating", "Moderating"),
        ("hasQA", "Q&A"),
        ("unavailable", "Unavailable"),
    ):
        if key in updates:
            properties[prop_name] = {"checkbox": updates[key] is True or updates[key] == "true"}

    return properties
