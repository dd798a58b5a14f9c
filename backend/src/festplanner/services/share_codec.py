"""
Compact schedule encoding for static share links.

A schedule is projected to short keys, serialized as compact JSON,
percent-encoded and base64-encoded so it fits in a ``?share=`` query
parameter. Ids are not carried; decoding mints fresh ones.
"""

import base64
import binascii
import json
import logging
import secrets
import time
from typing import Any
from urllib.parse import parse_qs, quote, unquote, urlsplit

from pydantic import ValidationError

from festplanner.exceptions import DecodeFailure
from festplanner.schemas.film import CombinedFilm, Film, Screening, SharedScheduleData

logger = logging.getLogger(__name__)

INVALID_LINK = "Invalid share link"

# Characters encodeURIComponent leaves alone; keeps links produced by the
# web client and by this module byte-identical.
_URI_SAFE = "-_.!~*'()"


def _compact_film(film: Film) -> dict[str, Any]:
    return {
        "t": film.title,
        "d": film.director,
        "c": film.country,
        "p": film.programme,
        "l": film.location,
        "st": film.start_time.isoformat() if film.start_time else None,
        "et": film.end_time.isoformat() if film.end_time else None,
        "r": film.room,
        "link": film.external_link,
        "fav": film.favorited,
        "tick": film.ticket,
        "mod": film.moderating,
        "qa": film.has_qa,
        "scr": [s.model_dump(mode="json", by_alias=True) for s in film.screenings],
        "un": film.unavailable,
        "cp": film.is_combined_programme,
        "cf": [f.model_dump(mode="json") for f in film.combined_films],
        "nt": film.notes,
    }


def encode_compact(schedule: SharedScheduleData) -> str:
    """Encode a schedule for a ``?share=`` link."""
    payload = {"n": schedule.owner_name, "f": [_compact_film(f) for f in schedule.films]}
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(quote(text, safe=_URI_SAFE).encode("ascii")).decode("ascii")


def _fresh_id(taken: set[str]) -> str:
    # Timestamp plus random suffix, unique within one decoded schedule.
    while True:
        candidate = f"{int(time.time() * 1000)}{secrets.token_hex(3)}"
        if candidate not in taken:
            taken.add(candidate)
            return candidate


def _expand_film(data: dict[str, Any], film_id: str) -> Film:
    return Film(
        id=film_id,
        title=data["t"],
        director=data.get("d") or "",
        country=data.get("c") or "",
        programme=data.get("p") or "",
        location=data.get("l") or "",
        start_time=data.get("st") or None,
        end_time=data.get("et") or None,
        room=data.get("r") or "",
        external_link=data.get("link") or None,
        favorited=bool(data.get("fav", False)),
        ticket=bool(data.get("tick", False)),
        moderating=bool(data.get("mod", False)),
        has_qa=bool(data.get("qa", False)),
        screenings=[Screening.model_validate(s) for s in data.get("scr") or []],
        unavailable=bool(data.get("un", False)),
        is_combined_programme=bool(data.get("cp", False)),
        combined_films=[CombinedFilm.model_validate(f) for f in data.get("cf") or []],
        notes=data.get("nt") or "",
    )


def decode_compact(text: str) -> SharedScheduleData:
    """
    Decode a ``?share=`` payload.

    Raises:
        DecodeFailure: on malformed base64, percent-encoding, JSON or film
            data. No partial schedule is ever returned.
    """
    try:
        raw = base64.b64decode(text.strip(), validate=True).decode("ascii")
        payload = json.loads(unquote(raw, errors="strict"))
        if not isinstance(payload, dict) or not isinstance(payload.get("f", []), list):
            raise ValueError("share payload is not a schedule")

        taken: set[str] = set()
        films = [_expand_film(item, _fresh_id(taken)) for item in payload.get("f", [])]
        return SharedScheduleData(owner_name=payload.get("n") or "", films=films)
    except (binascii.Error, ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
        logger.warning(f"Failed to decode share payload: {e}")
        raise DecodeFailure(INVALID_LINK) from e


def share_params(query: str) -> tuple[str | None, str | None]:
    """
    Pull ``shareId`` and ``share`` out of a link or query string.

    Returns:
        ``(share_id, payload)``, either of which may be None
    """
    if "?" in query or "://" in query:
        query = urlsplit(query).query
    params = parse_qs(query.lstrip("?"))

    share_id = (params.get("shareId") or [None])[0] or None
    payload = (params.get("share") or [None])[0] or None
    if payload is not None:
        # parse_qs turns '+' into ' '; base64 needs it back.
        payload = payload.replace(" ", "+")
    return share_id, payload


def parse_share_query(query: str) -> tuple[str, str] | None:
    """
    Classify a share link.

    Returns:
        ``("dynamic", share_id)`` for ``?shareId=``, ``("static", payload)``
        for ``?share=``, or None when the link is neither. A dynamic id wins
        when both are present.
    """
    share_id, payload = share_params(query)
    if share_id:
        return "dynamic", share_id
    if payload:
        return "static", payload
    return None


def static_share_url(base_url: str, schedule: SharedScheduleData) -> str:
    return f"{base_url.rstrip('/')}/?share={quote(encode_compact(schedule), safe='')}"
