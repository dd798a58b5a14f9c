"""Text helpers for festival page titles and venue names."""

import re

# Venue name prefixes as printed on IFFR pages, with their calendar shortcodes.
# Order matters: the first prefix that matches wins.
VENUE_SHORTCODES: dict[str, str] = {
    "de Doelen & de Doelen Studios": "DD",
    "Pathé Schouwburgplein": "PS",
    "Theater Rotterdam": "TR",
    "Cinerama Filmtheater": "CF",
    "Oude Luxor": "OL",
    "KINO": "KINO",
    "LantarenVenster": "LV",
    "Fenix / Plein": "FP",
    "Nieuwe Luxor": "NL",
    "WORM CS & WORM UBIK": "WORM",
    "V2_Lab for Unstable Media": "V2",
    "Nieuwe Instituut": "NI",
    "Stationshal Rotterdam Centraal": "SRC",
    "Brutus": "BR",
    "Katoenhuis": "KH",
    "Podium Islemunda": "PI",
    "Roodkapje": "RK",
    "Muziekwerf": "MZ",
}

# Leading words that identify a venue in a screening row.
VENUE_PREFIX_RE = re.compile(
    r"^(KINO|Cinerama|Pathé|LantarenVenster|de Doelen|Theater|Oude|Nieuwe|Luxor|WORM|V2|"
    r"Nieuwe Instituut|Stationshal|Brutus|Katoenhuis|Podium|Roodkapje|Muziekwerf|Fenix|Plein)",
    re.IGNORECASE,
)


def clean_page_title(title: str) -> str:
    """
    Strip the festival suffix from a page title.

    Examples:
        "Xtended Release | IFFR 2026" → "Xtended Release"
        "  Sirât  " → "Sirât"
    """
    title = re.sub(r"\s*\|\s*IFFR.*$", "", title.strip(), flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", title).strip()


def looks_like_location(text: str) -> bool:
    """
    Guess whether a short text span is a venue/room label.

    Accepts known venue prefixes, anything ending in a room number,
    or anything of at most three words.
    """
    text = text.strip()
    if not text or len(text) >= 50:
        return False
    return bool(
        VENUE_PREFIX_RE.match(text)
        or re.search(r"\d+$", text)
        or len(text.split(" ")) <= 3
    )


def location_shortcode(location: str | None) -> str:
    """
    Compact calendar label for a venue.

    Examples:
        "KINO 2" → "KINO2"
        "LantarenVenster 1" → "LV1"
        "Some Gallery" → "SO"
    """
    if not location:
        return ""

    room_match = re.search(r"(\d+)$", location)
    room = room_match.group(1) if room_match else ""

    shortcode = ""
    for prefix, code in VENUE_SHORTCODES.items():
        if location.startswith(prefix):
            shortcode = code
            break

    if not shortcode:
        shortcode = location.split(" ")[0][:2].upper()

    return f"{shortcode}{room}"
