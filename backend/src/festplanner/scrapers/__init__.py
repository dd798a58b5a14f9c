"""Extractor registry for mapping festival sites to extractor classes."""

from typing import Type

from festplanner.scrapers.base import BaseExtractor
from festplanner.scrapers.iffr import IFFRExtractor

# Registry mapping site names to extractor classes
EXTRACTOR_REGISTRY: dict[str, Type[BaseExtractor]] = {
    "iffr": IFFRExtractor,
}


def get_extractor(site: str = "iffr") -> BaseExtractor | None:
    """
    Get an extractor instance by site name.

    Args:
        site: The festival site (e.g., "iffr")

    Returns:
        Extractor instance or None if the site is unknown
    """
    extractor_class = EXTRACTOR_REGISTRY.get(site)
    if extractor_class:
        return extractor_class()
    return None
