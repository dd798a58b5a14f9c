"""Festival page parsing endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from festplanner.exceptions import ExtractionFetchError, ValidationFailure
from festplanner.schemas.parse import ExtractedPage, ParseRequest
from festplanner.scrapers import get_extractor
from festplanner.scrapers.base import BaseExtractor

logger = logging.getLogger(__name__)
router = APIRouter()


def get_iffr_extractor() -> BaseExtractor:
    return get_extractor("iffr")


@router.post("/iffr/parse", response_model=ExtractedPage, response_model_by_alias=True)
async def parse_festival_page(
    request: ParseRequest,
    extractor: BaseExtractor = Depends(get_iffr_extractor),
) -> ExtractedPage:
    """
    Fetch a festival film or event page and extract its screenings.

    Args:
        request: Body holding the page URL
        extractor: Site extractor

    Returns:
        Film metadata plus every screening found on the page

    Raises:
        HTTPException: 400 if the URL is missing, 502 if the page could not
            be fetched
    """
    try:
        return await extractor.fetch_and_extract(request.url)
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExtractionFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Error parsing {request.url}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
