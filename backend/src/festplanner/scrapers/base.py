"""Base extractor interface for festival page extractors."""

import logging
from abc import ABC, abstractmethod

import httpx

from festplanner.config import settings
from festplanner.exceptions import ExtractionFetchError, ValidationFailure
from festplanner.schemas.parse import ExtractedPage

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Abstract base class for festival page extractors.

    Subclasses implement ``extract`` for one site's markup; fetching and
    URL validation are shared.
    """

    @abstractmethod
    def extract(self, html: str, source_url: str) -> ExtractedPage:
        """
        Parse a fetched page into an ExtractedPage.

        Args:
            html: Raw page markup
            source_url: URL the markup was fetched from

        Returns:
            Extraction result with at least one screening

        Raises:
            Should NOT raise exceptions. Degrade to defaults and log warnings.
        """
        pass

    async def fetch_and_extract(self, url: str) -> ExtractedPage:
        """
        Fetch a festival page and extract it.

        Raises:
            ValidationFailure: if no URL was given
            ExtractionFetchError: if the page could not be fetched
        """
        url = (url or "").strip()
        if not url:
            raise ValidationFailure("Missing URL")

        html = await self.fetch(url)
        return self.extract(html, url)

    async def fetch(self, url: str) -> str:
        """Fetch page markup with a browser-like User-Agent."""
        try:
            async with httpx.AsyncClient(timeout=settings.fetch_timeout, follow_redirects=True) as client:
                response = await client.get(url, headers={"User-Agent": settings.user_agent})
                response.raise_for_status()
                return response.text
        except Exception as e:
            logger.error(f"Failed to fetch festival page {url}: {e}")
            raise ExtractionFetchError(f"Failed to fetch festival page: {e}") from e
