"""Notion API client for mirroring films to a user's database."""

import logging
from typing import Any

import httpx

from festplanner.config import settings
from festplanner.exceptions import RemoteSyncFailure, ValidationFailure
from festplanner.schemas.film import Film
from festplanner.services.film_mapper import (
    film_to_notion_properties,
    film_to_notion_updates,
    map_external_records,
    updates_to_notion_properties,
)

logger = logging.getLogger(__name__)


class NotionClient:
    """
    Client for the Notion REST API.

    Notion cannot hard-delete pages over the API; ``archive_page`` is the
    deletion contract.
    """

    def __init__(self, api_key: str, base_url: str | None = None) -> None:
        """
        Initialize Notion client.

        Args:
            api_key: Notion integration secret
            base_url: API root (uses settings if not provided)

        Raises:
            ValidationFailure: if no API key was given
        """
        if not api_key:
            raise ValidationFailure("Missing Notion API key")
        self.api_key = api_key
        self.base_url = (base_url or settings.notion_api_url).rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": settings.notion_version,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=settings.fetch_timeout) as client:
                response = await client.request(method, url, headers=self.headers, json=json)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Notion {method} {path} failed with {status}: {e.response.text}")
            raise RemoteSyncFailure(e.response.text or str(e), status_code=status) from e
        except Exception as e:
            logger.error(f"Notion {method} {path} error: {e}")
            raise RemoteSyncFailure(str(e)) from e

    async def query_database(self, database_id: str) -> dict[str, Any]:
        """
        Query every page of a database.

        Follows ``next_cursor`` until Notion reports no more results and
        returns the merged response.
        """
        body: dict[str, Any] = {"page_size": settings.notion_page_size}
        results: list[dict[str, Any]] = []
        while True:
            data = await self._request("POST", f"/databases/{database_id}/query", json=body)
            results.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                break
            body["start_cursor"] = data["next_cursor"]

        logger.info(f"Fetched {len(results)} pages from Notion database {database_id}")
        return {"object": "list", "results": results, "has_more": False}

    async def test_connection(self, database_id: str) -> dict[str, Any]:
        """Retrieve the database metadata; succeeds only if the key can read it."""
        return await self._request("GET", f"/databases/{database_id}")

    async def create_page(self, database_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        body = {"parent": {"database_id": database_id}, "properties": properties}
        return await self._request("POST", "/pages", json=body)

    async def update_page(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    async def archive_page(self, page_id: str) -> dict[str, Any]:
        logger.info(f"Archiving Notion page {page_id}")
        return await self._request("PATCH", f"/pages/{page_id}", json={"archived": True})

    # Film-level helpers used by the planner

    async def fetch_films(self, database_id: str) -> list[Film]:
        data = await self.query_database(database_id)
        return map_external_records(data["results"])

    async def create_film(self, database_id: str, film: Film) -> str:
        """Create a page for ``film`` and return the new page id."""
        page = await self.create_page(database_id, film_to_notion_properties(film))
        return page["id"]

    async def update_film(self, page_id: str, film: Film) -> dict[str, Any]:
        properties = updates_to_notion_properties(film_to_notion_updates(film))
        return await self.update_page(page_id, properties)
