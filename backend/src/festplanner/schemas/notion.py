"""Pydantic schemas for the Notion proxy endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotionDatabaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    database_id: str = Field(default="", alias="databaseId")
    api_key: str = Field(default="", alias="apiKey")


class NotionCreateRequest(NotionDatabaseRequest):
    film: dict[str, Any] | None = None


class NotionPageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page_id: str = Field(default="", alias="pageId")
    api_key: str = Field(default="", alias="apiKey")


class NotionUpdateRequest(NotionPageRequest):
    updates: dict[str, Any] | None = None
