"""Pydantic schemas for shared schedules."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from festplanner.schemas.film import Film


class ShareRequest(BaseModel):
    """Create or update a shared schedule."""

    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(default="", alias="userName")
    films: list[Film] | None = None
    share_id: str | None = Field(default=None, alias="shareId")


class ShareCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    share_id: str = Field(alias="shareId")
    url: str


class SharedScheduleResponse(BaseModel):
    """A stored shared schedule, as served to viewers."""

    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias="userName")
    films: list[Film]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
