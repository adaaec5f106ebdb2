"""
Pydantic schemas for event and admin-grant request/response validation.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from flashvote.schemas.common import metadata_field, validate_slug


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100)
    metadata: Optional[dict] = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        return validate_slug(value)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    metadata: Optional[dict] = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: Optional[str]) -> Optional[str]:
        return validate_slug(value) if value is not None else value


class EventResponse(BaseModel):
    id: str
    title: str
    slug: str
    owner_id: str
    is_premium: bool
    archived_at: Optional[datetime]
    metadata: Optional[dict] = metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventListEntry(EventResponse):
    role: str  # owner, editor, viewer


class EventListResponse(BaseModel):
    events: list[EventListEntry]
    total: int


class AdminCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    role: Literal["editor", "viewer"] = "editor"


class AdminResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}
