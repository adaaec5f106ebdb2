"""
Pydantic schemas for item request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from flashvote.schemas.common import ImportResult, metadata_field, validate_slug


class ItemCreate(BaseModel):
    item_slug: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    item_id: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=1000)

    @field_validator("item_slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        return validate_slug(value)


class ItemUpdate(BaseModel):
    item_slug: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    item_id: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=1000)

    @field_validator("item_slug")
    @classmethod
    def check_slug(cls, value: Optional[str]) -> Optional[str]:
        return validate_slug(value) if value is not None else value


class ItemResponse(BaseModel):
    id: str
    event_id: str
    item_slug: str
    name: str
    item_id: Optional[str]
    category: Optional[str]
    image_url: Optional[str]
    metadata: Optional[dict] = metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ItemImportResult(ImportResult):
    first_item_id: Optional[str] = None
