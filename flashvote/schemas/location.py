"""
Pydantic schemas for location request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from flashvote.schemas.common import metadata_field


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)


class LocationResponse(BaseModel):
    id: str
    event_id: str
    name: str
    address: Optional[str]
    city: Optional[str]
    zip_code: Optional[str]
    lat: Optional[float]
    lon: Optional[float]
    metadata: Optional[dict] = metadata_field()

    model_config = {"from_attributes": True}


class LocationSearchResponse(BaseModel):
    locations: list[LocationResponse]
