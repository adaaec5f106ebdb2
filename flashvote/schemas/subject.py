"""
Pydantic schemas for subject request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from flashvote.schemas.common import metadata_field


class SubjectCreate(BaseModel):
    label: str = Field(..., max_length=500)
    pos_label: str = Field("Yes", min_length=1, max_length=100)
    neg_label: str = Field("No", min_length=1, max_length=100)
    item_id: Optional[str] = None


class SubjectUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=500)
    pos_label: Optional[str] = Field(None, min_length=1, max_length=100)
    neg_label: Optional[str] = Field(None, min_length=1, max_length=100)


class SubjectResponse(BaseModel):
    id: str
    event_id: str
    item_id: Optional[str]
    label: str
    pos_label: str
    neg_label: str
    metadata: Optional[dict] = metadata_field()
    created_at: datetime

    model_config = {"from_attributes": True}
