"""
Schemas for the unauthenticated event and item pages.
"""

from typing import Optional
from pydantic import BaseModel


class PublicSubject(BaseModel):
    id: str
    label: str
    pos_label: str
    neg_label: str
    item_id: Optional[str] = None
    is_default: bool = False

    model_config = {"from_attributes": True}


class PublicItem(BaseModel):
    id: str
    name: str
    item_slug: str
    category: Optional[str] = None
    image_url: Optional[str] = None
    subjects: list[PublicSubject] = []


class PublicEvent(BaseModel):
    id: str
    title: str
    slug: str
    is_premium: bool
    archived: bool
    subjects: list[PublicSubject] = []
    items: list[PublicItem] = []


class PublicItemPage(BaseModel):
    event: PublicEvent
    item: Optional[PublicItem] = None
