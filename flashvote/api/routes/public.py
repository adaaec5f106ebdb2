"""
Unauthenticated event and item pages, looked up by slug.
"""

from fastapi import APIRouter

from flashvote.api.dependencies import SessionDep
from flashvote.schemas.public import PublicEvent, PublicItemPage
from flashvote.services import public_service

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/events/{slug}", response_model=PublicEvent)
async def get_public_event_endpoint(slug: str, db: SessionDep):
    """
    Event page: event-level subjects and items with their subjects.
    Archived events come back with archived=true and nothing to vote on.
    """
    return await public_service.get_public_event(db, slug)


@router.get("/events/{slug}/items/{item_slug}", response_model=PublicItemPage)
async def get_public_item_endpoint(slug: str, item_slug: str, db: SessionDep):
    return await public_service.get_public_item(db, slug, item_slug)
