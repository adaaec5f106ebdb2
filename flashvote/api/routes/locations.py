"""
Location endpoints. Search and single fetch are public so the voting page
can resolve a store; everything else needs an event role.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from flashvote.api.dependencies import CurrentUserDep, SessionDep
from flashvote.schemas.common import CsvImportRequest, ImportResult, MessageResponse
from flashvote.schemas.location import (
    LocationCreate,
    LocationResponse,
    LocationSearchResponse,
    LocationUpdate,
)
from flashvote.services import event_service, location_service

router = APIRouter(tags=["Locations"])


@router.get("/locations/search", response_model=LocationSearchResponse)
async def search_locations_endpoint(
    db: SessionDep,
    zip_code: str = Query(..., min_length=1, max_length=20),
    event_id: Optional[str] = Query(None),
):
    """Locations whose zip code starts with `zip_code`, ordered by name."""
    locations = await location_service.search_locations(db, zip_code, event_id)
    return LocationSearchResponse(locations=locations)


@router.get("/locations/{location_id}", response_model=LocationResponse)
async def get_location_endpoint(location_id: str, db: SessionDep):
    return await location_service.get_location(db, location_id)


@router.patch("/locations/{location_id}", response_model=LocationResponse)
async def update_location_endpoint(
    location_id: str, location_data: LocationUpdate, user_id: CurrentUserDep, db: SessionDep
):
    location = await location_service.get_location(db, location_id)
    await event_service.require_editor(db, location.event_id, user_id, "update this location")
    return await location_service.update_location(db, location, location_data)


@router.delete("/locations/{location_id}", response_model=MessageResponse)
async def delete_location_endpoint(location_id: str, user_id: CurrentUserDep, db: SessionDep):
    location = await location_service.get_location(db, location_id)
    await event_service.require_editor(db, location.event_id, user_id, "delete this location")
    await location_service.delete_location(db, location)
    return MessageResponse(message="Location deleted successfully")


@router.post("/events/{event_id}/locations", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location_endpoint(
    event_id: str, location_data: LocationCreate, user_id: CurrentUserDep, db: SessionDep
):
    event = await event_service.require_editor(db, event_id, user_id, "add locations to this event")
    return await location_service.create_location(db, event, location_data)


@router.get("/events/{event_id}/locations", response_model=list[LocationResponse])
async def list_locations_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    await event_service.require_member(db, event_id, user_id, "view locations for this event")
    return await location_service.list_locations(db, event_id)


@router.post("/events/{event_id}/locations/bulk", response_model=ImportResult)
async def bulk_create_locations_endpoint(
    event_id: str, payload: CsvImportRequest, user_id: CurrentUserDep, db: SessionDep
):
    event = await event_service.require_editor(db, event_id, user_id, "add locations to this event")
    return await location_service.bulk_create_locations(db, event, payload.csv)
