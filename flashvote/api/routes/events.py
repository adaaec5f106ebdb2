"""
Event endpoints: dashboard CRUD, archiving and admin grants.
Catalog mutations invalidate the event's cached public pages.
"""

from fastapi import APIRouter, status

from flashvote.api.dependencies import CurrentUserDep, SessionDep
from flashvote.schemas.common import MessageResponse
from flashvote.schemas.event import (
    AdminCreate,
    AdminResponse,
    EventCreate,
    EventListEntry,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from flashvote.services import event_service
from flashvote.services.cache_service import commit_and_invalidate

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(event_data: EventCreate, user_id: CurrentUserDep, db: SessionDep):
    """Create a new event owned by the caller."""
    return await event_service.create_event(db, event_data, user_id)


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(user_id: CurrentUserDep, db: SessionDep):
    """Events the caller owns or administers, with the caller's role."""
    rows = await event_service.list_user_events(db, user_id)
    entries = [
        EventListEntry.model_validate({**EventResponse.model_validate(event).model_dump(), "role": role})
        for event, role in rows
    ]
    return EventListResponse(events=entries, total=len(entries))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    return await event_service.require_member(db, event_id, user_id, "view this event")


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(event_id: str, event_data: EventUpdate, user_id: CurrentUserDep, db: SessionDep):
    """Update title, slug or metadata. Owners and editors only."""
    event = await event_service.require_editor(db, event_id, user_id, "update this event")
    event, old_slug = await event_service.update_event(db, event, event_data)
    await commit_and_invalidate(db, old_slug, event.slug)
    return event


@router.post("/{event_id}/archive", response_model=EventResponse)
async def archive_event_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    """Archive the event: it stays readable but voting stops. Owner only."""
    event = await event_service.require_owner(db, event_id, user_id, "archive this event")
    event = await event_service.set_archived(db, event, True)
    await commit_and_invalidate(db, event.slug)
    return event


@router.post("/{event_id}/unarchive", response_model=EventResponse)
async def unarchive_event_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    event = await event_service.require_owner(db, event_id, user_id, "unarchive this event")
    event = await event_service.set_archived(db, event, False)
    await commit_and_invalidate(db, event.slug)
    return event


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    event = await event_service.require_owner(db, event_id, user_id, "delete this event")
    slug = event.slug
    await event_service.delete_event(db, event)
    await commit_and_invalidate(db, slug)
    return MessageResponse(message="Event deleted successfully")


@router.get("/{event_id}/admins", response_model=list[AdminResponse])
async def list_admins_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    await event_service.require_owner(db, event_id, user_id, "manage admins for this event")
    return await event_service.list_admins(db, event_id)


@router.post("/{event_id}/admins", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def grant_admin_endpoint(event_id: str, admin_data: AdminCreate, user_id: CurrentUserDep, db: SessionDep):
    """Grant (or change) a user's editor/viewer role on the event."""
    event = await event_service.require_owner(db, event_id, user_id, "manage admins for this event")
    return await event_service.grant_admin(db, event, admin_data)


@router.delete("/{event_id}/admins/{admin_user_id}", response_model=MessageResponse)
async def revoke_admin_endpoint(event_id: str, admin_user_id: str, user_id: CurrentUserDep, db: SessionDep):
    event = await event_service.require_owner(db, event_id, user_id, "manage admins for this event")
    await event_service.revoke_admin(db, event, admin_user_id)
    return MessageResponse(message="Access revoked")
