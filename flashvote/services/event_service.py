"""
Event service handling CRUD operations and event-level authorization.

Authorization model:
  - owner: Event.owner_id; may do everything, including archive/delete/grants
  - editor: admin grant with role "editor"; may mutate the event's catalog
  - viewer: admin grant with role "viewer"; read-only dashboard access
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.logging import get_logger
from flashvote.models.admin import EventAdmin, ROLE_EDITOR, ROLE_VIEWER
from flashvote.models.event import Event
from flashvote.schemas.event import AdminCreate, EventCreate, EventUpdate

logger = get_logger(__name__)

ROLE_OWNER = "owner"


def persistence_error(action: str, error: Exception) -> HTTPException:
    """Log a store failure and turn it into a generic 500."""
    logger.error("persistence_error", action=action, error=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


async def get_event(db: AsyncSession, event_id: str) -> Event:
    """Get a single event by ID."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    return event


async def get_event_by_slug(db: AsyncSession, slug: str) -> Event:
    result = await db.execute(select(Event).where(Event.slug == slug))
    event = result.scalar_one_or_none()

    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


async def get_user_role(db: AsyncSession, event: Event, user_id: str) -> Optional[str]:
    """Return owner/editor/viewer for the user on this event, or None."""
    if event.owner_id == user_id:
        return ROLE_OWNER

    result = await db.execute(
        select(EventAdmin.role).where(
            EventAdmin.event_id == event.id,
            EventAdmin.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def require_event_role(
    db: AsyncSession,
    event_id: str,
    user_id: str,
    *,
    allowed: tuple[str, ...],
    action: str,
) -> Event:
    """
    Load the event and check the caller holds one of the allowed roles.
    Raises 404 when the event does not exist and 403 when the role is missing.
    """
    event = await get_event(db, event_id)
    role = await get_user_role(db, event, user_id)
    if role not in allowed:
        logger.warning("permission_denied", event_id=event_id, user_id=user_id, role=role, action=action)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {action}",
        )
    return event


async def require_editor(db: AsyncSession, event_id: str, user_id: str, action: str) -> Event:
    return await require_event_role(
        db, event_id, user_id, allowed=(ROLE_OWNER, ROLE_EDITOR), action=action
    )


async def require_member(db: AsyncSession, event_id: str, user_id: str, action: str) -> Event:
    return await require_event_role(
        db, event_id, user_id, allowed=(ROLE_OWNER, ROLE_EDITOR, ROLE_VIEWER), action=action
    )


async def require_owner(db: AsyncSession, event_id: str, user_id: str, action: str) -> Event:
    return await require_event_role(db, event_id, user_id, allowed=(ROLE_OWNER,), action=action)


async def _ensure_slug_available(db: AsyncSession, slug: str, exclude_id: Optional[str] = None) -> None:
    query = select(Event.id).where(Event.slug == slug)
    if exclude_id:
        query = query.where(Event.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This slug is already taken. Please choose another one.",
        )


async def create_event(db: AsyncSession, event_data: EventCreate, owner_id: str) -> Event:
    """Create a new event owned by the caller. New events are on the free tier."""
    await _ensure_slug_available(db, event_data.slug)

    event = Event(
        title=event_data.title,
        slug=event_data.slug,
        owner_id=owner_id,
        is_premium=False,
        meta=event_data.metadata,
    )
    db.add(event)
    try:
        await db.flush()
        await db.refresh(event)
    except SQLAlchemyError as e:
        raise persistence_error("create event", e)

    logger.info("event_created", event_id=event.id, slug=event.slug, owner_id=owner_id)
    return event


async def list_user_events(db: AsyncSession, user_id: str) -> list[tuple[Event, str]]:
    """
    Events the user owns or holds a grant on, newest first, with the role.
    """
    granted = select(EventAdmin.event_id).where(EventAdmin.user_id == user_id)
    result = await db.execute(
        select(Event)
        .where(or_(Event.owner_id == user_id, Event.id.in_(granted)))
        .order_by(Event.created_at.desc())
    )
    events = list(result.scalars().all())

    grants = await db.execute(
        select(EventAdmin.event_id, EventAdmin.role).where(EventAdmin.user_id == user_id)
    )
    roles = {event_id: role for event_id, role in grants.all()}

    return [
        (event, ROLE_OWNER if event.owner_id == user_id else roles.get(event.id, ROLE_VIEWER))
        for event in events
    ]


async def update_event(db: AsyncSession, event: Event, event_data: EventUpdate) -> tuple[Event, str]:
    """
    Apply a partial update. Returns the event and its slug before the update
    so callers can invalidate caches under the old slug.
    """
    old_slug = event.slug
    changes = event_data.model_dump(exclude_unset=True)

    if changes.get("slug") and changes["slug"] != event.slug:
        await _ensure_slug_available(db, changes["slug"], exclude_id=event.id)

    for field, value in changes.items():
        if field == "metadata":
            event.meta = value
        elif value is not None:
            setattr(event, field, value)

    try:
        await db.flush()
        await db.refresh(event)
    except SQLAlchemyError as e:
        raise persistence_error("update event", e)

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event, old_slug


async def set_archived(db: AsyncSession, event: Event, archived: bool) -> Event:
    """Archive (soft-disable voting) or unarchive an event."""
    event.archived_at = datetime.now(timezone.utc) if archived else None
    try:
        await db.flush()
        await db.refresh(event)
    except SQLAlchemyError as e:
        raise persistence_error("archive event" if archived else "unarchive event", e)

    logger.info("event_archived" if archived else "event_unarchived", event_id=event.id)
    return event


async def delete_event(db: AsyncSession, event: Event) -> None:
    try:
        await db.delete(event)
        await db.flush()
    except SQLAlchemyError as e:
        raise persistence_error("delete event", e)
    logger.info("event_deleted", event_id=event.id, slug=event.slug)


async def list_admins(db: AsyncSession, event_id: str) -> list[EventAdmin]:
    result = await db.execute(
        select(EventAdmin)
        .where(EventAdmin.event_id == event_id)
        .order_by(EventAdmin.created_at.asc())
    )
    return list(result.scalars().all())


async def grant_admin(db: AsyncSession, event: Event, admin_data: AdminCreate) -> EventAdmin:
    """Create or change a user's grant on the event."""
    if admin_data.user_id == event.owner_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The event owner already has full access",
        )

    result = await db.execute(
        select(EventAdmin).where(
            EventAdmin.event_id == event.id,
            EventAdmin.user_id == admin_data.user_id,
        )
    )
    grant = result.scalar_one_or_none()
    if grant:
        grant.role = admin_data.role
    else:
        grant = EventAdmin(event_id=event.id, user_id=admin_data.user_id, role=admin_data.role)
        db.add(grant)

    try:
        await db.flush()
        await db.refresh(grant)
    except SQLAlchemyError as e:
        raise persistence_error("grant access", e)

    logger.info("admin_granted", event_id=event.id, user_id=admin_data.user_id, role=admin_data.role)
    return grant


async def revoke_admin(db: AsyncSession, event: Event, user_id: str) -> None:
    result = await db.execute(
        delete(EventAdmin).where(
            EventAdmin.event_id == event.id,
            EventAdmin.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Admin grant not found",
        )
    logger.info("admin_revoked", event_id=event.id, user_id=user_id)
