"""
Public (unauthenticated) event and item pages, resolved by slug.

Archived events still resolve, but with archived=true and without subjects
or items: the page shows the event as closed and offers nothing to vote on.
Payloads are cached in Redis by slug; see cache_service for invalidation.
"""

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.logging import get_logger
from flashvote.models.event import Event
from flashvote.models.item import Item
from flashvote.models.subject import Subject
from flashvote.schemas.public import PublicEvent, PublicItem, PublicItemPage, PublicSubject
from flashvote.services.cache_service import (
    get_cached_event_page,
    get_cached_item_page,
    set_cached_event_page,
    set_cached_item_page,
)
from flashvote.services.event_service import get_event_by_slug

logger = get_logger(__name__)


def _public_subject(subject: Subject) -> PublicSubject:
    return PublicSubject(
        id=subject.id,
        label=subject.label,
        pos_label=subject.pos_label,
        neg_label=subject.neg_label,
        item_id=subject.item_id,
        is_default=subject.is_default,
    )


def _public_item(item: Item, subjects: list[Subject]) -> PublicItem:
    return PublicItem(
        id=item.id,
        name=item.name,
        item_slug=item.item_slug,
        category=item.category,
        image_url=item.image_url,
        subjects=[_public_subject(s) for s in subjects if s.item_id == item.id],
    )


def _event_shell(event: Event) -> PublicEvent:
    return PublicEvent(
        id=event.id,
        title=event.title,
        slug=event.slug,
        is_premium=event.is_premium,
        archived=event.is_archived,
    )


async def get_public_event(db: AsyncSession, slug: str) -> PublicEvent:
    cached = await get_cached_event_page(slug)
    if cached:
        return PublicEvent.model_validate(cached)

    event = await get_event_by_slug(db, slug)
    page = _event_shell(event)

    if not event.is_archived:
        subjects = list((await db.execute(
            select(Subject).where(Subject.event_id == event.id).order_by(Subject.created_at.asc())
        )).scalars().all())
        items = list((await db.execute(
            select(Item).where(Item.event_id == event.id).order_by(Item.name.asc())
        )).scalars().all())

        page.subjects = [_public_subject(s) for s in subjects if s.item_id is None]
        page.items = [_public_item(item, subjects) for item in items]

    await set_cached_event_page(slug, page.model_dump(mode="json"))
    return page


async def get_public_item(db: AsyncSession, slug: str, item_slug: str) -> PublicItemPage:
    cached = await get_cached_item_page(slug, item_slug)
    if cached:
        return PublicItemPage.model_validate(cached)

    event = await get_event_by_slug(db, slug)
    if event.is_archived:
        return PublicItemPage(event=_event_shell(event))

    result = await db.execute(
        select(Item).where(Item.event_id == event.id, Item.item_slug == item_slug)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found",
        )

    subjects = list((await db.execute(
        select(Subject).where(Subject.item_id == item.id).order_by(Subject.created_at.asc())
    )).scalars().all())
    # Default "rate this item" question first
    subjects.sort(key=lambda s: not s.is_default)

    page = PublicItemPage(event=_event_shell(event), item=_public_item(item, subjects))
    await set_cached_item_page(slug, item_slug, page.model_dump(mode="json"))
    return page
