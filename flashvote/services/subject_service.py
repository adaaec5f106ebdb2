"""
Subject service: CRUD for yes/no questions.
"""

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.logging import get_logger
from flashvote.models.event import Event
from flashvote.models.item import Item
from flashvote.models.subject import Subject
from flashvote.schemas.subject import SubjectCreate, SubjectUpdate
from flashvote.services.event_service import persistence_error

logger = get_logger(__name__)


async def create_subject(db: AsyncSession, event: Event, subject_data: SubjectCreate) -> Subject:
    """
    Create a subject on the event, or on one of its items when item_id is set.
    The item must belong to the same event.
    """
    if subject_data.item_id:
        result = await db.execute(select(Item.event_id).where(Item.id == subject_data.item_id))
        item_event_id = result.scalar_one_or_none()
        if item_event_id != event.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The specified item does not belong to this event",
            )

    subject = Subject(
        label=subject_data.label,
        pos_label=subject_data.pos_label,
        neg_label=subject_data.neg_label,
        event_id=event.id,
        item_id=subject_data.item_id or None,
    )
    db.add(subject)
    try:
        await db.flush()
        await db.refresh(subject)
    except SQLAlchemyError as e:
        raise persistence_error("create subject", e)

    logger.info("subject_created", subject_id=subject.id, event_id=event.id, item_id=subject.item_id)
    return subject


async def get_subject(db: AsyncSession, subject_id: str) -> Subject:
    result = await db.execute(select(Subject).where(Subject.id == subject_id))
    subject = result.scalar_one_or_none()
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subject not found",
        )
    return subject


async def list_subjects(db: AsyncSession, event_id: str, item_id: str | None = None) -> list[Subject]:
    """Subjects of an event; narrowed to one item when item_id is given."""
    query = select(Subject).where(Subject.event_id == event_id)
    if item_id:
        query = query.where(Subject.item_id == item_id)
    result = await db.execute(query.order_by(Subject.created_at.asc()))
    return list(result.scalars().all())


async def update_subject(db: AsyncSession, subject: Subject, subject_data: SubjectUpdate) -> Subject:
    changes = subject_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(subject, field, value)

    try:
        await db.flush()
        await db.refresh(subject)
    except SQLAlchemyError as e:
        raise persistence_error("update subject", e)

    logger.info("subject_updated", subject_id=subject.id, fields=sorted(changes))
    return subject


async def delete_subject(db: AsyncSession, subject: Subject) -> None:
    try:
        await db.delete(subject)
        await db.flush()
    except SQLAlchemyError as e:
        raise persistence_error("delete subject", e)
    logger.info("subject_deleted", subject_id=subject.id, event_id=subject.event_id)
