"""
Subject endpoints: the yes/no questions asked on an event or one of its items.
Every change invalidates the event's cached public pages.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from flashvote.api.dependencies import CurrentUserDep, SessionDep
from flashvote.schemas.common import MessageResponse
from flashvote.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate
from flashvote.services import event_service, subject_service
from flashvote.services.cache_service import commit_and_invalidate

router = APIRouter(tags=["Subjects"])


@router.post("/events/{event_id}/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject_endpoint(
    event_id: str, subject_data: SubjectCreate, user_id: CurrentUserDep, db: SessionDep
):
    """Create a question on the event, or on one of its items when item_id is set."""
    event = await event_service.require_editor(db, event_id, user_id, "add subjects to this event")
    subject = await subject_service.create_subject(db, event, subject_data)
    await commit_and_invalidate(db, event.slug)
    return subject


@router.get("/events/{event_id}/subjects", response_model=list[SubjectResponse])
async def list_subjects_endpoint(
    event_id: str,
    user_id: CurrentUserDep,
    db: SessionDep,
    item_id: Optional[str] = Query(None),
):
    await event_service.require_member(db, event_id, user_id, "view subjects for this event")
    return await subject_service.list_subjects(db, event_id, item_id)


@router.patch("/subjects/{subject_id}", response_model=SubjectResponse)
async def update_subject_endpoint(
    subject_id: str, subject_data: SubjectUpdate, user_id: CurrentUserDep, db: SessionDep
):
    subject = await subject_service.get_subject(db, subject_id)
    event = await event_service.require_editor(db, subject.event_id, user_id, "update this subject")
    subject = await subject_service.update_subject(db, subject, subject_data)
    await commit_and_invalidate(db, event.slug)
    return subject


@router.delete("/subjects/{subject_id}", response_model=MessageResponse)
async def delete_subject_endpoint(subject_id: str, user_id: CurrentUserDep, db: SessionDep):
    """Delete a subject. Its votes go with it."""
    subject = await subject_service.get_subject(db, subject_id)
    event = await event_service.require_editor(db, subject.event_id, user_id, "delete this subject")
    await subject_service.delete_subject(db, subject)
    await commit_and_invalidate(db, event.slug)
    return MessageResponse(message="Subject deleted successfully")
