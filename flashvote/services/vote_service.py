"""
Vote service: the write path and the read-side computations.

WRITE PATH
==========

  1. Rate limit by (source_ip, subject_id) with a fixed window. The key is
     only recorded after the row is stored, so a failed insert never
     consumes the caller's window.
  2. Resolve the subject and refuse votes on archived events.
  3. Insert and commit one immutable row (user_id may be NULL for
     anonymous voters), then record the limiter key. The caller publishes
     the change notification only after this returns.

READ PATH
=========

  Both read operations pull the matching rows in one query and compute in
  memory:

  - aggregate_votes: positive/negative tally per requested subject. Every
    requested id is present in the result, zero-filled.
  - vote_time_series: per-vote points (1 = positive, 0 = negative) in
    creation order, plus a trailing running average over the last N points.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.config import get_settings
from flashvote.core.logging import get_logger
from flashvote.core.metrics import (
    record_rate_limit,
    record_vote,
    vote_aggregate_latency,
    vote_aggregate_subjects,
    vote_write_latency,
)
from flashvote.models.event import Event
from flashvote.models.item import Item
from flashvote.models.location import Location
from flashvote.models.subject import Subject
from flashvote.models.vote import Vote
from flashvote.schemas.vote import TimeSeriesPoint, VoteCreate, VoteHistoryEntry
from flashvote.services.interfaces.rate_limit import RateLimitStore, vote_rate_limit_key

logger = get_logger(__name__)
settings = get_settings()


# ---------------------------------------------------------------------------
# Pure computations
# ---------------------------------------------------------------------------

def tally_votes(subject_ids: Iterable[str], rows: Iterable[tuple[str, bool]]) -> dict[str, dict[str, int]]:
    """Zero-fill every requested subject, then count (subject_id, choice) rows."""
    results = {subject_id: {"positive": 0, "negative": 0} for subject_id in subject_ids}
    for subject_id, choice in rows:
        counts = results.get(subject_id)
        if counts is None:
            continue
        if choice:
            counts["positive"] += 1
        else:
            counts["negative"] += 1
    return results


def running_average(points: Sequence[TimeSeriesPoint], window: int = 5) -> list[TimeSeriesPoint]:
    """Mean of `value` over points [max(0, i - window + 1), i] for each i."""
    averaged = []
    total = 0.0
    for i, point in enumerate(points):
        total += point.value
        if i >= window:
            total -= points[i - window].value
        size = min(i + 1, window)
        averaged.append(TimeSeriesPoint(timestamp=point.timestamp, value=total / size))
    return averaged


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------

async def cast_vote(
    db: AsyncSession,
    rate_limiter: RateLimitStore,
    vote_data: VoteCreate,
    source_ip: str,
    user_id: Optional[str] = None,
) -> Vote:
    """
    Record one vote.

    Raises:
        429 when the same source voted on the same subject inside the window
        404 when the subject does not exist
        409 when the subject's event is archived
        400 when the location is unknown or belongs to another event
        500 when the store rejects the insert
    """
    key = vote_rate_limit_key(source_ip, vote_data.subject_id)
    wait = await rate_limiter.retry_after(key)
    record_rate_limit(allowed=wait is None)
    if wait is not None:
        record_vote("rate_limited")
        logger.info("vote_rate_limited", subject_id=vote_data.subject_id, source_ip=source_ip, retry_after=wait)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Please wait {wait} seconds before voting again.",
            headers={"Retry-After": str(wait)},
        )

    result = await db.execute(
        select(Subject.event_id, Event.archived_at)
        .join(Event, Event.id == Subject.event_id)
        .where(Subject.id == vote_data.subject_id)
    )
    row = result.one_or_none()
    if row is None:
        record_vote("rejected")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subject not found",
        )
    event_id, archived_at = row
    if archived_at is not None:
        record_vote("rejected")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Voting is closed for this event",
        )

    if vote_data.location_id:
        location_event = await db.execute(
            select(Location.event_id).where(Location.id == vote_data.location_id)
        )
        if location_event.scalar_one_or_none() != event_id:
            record_vote("rejected")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Location does not belong to this event",
            )

    vote = Vote(
        subject_id=vote_data.subject_id,
        location_id=vote_data.location_id or None,
        user_id=user_id,
        user_ip=source_ip,
        choice=vote_data.choice,
    )
    start = time.perf_counter()
    # Committed here, not by get_db: the feed notification and the 201 must
    # only go out once the row is visible to other sessions.
    try:
        db.add(vote)
        await db.commit()
        await db.refresh(vote)
    except SQLAlchemyError as e:
        await db.rollback()
        record_vote("error")
        logger.error("vote_insert_failed", subject_id=vote_data.subject_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record vote",
        )
    vote_write_latency.observe(time.perf_counter() - start)

    await rate_limiter.record(key)
    record_vote("created")
    logger.info(
        "vote_recorded",
        vote_id=vote.id,
        subject_id=vote.subject_id,
        location_id=vote.location_id,
        authenticated=user_id is not None,
    )
    return vote


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------

async def aggregate_votes(
    db: AsyncSession,
    subject_ids: Sequence[str],
    location_id: Optional[str] = None,
) -> dict[str, dict[str, int]]:
    """Positive/negative counts for every requested subject in one bulk read."""
    if not subject_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="subject_ids must be a non-empty array",
        )

    requested = list(dict.fromkeys(subject_ids))
    query = select(Vote.subject_id, Vote.choice).where(Vote.subject_id.in_(requested))
    if location_id:
        query = query.where(Vote.location_id == location_id)

    start = time.perf_counter()
    try:
        rows = (await db.execute(query)).all()
    except SQLAlchemyError as e:
        logger.error("vote_aggregate_failed", subjects=len(requested), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred",
        )
    vote_aggregate_latency.observe(time.perf_counter() - start)
    vote_aggregate_subjects.observe(len(requested))

    return tally_votes(requested, rows)


async def vote_time_series(
    db: AsyncSession,
    subject_id: str,
    location_id: Optional[str] = None,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> tuple[list[TimeSeriesPoint], list[TimeSeriesPoint]]:
    """
    Raw per-vote series since now - days, ascending, and its running average.
    """
    days = days if days is not None else settings.TIME_SERIES_DEFAULT_DAYS
    since = (now or datetime.now(timezone.utc)) - timedelta(days=days)

    query = (
        select(Vote.created_at, Vote.choice)
        .where(Vote.subject_id == subject_id, Vote.created_at >= since)
        .order_by(Vote.created_at.asc(), Vote.id.asc())
    )
    if location_id:
        query = query.where(Vote.location_id == location_id)

    try:
        rows = (await db.execute(query)).all()
    except SQLAlchemyError as e:
        logger.error("vote_time_series_failed", subject_id=subject_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred",
        )

    series = [TimeSeriesPoint(timestamp=created_at, value=1 if choice else 0) for created_at, choice in rows]
    return series, running_average(series, settings.RUNNING_AVERAGE_WINDOW)


async def vote_history(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[VoteHistoryEntry], int]:
    """The user's own votes, newest first, with subject/event/item context."""
    total = (
        await db.execute(select(func.count()).select_from(Vote).where(Vote.user_id == user_id))
    ).scalar() or 0

    result = await db.execute(
        select(
            Vote.id,
            Vote.choice,
            Vote.created_at,
            Subject.id,
            Subject.label,
            Subject.pos_label,
            Subject.neg_label,
            Event.title,
            Event.slug,
            Item.name,
        )
        .join(Subject, Subject.id == Vote.subject_id)
        .join(Event, Event.id == Subject.event_id)
        .outerjoin(Item, Item.id == Subject.item_id)
        .where(Vote.user_id == user_id)
        .order_by(Vote.created_at.desc(), Vote.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    entries = [
        VoteHistoryEntry(
            id=vote_id,
            choice=choice,
            created_at=created_at,
            subject_id=subject_id,
            subject_label=label,
            pos_label=pos_label,
            neg_label=neg_label,
            event_title=event_title,
            event_slug=event_slug,
            item_name=item_name,
        )
        for (
            vote_id, choice, created_at, subject_id, label,
            pos_label, neg_label, event_title, event_slug, item_name,
        ) in result.all()
    ]
    return entries, total
