"""
Vote endpoints: casting, batch aggregates, time series, the caller's
history and the WebSocket change feed.
"""

import math
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Query, WebSocket, WebSocketDisconnect, status

from flashvote.api.dependencies import (
    ClientIpDep,
    CurrentUserDep,
    OptionalUserDep,
    RateLimiterDep,
    SessionDep,
    VoteFeedDep,
)
from flashvote.core.logging import get_logger
from flashvote.schemas.vote import (
    BatchVotesRequest,
    BatchVotesResponse,
    TimeSeriesResponse,
    VoteCreate,
    VoteHistoryResponse,
    VoteResponse,
)
from flashvote.services import vote_service

logger = get_logger(__name__)

router = APIRouter(prefix="/votes", tags=["Votes"])


@router.post("", response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
async def cast_vote_endpoint(
    vote_data: VoteCreate,
    background_tasks: BackgroundTasks,
    db: SessionDep,
    rate_limiter: RateLimiterDep,
    feed: VoteFeedDep,
    source_ip: ClientIpDep,
    user_id: OptionalUserDep,
):
    """
    Cast a yes/no vote on a subject. Anonymous votes are allowed.

    One vote per source IP and subject per rate-limit window; a repeat
    inside the window gets 429 with Retry-After.
    """
    vote = await vote_service.cast_vote(db, rate_limiter, vote_data, source_ip, user_id)
    background_tasks.add_task(feed.publish, vote.subject_id, vote.location_id)
    return vote


@router.post("/batch", response_model=BatchVotesResponse)
async def batch_votes_endpoint(request: BatchVotesRequest, db: SessionDep):
    """Positive/negative counts for every requested subject."""
    results = await vote_service.aggregate_votes(db, request.subject_ids, request.location_id)
    return BatchVotesResponse(results=results)


@router.get("/batch", response_model=BatchVotesResponse)
async def batch_votes_query_endpoint(
    db: SessionDep,
    subject_ids: Optional[str] = Query(None, description="Comma-separated subject ids"),
    location_id: Optional[str] = Query(None),
):
    ids = [s.strip() for s in (subject_ids or "").split(",") if s.strip()]
    results = await vote_service.aggregate_votes(db, ids, location_id)
    return BatchVotesResponse(results=results)


@router.get("/time-series", response_model=TimeSeriesResponse)
async def time_series_endpoint(
    db: SessionDep,
    subject_id: str = Query(..., min_length=1),
    location_id: Optional[str] = Query(None),
    days: Optional[int] = Query(None, ge=1, le=3650),
):
    """Per-vote points (1 yes, 0 no) over the last `days` plus a running average."""
    series, averaged = await vote_service.vote_time_series(db, subject_id, location_id, days)
    return TimeSeriesResponse(time_series_data=series, running_average=averaged)


@router.get("/history", response_model=VoteHistoryResponse)
async def vote_history_endpoint(
    user_id: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
):
    votes, total = await vote_service.vote_history(db, user_id, page, page_size)
    return VoteHistoryResponse(
        votes=votes,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


@router.websocket("/feed")
async def vote_feed_endpoint(websocket: WebSocket, feed: VoteFeedDep):
    """Push {"type": "vote", "subject_id", "location_id"} for every stored vote."""
    await feed.connect(websocket)
    try:
        while True:
            # Inbound frames are ignored; reading keeps the disconnect visible.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        feed.disconnect(websocket)
