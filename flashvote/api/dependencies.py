"""
Shared API dependencies.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.security import get_current_user_id, get_optional_user_id
from flashvote.db.session import get_db
from flashvote.services.interfaces.rate_limit import RateLimitStore
from flashvote.services.notification_service import VoteFeed, get_vote_feed
from flashvote.services.strategy_factory import get_rate_limit_store


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, else the socket peer, else "unknown"."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


SessionDep = Annotated[AsyncSession, Depends(get_db)]
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
OptionalUserDep = Annotated[Optional[str], Depends(get_optional_user_id)]
ClientIpDep = Annotated[str, Depends(get_client_ip)]
RateLimiterDep = Annotated[RateLimitStore, Depends(get_rate_limit_store)]
VoteFeedDep = Annotated[VoteFeed, Depends(get_vote_feed)]
