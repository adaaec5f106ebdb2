"""
Rate limit store factory.
Configures which backing store the vote writer uses.
"""

from typing import Optional

from flashvote.core.config import get_settings
from flashvote.services.interfaces.rate_limit import RateLimitStore
from flashvote.services.interfaces.memory_rate_limit import InMemoryRateLimitStore


def build_rate_limit_store() -> RateLimitStore:
    """
    Build the configured store.

    - memory (default): process-local, single instance
    - redis: shared across instances, falls back to allowing votes when Redis is down

    Selected via the RATE_LIMIT_BACKEND env var.
    """
    settings = get_settings()
    window = settings.VOTE_RATE_LIMIT_SECONDS

    if settings.RATE_LIMIT_BACKEND == "redis":
        from flashvote.services.interfaces.redis_rate_limit import RedisRateLimitStore
        return RedisRateLimitStore(window)
    return InMemoryRateLimitStore(window)


# Singleton instance
_store: Optional[RateLimitStore] = None


def get_rate_limit_store() -> RateLimitStore:
    """Get rate limit store singleton. Used as a FastAPI dependency."""
    global _store
    if _store is None:
        _store = build_rate_limit_store()
    return _store
