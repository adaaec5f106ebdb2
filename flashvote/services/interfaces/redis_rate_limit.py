"""
Redis-backed rate limit store.

Each accepted vote sets `key` with an expiry of the window length; the
remaining TTL is the retry delay. On Redis failure the store fails open
(allows the vote): the limiter is abuse throttling, and the vote row is the
source of truth.
"""

from typing import Optional

from flashvote.core.logging import get_logger
from flashvote.core.metrics import redis_connection_errors
from flashvote.services.cache_service import get_redis
from flashvote.services.interfaces.rate_limit import RateLimitStore

logger = get_logger(__name__)


class RedisRateLimitStore(RateLimitStore):
    """
    Shared store for horizontally scaled deployments.
    """

    async def retry_after(self, key: str) -> Optional[int]:
        client = await get_redis()
        if not client:
            return None
        try:
            ttl_ms = await client.pttl(key)
        except Exception as e:
            redis_connection_errors.inc()
            logger.error("rate_limit_check_failed", key=key, error=str(e))
            return None

        # -2: no key, -1: key without expiry (not ours, treat as free)
        if ttl_ms is None or ttl_ms < 0:
            return None
        return max(1, min(self.window_seconds, -(-ttl_ms // 1000)))

    async def record(self, key: str) -> None:
        client = await get_redis()
        if not client:
            return
        try:
            await client.set(key, "1", ex=self.window_seconds)
        except Exception as e:
            redis_connection_errors.inc()
            logger.error("rate_limit_record_failed", key=key, error=str(e))

    async def reset(self) -> None:
        client = await get_redis()
        if not client:
            return
        try:
            async for key in client.scan_iter(match="vote_rl:*", count=100):
                await client.delete(key)
        except Exception as e:
            logger.error("rate_limit_reset_failed", error=str(e))
