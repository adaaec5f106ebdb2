"""
Redis cache for public event and item pages.

Only the catalog is cached (event shell, subjects, items). Vote counts are
never cached: a client that just received a change notification must see
the new totals on its next batch fetch.

Keys:
  flashvote:page:{slug}                     public event page
  flashvote:page:{slug}:item:{item_slug}    public item page
  flashvote:page:{slug}:keys                set of every page key above

Every page written under a slug is registered in that slug's key set, so
invalidation deletes exactly what was written without SCANning the
keyspace. Entries also expire after REDIS_CACHE_TTL in case an
invalidation is lost.

Redis is optional. When disabled or unreachable, reads miss, writes and
invalidations are skipped, and callers fall through to the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from fastapi import HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.config import get_settings
from flashvote.core.logging import get_logger
from flashvote.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

PAGE_PREFIX = "flashvote:page"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Shared Redis connection, created on first use. None when Redis is off or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        redis_connection_errors.inc()
        logger.warning("redis_unreachable", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    _redis_client = client
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def event_page_key(slug: str) -> str:
    return f"{PAGE_PREFIX}:{slug}"


def item_page_key(slug: str, item_slug: str) -> str:
    return f"{PAGE_PREFIX}:{slug}:item:{item_slug}"


def _key_set(slug: str) -> str:
    return f"{PAGE_PREFIX}:{slug}:keys"


async def _read(key: str) -> Optional[dict]:
    client = await get_redis()
    if client is None:
        return None

    try:
        raw = await client.get(key)
    except RedisError as e:
        logger.warning("cache_read_failed", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=raw is not None)
    return json.loads(raw) if raw is not None else None


async def _write(slug: str, key: str, page: dict) -> None:
    client = await get_redis()
    if client is None:
        return

    ttl = settings.REDIS_CACHE_TTL
    try:
        await client.setex(key, ttl, json.dumps(page))
        await client.sadd(_key_set(slug), key)
        await client.expire(_key_set(slug), ttl)
    except RedisError as e:
        logger.warning("cache_write_failed", key=key, error=str(e))
        return
    record_cache_operation("set", hit=True)


async def get_cached_event_page(slug: str) -> Optional[dict]:
    return await _read(event_page_key(slug))


async def set_cached_event_page(slug: str, page: dict) -> None:
    await _write(slug, event_page_key(slug), page)


async def get_cached_item_page(slug: str, item_slug: str) -> Optional[dict]:
    return await _read(item_page_key(slug, item_slug))


async def set_cached_item_page(slug: str, item_slug: str, page: dict) -> None:
    await _write(slug, item_page_key(slug, item_slug), page)


async def invalidate_event_cache(*slugs: str) -> None:
    """
    Drop every cached page of the given events.

    Takes several slugs so a slug rename can clear both the old and the new
    pages in one call; empty slugs are ignored.
    """
    client = await get_redis()
    if client is None:
        return

    for slug in filter(None, set(slugs)):
        try:
            keys = set(await client.smembers(_key_set(slug)))
            keys.update({event_page_key(slug), _key_set(slug)})
            deleted = await client.delete(*keys)
        except RedisError as e:
            logger.warning("cache_invalidation_failed", slug=slug, error=str(e))
            continue
        logger.info("cache_invalidated", slug=slug, keys_deleted=deleted)


async def commit_and_invalidate(db: AsyncSession, *slugs: str) -> None:
    """
    Commit a catalog change, then drop the event's cached pages.

    Invalidating before the commit would let a concurrent public read cache
    the pre-change rows again for a full TTL.
    """
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("catalog_commit_failed", slugs=list(slugs), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save changes",
        )
    await invalidate_event_cache(*slugs)


async def get_cache_stats() -> dict:
    """Hit ratio and key count reported by /health."""
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}

    try:
        stats = await client.info("stats")
        keys = await client.dbsize()
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = stats.get("keyspace_hits", 0)
    misses = stats.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "keys": keys,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
