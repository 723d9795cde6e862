import json
import logging
from typing import Any, Optional
import redis
from fastapi import Request
from campus_library.config import settings

logger = logging.getLogger(__name__)


def create_cache_client() -> redis.Redis:
    """Build the process-wide Redis client; connections are opened lazily by the pool."""
    return redis.Redis.from_url(settings.redis_url, decode_responses=True, socket_timeout=2)


def get_cache(request: Request) -> Optional[redis.Redis]:
    """FastAPI dependency; None means caching is disabled and every read is a miss."""
    return getattr(request.app.state, "cache", None)


def cache_get_json(cache: Optional[redis.Redis], key: str) -> Optional[Any]:
    if cache is None:
        return None
    try:
        raw = cache.get(key)
    except redis.RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None
    if raw is None:
        return None
    return json.loads(raw)


def cache_set_json(cache: Optional[redis.Redis], key: str, value: Any, ttl_seconds: int):
    if cache is None:
        return
    try:
        cache.set(key, json.dumps(value), ex=ttl_seconds)
    except redis.RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")


def cache_delete(cache: Optional[redis.Redis], key: str):
    if cache is None:
        return
    try:
        cache.delete(key)
        logger.info(f"Cache key {key} invalidated")
    except redis.RedisError as e:
        logger.warning(f"Cache invalidation failed for {key}: {e}")
