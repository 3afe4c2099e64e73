"""
Hybrid in-memory + Redis rate limiting for credential endpoints

Counts are kept in process memory and written through to Redis every
few seconds so several workers converge on one window per key.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .shared.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

redis_client: Optional[redis.Redis] = None

# {key: {"count": int, "reset_time": int, "last_redis_sync": int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Seconds between write-throughs to Redis


def get_redis_client() -> redis.Redis:
    """Get or create the Redis client (REDIS_URL, or REDIS_HOST/REDIS_PORT/...)"""
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for rate limiting...")
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            client = redis.from_url(
                redis_url, decode_responses=True, socket_connect_timeout=5, socket_timeout=5
            )
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        client.ping()
        logger.info("✅ Redis connected")
        redis_client = client

    return redis_client


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """
    Count one hit against ``key``.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    now = int(time.time())

    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None:
            redis_count = client.get(key)
            redis_ttl = client.ttl(key)
            if redis_count and redis_ttl > 0:
                entry = {"count": int(redis_count), "reset_time": now + redis_ttl, "last_redis_sync": now}
            else:
                entry = {"count": 0, "reset_time": now + window_seconds, "last_redis_sync": now}
            memory_cache[key] = entry

        if now >= entry["reset_time"]:
            entry.update(count=0, reset_time=now + window_seconds, last_redis_sync=0)

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if now - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            client.set(key, entry["count"], ex=max(1, entry["reset_time"] - now))
            entry["last_redis_sync"] = now

        return is_allowed, entry["count"], max(0, entry["reset_time"] - now)


async def rate_limit_dependency(
    request: Request, limit: int, window_seconds: int, key_prefix: str = "rate_limit"
):
    if not RATE_LIMIT_ENABLED:
        return

    client_ip = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    key = f"{key_prefix}:{client_ip}"

    try:
        is_allowed, current_count, ttl = check_rate_limit(
            key, limit, window_seconds, get_redis_client()
        )
    except redis.RedisError as e:
        # Fail closed
        logger.error(f"❌ Rate limiting error: {e}")
        raise UpstreamUnavailable("Rate limiting service temporarily unavailable") from e

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit}")
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
            headers={"Retry-After": str(ttl)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        login_limiter = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(login_limiter)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter
