"""
Per-caller request limits for API endpoints.

Counts live in a Redis sorted set per key (sliding window). When Redis is
disabled or stops answering, counting moves to a process-local fixed window.
"""
import time
from typing import Optional, Callable
from functools import wraps
from fastapi import Request, HTTPException, status
from redis.asyncio import Redis
from redis.exceptions import RedisError
from classboard.config import settings
from classboard.utils.logging_config import get_logger


logger = get_logger(__name__)


class RateLimiter:
    def __init__(self, redis_url: str = None, use_redis: bool = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self._redis: Optional[Redis] = None
        # key -> {"count": int, "reset_at": int}
        self._windows: dict[str, dict] = {}
        if use_redis is None:
            use_redis = settings.RATE_LIMIT_USE_REDIS
        self._local_only = not use_redis

    def _switch_to_local(self, reason: Exception):
        logger.warning(f"Rate limiting falls back to in-memory counters: {reason}")
        self._local_only = True
        self._redis = None

    async def _connect(self) -> Optional[Redis]:
        if self._redis is None and not self._local_only:
            try:
                self._redis = Redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
                await self._redis.ping()
            except (RedisError, OSError) as e:
                self._switch_to_local(e)
        return self._redis

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def _count_in_redis(self, redis: Redis, key: str, now: float, window: int) -> int:
        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, 0, now - window)
        pipe.zcard(key)
        pipe.zadd(key, {str(now): now})
        pipe.expire(key, window)
        _, seen, _, _ = await pipe.execute()
        return seen + 1

    def _count_locally(self, key: str, now: float, window: int) -> tuple[int, int]:
        for stale in [k for k, w in self._windows.items() if w["reset_at"] < now]:
            del self._windows[stale]
        entry = self._windows.setdefault(key, {"count": 0, "reset_at": int(now + window)})
        entry["count"] += 1
        return entry["count"], entry["reset_at"]

    async def is_allowed(self, key: str, limit: int, window: int) -> tuple[bool, dict]:
        """
        Record one hit for key and report whether it fits in the limit.

        Returns:
            (allowed, {"limit", "remaining", "reset"})
        """
        now = time.time()
        count, reset_at = None, int(now + window)

        redis = await self._connect()
        if redis:
            try:
                count = await self._count_in_redis(redis, key, now, window)
            except (RedisError, OSError) as e:
                self._switch_to_local(e)
        if count is None:
            count, reset_at = self._count_locally(key, now, window)

        return count <= limit, {
            "limit": limit,
            "remaining": max(0, limit - count),
            "reset": reset_at,
        }


limiter = RateLimiter()


async def close_rate_limiter():
    await limiter.close()


def get_client_identifier(request: Request) -> str:
    """Authenticated user id when get_current_user ran, client address otherwise."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def rate_limit(limit: int, window: int, identifier: str = "default"):
    """
    Limit an endpoint to `limit` calls per `window` seconds per caller.
    The endpoint must declare a `request: Request` parameter.

    Raises:
        HTTPException: 429 once the caller is over the limit
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            if not settings.RATE_LIMIT_ENABLED or request is None:
                return await func(*args, **kwargs)

            key = f"rate_limit:{identifier}:{get_client_identifier(request)}"
            allowed, info = await limiter.is_allowed(key, limit, window)
            request.state.rate_limit_info = info

            if not allowed:
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Rate limit exceeded. Please try again later.",
                    headers={
                        "X-RateLimit-Limit": str(limit),
                        "X-RateLimit-Remaining": "0",
                        "X-RateLimit-Reset": str(info["reset"]),
                        "Retry-After": str(window),
                    },
                )
            return await func(*args, **kwargs)

        return wrapper
    return decorator
