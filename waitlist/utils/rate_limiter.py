import logging
from typing import Optional

from redis import Redis, ConnectionPool
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window request counter kept in Redis."""

    def __init__(self, client: Redis, limit: int, window_seconds: int, prefix: str = "ratelimit"):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str, limit: int, window_seconds: int) -> "RateLimiter":
        pool = ConnectionPool.from_url(redis_url, decode_responses=True)
        return cls(Redis(connection_pool=pool), limit, window_seconds)

    def allow(self, key: str) -> bool:
        """Return True if action under key is allowed within window, else False.

        Uses INCR + EXPIRE (nx) so the window starts at the first hit. When Redis
        is unreachable the request is let through.
        """
        full_key = f"{self.prefix}:{key}"
        try:
            with self.client.pipeline() as pipe:
                pipe.incr(full_key, 1)
                pipe.expire(full_key, self.window_seconds, nx=True)
                count, _ = pipe.execute()
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return True
        try:
            count_int = int(count)
        except (TypeError, ValueError):
            count_int = self.limit  # be safe
        return count_int <= self.limit

    def allow_for_client(self, client_ip: Optional[str]) -> bool:
        return self.allow(f"api:{client_ip or 'unknown'}")

    def close(self) -> None:
        self.client.close()
