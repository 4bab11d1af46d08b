"""Redis cache client. The app keeps working without Redis, just uncached."""

import json
from typing import Any

import redis
from redis.exceptions import RedisError
from vidtube.config import settings
from vidtube.logger import redis_logger


class RedisClient:
    """Redis client wrapper that degrades to a no-op cache when unreachable."""

    def __init__(self, url: str | None = None):
        """Initialize Redis client from the configured URL."""
        self._url = url or settings.redis_url
        self._client = None
        self._connect()

    def _connect(self):
        """Connect to Redis."""
        try:
            self._client = redis.from_url(
                self._url,
                decode_responses=True,  # Decode bytes to strings
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )

            # Test connection
            self._client.ping()
            redis_logger.info(f"Redis connected successfully ({settings.environment})")

        except RedisError as e:
            redis_logger.error(f"Redis connection failed: {e}")
            redis_logger.warning("Application will continue without caching")
            self._client = None

    @property
    def client(self):
        """Get Redis client instance."""
        return self._client

    def get(self, key: str) -> str | None:
        """Get value from Redis."""
        if not self._client:
            return None

        try:
            return self._client.get(key)
        except RedisError as e:
            redis_logger.debug(f"Redis GET error: {e}")
            return None

    def set(self, key: str, value: str, expire: int | None = None) -> bool:
        """
        Set value in Redis.

        Args:
            key: Cache key
            value: Value to cache
            expire: Expiration time in seconds (optional)

        Returns:
            True if successful, False otherwise
        """
        if not self._client:
            return False

        try:
            if expire:
                return bool(self._client.setex(key, expire, value))
            return bool(self._client.set(key, value))
        except RedisError as e:
            redis_logger.debug(f"Redis SET error: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from Redis."""
        if not self._client:
            return False

        try:
            return self._client.delete(key) > 0
        except RedisError as e:
            redis_logger.debug(f"Redis DELETE error: {e}")
            return False

    def get_json(self, key: str) -> Any | None:
        data = self.get(key)
        return json.loads(data) if data else None

    def set_json(self, key: str, value: Any, expire: int | None = None) -> bool:
        return self.set(key, json.dumps(value, default=str), expire=expire)

    def close(self):
        """Close Redis connection."""
        if self._client:
            self._client.close()


# Global Redis client instance
redis_client = RedisClient()


def get_redis():
    """Dependency for getting Redis client."""
    return redis_client
