"""Thin Redis wrapper used by the automation DAO."""
import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis client exposing the key/value, hash and list operations the DAO needs."""

    def __init__(self, client: redis.Redis):
        """Wrap an existing redis-py client.

        Args:
            client: redis.Redis created with decode_responses=True
        """
        self.client = client

        try:
            self.ping()
            logger.info("[RedisClient] Connected to Redis")
        except redis.ConnectionError as e:
            logger.error(f"[RedisClient] Could not connect to Redis: {e}")
            raise

    def set(self, key: str, value: str) -> None:
        self.client.set(key, value)

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def keys(self, pattern: str) -> list[str]:
        """Return all keys matching the given pattern (e.g. "prefix:*")."""
        return self.client.keys(pattern)

    def mget(self, keys: list[str]) -> list[Optional[str]]:
        if not keys:
            return []
        return self.client.mget(keys)

    def set_nx(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set key only if it does not exist, with expiration.

        Returns:
            True if the key was set
        """
        return bool(self.client.set(key, value, nx=True, ex=ttl_seconds))

    def exists(self, key: str) -> bool:
        return bool(self.client.exists(key))

    def del_(self, key: str) -> None:
        self.client.delete(key)

    def hincrby(self, name: str, field: str, amount: int = 1) -> int:
        return self.client.hincrby(name, field, amount)

    def hgetall(self, name: str) -> dict[str, str]:
        return self.client.hgetall(name)

    def expire(self, key: str, ttl_seconds: int) -> None:
        self.client.expire(key, ttl_seconds)

    def push_capped(self, key: str, value: str, max_length: int) -> None:
        """Prepend value to a list and trim it to max_length entries."""
        pipe = self.client.pipeline()
        pipe.lpush(key, value)
        pipe.ltrim(key, 0, max_length - 1)
        pipe.execute()

    def lrange(self, key: str, start: int, end: int) -> list[str]:
        return self.client.lrange(key, start, end)

    def replace_list(self, key: str, values: list[str]) -> None:
        """Atomically replace the contents of a list, preserving order."""
        pipe = self.client.pipeline()
        pipe.delete(key)
        if values:
            pipe.rpush(key, *values)
        pipe.execute()

    def ping(self) -> bool:
        """Check connectivity to Redis.

        Raises:
            redis.ConnectionError if connection fails
        """
        return self.client.ping()
