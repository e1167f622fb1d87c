"""Shared fixtures for the test suite."""
import fnmatch
from typing import Optional

import pytest

from app.dao import RedisAutomationDAO
from app.services import NotificationService


class InMemoryRedisClient:
    """Dict-backed double for app.db.RedisClient (no real Redis needed)."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def keys(self, pattern: str) -> list[str]:
        return [k for k in self.values if fnmatch.fnmatchcase(k, pattern)]

    def mget(self, keys: list[str]) -> list[Optional[str]]:
        return [self.values.get(k) for k in keys]

    def set_nx(self, key: str, value: str, ttl_seconds: int) -> bool:
        if key in self.values:
            return False
        self.values[key] = value
        self.ttls[key] = ttl_seconds
        return True

    def exists(self, key: str) -> bool:
        return key in self.values or key in self.hashes or key in self.lists

    def del_(self, key: str) -> None:
        for store in (self.values, self.hashes, self.lists, self.ttls):
            store.pop(key, None)

    def hincrby(self, name: str, field: str, amount: int = 1) -> int:
        bucket = self.hashes.setdefault(name, {})
        bucket[field] = str(int(bucket.get(field, "0")) + amount)
        return int(bucket[field])

    def hgetall(self, name: str) -> dict[str, str]:
        return dict(self.hashes.get(name, {}))

    def expire(self, key: str, ttl_seconds: int) -> None:
        self.ttls[key] = ttl_seconds

    def push_capped(self, key: str, value: str, max_length: int) -> None:
        items = self.lists.setdefault(key, [])
        items.insert(0, value)
        del items[max_length:]

    def lrange(self, key: str, start: int, end: int) -> list[str]:
        items = self.lists.get(key, [])
        stop = len(items) if end == -1 else end + 1
        return items[start:stop]

    def replace_list(self, key: str, values: list[str]) -> None:
        self.lists[key] = list(values)

    def ping(self) -> bool:
        return True


@pytest.fixture
def redis_client():
    return InMemoryRedisClient()


@pytest.fixture
def dao(redis_client):
    return RedisAutomationDAO(redis_client)


@pytest.fixture
def notifications(dao):
    return NotificationService(dao)
