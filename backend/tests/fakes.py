"""In-memory stand-ins for the async Redis client used by the cache layer."""

from __future__ import annotations

import fnmatch

from redis.exceptions import ConnectionError as RedisConnectionError


class FakeRedis:
    """Minimal async stand-in for ``redis.asyncio.Redis`` (decode_responses=True)."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.calls: list[tuple[str, str]] = []

    async def get(self, key):
        self.calls.append(("get", key))
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.calls.append(("set", key))
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            self.calls.append(("delete", key))
            removed += self.store.pop(key, None) is not None
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self):
        return None


class FailingRedis(FakeRedis):
    """Every call fails the way an unreachable Redis does."""

    async def get(self, key):
        raise RedisConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("redis down")

    async def delete(self, *keys):
        raise RedisConnectionError("redis down")

    async def scan_iter(self, match="*"):
        raise RedisConnectionError("redis down")
        yield  # pragma: no cover
