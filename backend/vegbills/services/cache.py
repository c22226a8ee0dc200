"""Redis cache-aside layer for list-oriented read endpoints.

Usage guidelines:
- Reads go through :meth:`CacheService.read_through`: a miss falls back to
  the store and repopulates the key with the default TTL.
- Writes invalidate the keys they make stale, after the write committed,
  via :meth:`CacheService.invalidate_on_success`.
- Every operation is best-effort.  A backend failure on ``get`` is a miss;
  on ``set``/``delete`` it is logged and swallowed.  The durable store is
  never affected by the cache being down.
"""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from vegbills.core.config import settings
from vegbills.core.exceptions import CacheUnavailable
from vegbills.core.observability import sentry_breadcrumb

logger = logging.getLogger(__name__)

BILLS_ALL = "bills:all"
PROVIDERS_ALL = "providers:all"
VEGETABLES_ALL = "vegetables:all"

_BACKEND_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


def bill_key(bill_id: str) -> str:
    return f"bill:{bill_id}"


class CacheService:
    """get/set/delete/list-keys facade over an async Redis client."""

    def __init__(self, client: Any, default_ttl: Optional[int] = None):
        self.client = client
        self.default_ttl = default_ttl or settings.CACHE_TTL_SECONDS
        # Bumped on every delete; a fill whose load overlapped one is dropped
        self.invalidations = 0

    async def _call(self, op: str, key: str, coro: Awaitable[Any]) -> Any:
        try:
            return await coro
        except _BACKEND_ERRORS as exc:
            raise CacheUnavailable(f"cache {op} failed for {key!r}: {exc}") from exc

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._call("get", key, self.client.get(key))
        except CacheUnavailable as exc:
            logger.warning("Cache get degraded to miss: %s", exc)
            sentry_breadcrumb("cache", "cache.get_failed", level="warning", data={"key": key})
            return None
        if raw is None:
            logger.debug("Cache miss %s", key)
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None
        logger.debug("Cache hit %s", key)
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expire = ttl or self.default_ttl
        payload = json.dumps(value)
        try:
            await self._call("set", key, self.client.set(key, payload, ex=expire))
        except CacheUnavailable as exc:
            logger.warning("Cache set skipped: %s", exc)
            return
        logger.debug("Cache set %s (ttl=%ss, %d bytes)", key, expire, len(payload))

    async def delete(self, key: str) -> None:
        self.invalidations += 1
        try:
            await self._call("delete", key, self.client.delete(key))
        except CacheUnavailable as exc:
            # Read path self-heals on TTL expiry; staleness is bounded
            logger.warning("Cache delete skipped: %s", exc)
            sentry_breadcrumb("cache", "cache.delete_failed", level="warning", data={"key": key})
            return
        logger.debug("Cache delete %s", key)

    async def delete_many(self, keys: List[str]) -> None:
        for key in dict.fromkeys(keys):
            await self.delete(key)

    async def list_keys(self) -> List[str]:
        """Return every key (administrative use only; SCAN, not KEYS)."""
        keys: List[str] = []
        try:
            async for key in self.client.scan_iter(match="*"):
                keys.append(key)
        except _BACKEND_ERRORS as exc:
            logger.warning("Cache key listing failed: %s", exc)
            return []
        return keys

    async def clear(self) -> List[str]:
        """Full cache reset: delete every listed key, returning what was removed."""
        keys = await self.list_keys()
        await self.delete_many(keys)
        logger.info("Cache reset removed %d keys", len(keys))
        return keys

    async def read_through(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """MISS -> load from store -> SET -> serve; HIT -> serve.

        The SET is skipped when an invalidation landed while the loader ran:
        the loaded value may predate that write and would otherwise stay
        cached until the TTL expires.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        seen = self.invalidations
        value = await loader()
        if self.invalidations != seen:
            logger.debug("Cache fill skipped for %s: invalidated during load", key)
            return value
        await self.set(key, value, ttl)
        return value

    @asynccontextmanager
    async def invalidate_on_success(self, *keys: str) -> AsyncIterator[List[str]]:
        """Delete ``keys`` (plus any appended inside the block) once the block succeeds.

        Nothing is evicted when the block raises, so a failed write never
        drops a correct cache entry, and a cache failure here never masks
        the outcome of the write.
        """
        pending = list(keys)
        yield pending
        await self.delete_many(pending)


_cache: Optional[CacheService] = None
_lock = asyncio.Lock()


def build_redis_client() -> Any:
    return aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.CACHE_TIMEOUT_SECONDS,
        socket_connect_timeout=settings.CACHE_TIMEOUT_SECONDS,
    )


async def get_cache() -> CacheService:
    """Return the process-wide cache facade (lazily connected)."""
    global _cache
    if _cache is not None:
        return _cache
    async with _lock:
        if _cache is None:
            _cache = CacheService(build_redis_client())
    return _cache


async def close_cache() -> None:
    global _cache
    if _cache is not None:
        await _cache.client.aclose()
        _cache = None
