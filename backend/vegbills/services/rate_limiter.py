"""In-process sliding-window rate limiter.

The limiter owns its own bounded map of callers: an ``OrderedDict`` used
as an LRU, so the least recently seen caller is dropped once
``max_clients`` identities are tracked.  Instances are injected into the
routes through a FastAPI dependency and can be swapped in tests.
"""

from __future__ import annotations

import math
import threading
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Callable, Deque


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # seconds until the oldest hit leaves the window


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per ``window_seconds`` for each caller key."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1 or window_seconds <= 0 or max_clients < 1:
            raise ValueError("limit, window_seconds and max_clients must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._hits: "OrderedDict[str, Deque[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        horizon = now - self.window_seconds
        with self._lock:
            hits = self._hits.get(key)
            if hits is None:
                hits = deque()
                self._hits[key] = hits
            self._hits.move_to_end(key)
            while hits and hits[0] <= horizon:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
                return RateLimitDecision(False, self.limit, 0, retry_after)

            hits.append(now)
            self._evict()
            return RateLimitDecision(True, self.limit, self.limit - len(hits), 0)

    def _evict(self) -> None:
        while len(self._hits) > self.max_clients:
            self._hits.popitem(last=False)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def __len__(self) -> int:
        return len(self._hits)


__all__ = ["SlidingWindowRateLimiter", "RateLimitDecision"]
