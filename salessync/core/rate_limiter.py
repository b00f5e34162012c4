from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from threading import Lock

import redis
from redis.exceptions import RedisError

from salessync.core.config import RATE_LIMIT_MAX, RATE_LIMIT_WINDOW_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "rate_limit"


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class RateLimiterService(ABC):
    @abstractmethod
    def check(self, *, key: str) -> RateLimitDecision:
        """Decide whether one more request for ``key`` may proceed."""


class InMemoryRateLimiterService(RateLimiterService):
    """Sliding-window limiter kept in process memory."""

    def __init__(self, *, limit: int = RATE_LIMIT_MAX, window_seconds: int = RATE_LIMIT_WINDOW_SECONDS) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._store: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._last_sweep = time.monotonic()

    @property
    def tracked_keys(self) -> int:
        return len(self._store)

    def _sweep(self, cutoff: float) -> None:
        # drop keys whose whole window has expired
        for stale_key in [name for name, bucket in self._store.items() if not bucket or bucket[-1] <= cutoff]:
            del self._store[stale_key]

    def check(self, *, key: str) -> RateLimitDecision:
        now = time.monotonic()

        with self._lock:
            cutoff = now - self.window_seconds
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            bucket = self._store.setdefault(key, deque())
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self.limit:
                retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
                return RateLimitDecision(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    retry_after_seconds=retry_after,
                )

            bucket.append(now)
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=max(0, self.limit - len(bucket)),
                retry_after_seconds=0,
            )


class RedisRateLimiterService(RateLimiterService):
    """Fixed-window limiter shared by every API instance through Redis.

    When Redis is unreachable the request is let through and the failure is
    logged.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        limit: int = RATE_LIMIT_MAX,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
    ) -> None:
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds

    def _key(self, key: str) -> str:
        window = int(time.time() // self.window_seconds)
        return f"{RATE_LIMIT_PREFIX}:{key}:{window}"

    def check(self, *, key: str) -> RateLimitDecision:
        redis_key = self._key(key)
        try:
            pipeline = self.client.pipeline()
            pipeline.incr(redis_key)
            pipeline.ttl(redis_key)
            count, ttl = pipeline.execute()
            if ttl is None or int(ttl) < 0:
                self.client.expire(redis_key, self.window_seconds)
                ttl = self.window_seconds
        except RedisError:
            logger.warning("Rate limiter unavailable, allowing request key=%s", key, exc_info=True)
            return RateLimitDecision(allowed=True, limit=self.limit, remaining=self.limit, retry_after_seconds=0)

        count = int(count)
        if count > self.limit:
            return RateLimitDecision(
                allowed=False,
                limit=self.limit,
                remaining=0,
                retry_after_seconds=max(1, int(ttl)),
            )
        return RateLimitDecision(
            allowed=True,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            retry_after_seconds=0,
        )


def build_rate_limiter(redis_url: str | None = None) -> RateLimiterService:
    url = REDIS_URL if redis_url is None else redis_url
    if url:
        logger.info("Rate limiter backend: redis")
        return RedisRateLimiterService(redis.Redis.from_url(url, decode_responses=True))
    logger.info("Rate limiter backend: memory")
    return InMemoryRateLimiterService()
