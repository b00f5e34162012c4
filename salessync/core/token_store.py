from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from threading import Lock

import redis

from salessync.core.config import REDIS_URL

logger = logging.getLogger(__name__)

REFRESH_TOKEN_PREFIX = "refresh_token"


class TokenStore(ABC):
    """Server-side record of issued refresh tokens, keyed by user and token id."""

    @abstractmethod
    def save(self, *, user_id: int, token_id: str, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    def exists(self, *, user_id: int, token_id: str) -> bool:
        ...

    @abstractmethod
    def revoke(self, *, user_id: int, token_id: str) -> None:
        ...

    @abstractmethod
    def revoke_all(self, *, user_id: int) -> None:
        ...


class InMemoryTokenStore(TokenStore):
    def __init__(self) -> None:
        self._tokens: dict[int, dict[str, float]] = {}
        self._lock = Lock()

    def save(self, *, user_id: int, token_id: str, ttl_seconds: int) -> None:
        with self._lock:
            self._tokens.setdefault(int(user_id), {})[token_id] = time.monotonic() + ttl_seconds

    def exists(self, *, user_id: int, token_id: str) -> bool:
        with self._lock:
            tokens = self._tokens.get(int(user_id), {})
            expires_at = tokens.get(token_id)
            if expires_at is None:
                return False
            if expires_at <= time.monotonic():
                tokens.pop(token_id, None)
                return False
            return True

    def revoke(self, *, user_id: int, token_id: str) -> None:
        with self._lock:
            self._tokens.get(int(user_id), {}).pop(token_id, None)

    def revoke_all(self, *, user_id: int) -> None:
        with self._lock:
            self._tokens.pop(int(user_id), None)


class RedisTokenStore(TokenStore):
    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @staticmethod
    def _key(user_id: int, token_id: str) -> str:
        return f"{REFRESH_TOKEN_PREFIX}:{int(user_id)}:{token_id}"

    def save(self, *, user_id: int, token_id: str, ttl_seconds: int) -> None:
        self.client.setex(self._key(user_id, token_id), ttl_seconds, "1")

    def exists(self, *, user_id: int, token_id: str) -> bool:
        return bool(self.client.exists(self._key(user_id, token_id)))

    def revoke(self, *, user_id: int, token_id: str) -> None:
        self.client.delete(self._key(user_id, token_id))

    def revoke_all(self, *, user_id: int) -> None:
        keys = list(self.client.scan_iter(match=f"{REFRESH_TOKEN_PREFIX}:{int(user_id)}:*"))
        if keys:
            self.client.delete(*keys)


def build_token_store(redis_url: str | None = None) -> TokenStore:
    url = REDIS_URL if redis_url is None else redis_url
    if url:
        logger.info("Token store backend: redis")
        return RedisTokenStore(redis.Redis.from_url(url, decode_responses=True))
    logger.info("Token store backend: memory")
    return InMemoryTokenStore()


_token_store: TokenStore | None = None


def get_token_store() -> TokenStore:
    global _token_store
    if _token_store is None:
        _token_store = build_token_store()
    return _token_store
