"""
Key-value stores with per-key expiry.

``RedisTTLStore`` is the production adapter. ``MemoryTTLStore`` keeps entries
in process memory and is used when REDIS_URL is empty (local development and
tests); it accepts a clock so expiry can be driven deterministically.
"""

from __future__ import annotations

import heapq
import logging
import math
import threading
import time
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Protocol, Tuple

import redis

from household_api.core.config import get_settings
from household_api.core.errors import UnavailableError

logger = logging.getLogger(__name__)


class TTLStore(Protocol):
    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def exists(self, key: str) -> bool: ...

    def ttl(self, key: str) -> Optional[int]: ...

    def delete(self, key: str) -> bool: ...

    def delete_if_equals(self, key: str, expected: str) -> bool: ...


class RedisTTLStore:
    """TTLStore over a Redis server (SETEX / GET / EXISTS / TTL / DEL)."""

    def __init__(self, client: redis.Redis) -> None:
        self.redis = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> "RedisTTLStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.redis.setex(key, ttl_seconds, value)
        except redis.RedisError as exc:
            raise UnavailableError("TTL store is unavailable") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            return self.redis.get(key)
        except redis.RedisError as exc:
            raise UnavailableError("TTL store is unavailable") from exc

    def exists(self, key: str) -> bool:
        try:
            return bool(self.redis.exists(key))
        except redis.RedisError as exc:
            raise UnavailableError("TTL store is unavailable") from exc

    def ttl(self, key: str) -> Optional[int]:
        try:
            remaining = self.redis.ttl(key)
        except redis.RedisError as exc:
            raise UnavailableError("TTL store is unavailable") from exc
        # -2: missing key, -1: no expiry
        return int(remaining) if remaining and remaining > 0 else None

    def delete(self, key: str) -> bool:
        try:
            return bool(self.redis.delete(key))
        except redis.RedisError as exc:
            raise UnavailableError("TTL store is unavailable") from exc

    def delete_if_equals(self, key: str, expected: str) -> bool:
        """Delete ``key`` only while it still holds ``expected`` (WATCH/MULTI)."""
        try:
            with self.redis.pipeline() as pipe:
                try:
                    pipe.watch(key)
                    if pipe.get(key) != expected:
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.delete(key)
                    deleted, = pipe.execute()
                    return bool(deleted)
                except redis.WatchError:
                    return False
        except redis.RedisError as exc:
            raise UnavailableError("TTL store is unavailable") from exc


class MemoryTTLStore:
    """In-process TTLStore; entries vanish once the clock passes their expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._expiries: List[Tuple[float, str]] = []
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[Tuple[str, float]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _purge(self, now: float) -> None:
        """Drop every entry whose expiry has passed, oldest first."""
        while self._expiries and self._expiries[0][0] <= now:
            _, key = heapq.heappop(self._expiries)
            entry = self._entries.get(key)
            # the key may have been rewritten with a later expiry since this heap item was pushed
            if entry is not None and entry[1] <= now:
                del self._entries[key]

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            now = self._clock()
            self._purge(now)
            self._entries[key] = (value, now + ttl_seconds)
            heapq.heappush(self._expiries, (now + ttl_seconds, key))

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None

    def ttl(self, key: str) -> Optional[int]:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            return max(1, math.ceil(entry[1] - self._clock()))

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_if_equals(self, key: str, expected: str) -> bool:
        with self._lock:
            entry = self._live(key)
            if entry is None or entry[0] != expected:
                return False
            del self._entries[key]
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._expiries.clear()


@lru_cache
def get_ttl_store() -> TTLStore:
    """Redis when REDIS_URL is configured, otherwise a process-local store."""
    settings = get_settings()
    if settings.redis_url:
        return RedisTTLStore.from_url(settings.redis_url, socket_timeout=settings.redis_socket_timeout)
    logger.warning("REDIS_URL is not set; verification codes and token revocations live in process memory")
    return MemoryTTLStore()
