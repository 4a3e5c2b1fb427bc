from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Tuple

from fastapi import Request

from .errors import RateLimitedError

logger = logging.getLogger(__name__)


class _RateLimiter:
    """Fixed-window request counter kept in process memory."""

    def __init__(self) -> None:
        self._hits: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def check(self, key: str, limit: int, window_seconds: int) -> None:
        now = time.time()
        with self._lock:
            count, reset = self._hits.get(key, (0, now + window_seconds))
            if now > reset:
                count = 0
                reset = now + window_seconds
            count += 1
            self._hits[key] = (count, reset)
            if count > limit:
                retry_after = max(1, int(reset - now))
                logger.info("Rate limit hit for %s (retry in %ss)", key, retry_after)
                raise RateLimitedError("Too many requests. Try again shortly.", retry_after=retry_after)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


_limiter = _RateLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    key = f"{scope}:{client_ip(request)}"
    _limiter.check(key, limit, window_seconds)


def reset_limits() -> None:
    """Forget every counter (used by tests)."""
    _limiter.reset()
