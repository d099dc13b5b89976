"""
Per-client sliding-window request limits.

Each limiter keeps the timestamps of recent requests per client address and
refuses a request once the window already holds ``max_requests`` of them.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from fastapi import Request

from errors import TooManyRequests

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    forwarded = (request.headers.get("x-forwarded-for") or "").strip()
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimiter:
    def __init__(self, max_requests: int, window_seconds: float, message: str, clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self.clock = clock
        self.buckets: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """Record one request for ``key``; raises TooManyRequests when over the limit."""
        now_ts = self.clock()
        cutoff = now_ts - self.window_seconds
        with self._lock:
            bucket = self.buckets.setdefault(key, deque())
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= self.max_requests:
                logger.warning("Rate limit hit for %s", key)
                raise TooManyRequests(self.message)
            bucket.append(now_ts)


def enforce_api_rate_limit(request: Request) -> None:
    request.app.state.api_limiter.hit(get_client_ip(request))


def enforce_auth_rate_limit(request: Request) -> None:
    request.app.state.auth_limiter.hit(get_client_ip(request))
