"""Process-local abuse throttle for public submissions.

Each client identity gets one fixed-capacity window. The state lives in the
memory of a single worker process, so it is a soft deterrent only: instances
scaled horizontally each keep their own windows and together admit up to
``N x instances`` requests per window.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock

from pydantic import BaseModel

from src.config import get_settings

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class RateLimitResult(BaseModel):
    allowed: bool
    remaining: int
    retry_after_seconds: int = 0
    reason: str | None = None


@dataclass(slots=True)
class RateLimitWindow:
    count: int
    window_start: float


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = Lock()
        self._last_prune = clock()

    def _expired(self, window: RateLimitWindow, now: float) -> bool:
        return now >= window.window_start + self.window_seconds

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self.window_seconds:
            return
        stale = [client_id for client_id, window in self._windows.items() if self._expired(window, now)]
        for client_id in stale:
            del self._windows[client_id]
        self._last_prune = now

    def allow(self, client_id: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            self._prune(now)
            window = self._windows.get(client_id)
            if window is None or self._expired(window, now):
                self._windows[client_id] = RateLimitWindow(count=1, window_start=now)
                return RateLimitResult(allowed=True, remaining=self.max_requests - 1)

            if window.count >= self.max_requests:
                retry_after = math.ceil(window.window_start + self.window_seconds - now)
                logger.warning(
                    "Rate limit exceeded for client %s (%d requests in window)",
                    client_id,
                    window.count,
                    extra={
                        "event_type": "abuse.rate_limited",
                        "ops_payload": {"requests": window.count, "retry_after_seconds": retry_after},
                    },
                )
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    retry_after_seconds=max(retry_after, 1),
                    reason="client_rate_limit",
                )

            window.count += 1
            return RateLimitResult(allowed=True, remaining=self.max_requests - window.count)

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_identity(headers: Mapping[str, str], peer_host: str | None = None) -> str:
    """Best available network origin: X-Forwarded-For, X-Real-IP, socket peer, else 'unknown'."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if peer_host:
        return peer_host
    return UNKNOWN_CLIENT


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
