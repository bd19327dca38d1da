from __future__ import annotations

import threading
import time
from typing import Dict, List, Tuple

from fastapi import HTTPException, Request


class _RateLimiter:
    """Sliding window counter keyed by an arbitrary string."""

    SWEEP_INTERVAL = 60

    def __init__(self) -> None:
        self._hits: Dict[str, Tuple[int, List[float]]] = {}
        self._next_sweep = 0.0
        self._lock = threading.Lock()

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = time.time()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            _, hits = self._hits.get(key, (window_seconds, []))
            recent = [ts for ts in hits if now - ts < window_seconds]
            if len(recent) >= limit:
                self._hits[key] = (window_seconds, recent)
                return False
            recent.append(now)
            self._hits[key] = (window_seconds, recent)
            return True

    def _sweep(self, now: float) -> None:
        # drop keys with no hit left inside their own window
        stale = [key for key, (window, hits) in self._hits.items() if not hits or now - hits[-1] >= window]
        for key in stale:
            del self._hits[key]
        self._next_sweep = now + self.SWEEP_INTERVAL

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._next_sweep = 0.0


_limiter = _RateLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(
    request: Request,
    scope: str,
    *,
    limit: int,
    window_seconds: int,
    message: str = "Too many requests. Try later.",
) -> str:
    """Admit or reject the caller's IP for ``scope``; returns the IP on success."""
    ip = client_ip(request)
    if not _limiter.allow(f"{scope}:{ip}", limit, window_seconds):
        raise HTTPException(429, message)
    return ip


def reset_limits() -> None:
    _limiter.reset()
