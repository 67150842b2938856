"""Per-client request limiting for credential endpoints."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from app.core.exceptions import RateLimitExceededError


class InMemoryRateLimiter:
    """
    Sliding-window limiter keyed by an arbitrary string (usually client IP).

    Counts every request, successful or not. Suitable for single-node
    deployments; each worker process keeps its own windows.
    """

    def __init__(self, limit: int, window_seconds: int, clock: Optional[Callable[[], float]] = None) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._windows: Dict[str, Deque[float]] = {}

    def _trim(self, key: str, now: float) -> Deque[float]:
        window = self._windows.setdefault(key, deque())
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()
        return window

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            window = self._trim(key, now)
            if len(window) >= self.limit:
                return False
            window.append(now)
            return True

    def hit(self, key: str) -> None:
        """Count a request for ``key`` or raise when the window is full"""
        if not self.allow(key):
            raise RateLimitExceededError(
                f"Too many attempts, please try again after {self.window_seconds // 60} minutes."
            )
