"""
Per-client rate limiting for login, register and password reset.
Sliding window of request times per key ("login:<ip>"); over the limit the endpoint answers
429 with Retry-After.
"""
import math
import threading
import time
from collections import deque

_WINDOW_SECONDS = 60


class SlidingWindowLimiter:
    def __init__(self):
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int = _WINDOW_SECONDS) -> tuple[bool, int | None]:
        """Count one request for key. Returns (allowed, retry_after); a limit <= 0 disables the check."""
        if limit <= 0:
            return True, None
        now = time.monotonic()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                return False, max(1, math.ceil(window_seconds - (now - hits[0])))
            hits.append(now)
            return True, None

    def clear(self) -> None:
        with self._lock:
            self._hits.clear()


_limiter = SlidingWindowLimiter()


def check_and_consume(key: str, limit: int, window_seconds: int = _WINDOW_SECONDS) -> tuple[bool, int | None]:
    return _limiter.hit(key, limit, window_seconds)


def reset() -> None:
    """Forget all windows (tests)."""
    _limiter.clear()
