"""
Proactive refresh timer. At most one timer is armed; arming again replaces it.
"""
import logging
from typing import Callable

from session_client.clock import Clock, SystemClock, TimerHandle

logger = logging.getLogger(__name__)


class RefreshScheduler:
    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._handle: TimerHandle | None = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, expires_at: float | None, on_fire: Callable[[], None]) -> None:
        """
        Cancel any pending timer, then schedule on_fire once at expires_at.
        A past or missing expiry arms nothing; the caller has already refreshed or given up.
        """
        self.disarm()
        if expires_at is None:
            return
        delay = expires_at - self._clock.now()
        if delay <= 0:
            return

        def _fire() -> None:
            self._handle = None
            on_fire()

        self._handle = self._clock.call_later(delay, _fire)
        logger.debug("Refresh timer armed for %.1fs", delay)

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
