"""
In-memory credential store: access token, expiry, current user, last error, and the persisted
refresh token. Related fields are always written together with no await in between, so the
event loop never observes a token without its expiry.
"""
import logging
from typing import Any, Callable

from session_client.clock import Clock, SystemClock
from session_client.config import EXPIRY_SKEW_SECONDS, REFRESH_TOKEN_KEY
from session_client.errors import AuthError, AuthErrorCode, get_auth_error_message
from session_client.scheduler import RefreshScheduler
from session_client.storage import MemoryStorage, Storage

logger = logging.getLogger(__name__)

AuthListener = Callable[[dict[str, Any] | None], None]


class CredentialStore:
    def __init__(
        self,
        *,
        clock: Clock | None = None,
        storage: Storage | None = None,
        scheduler: RefreshScheduler | None = None,
        skew_seconds: int = EXPIRY_SKEW_SECONDS,
        refresh_token_key: str = REFRESH_TOKEN_KEY,
    ):
        self._clock = clock or SystemClock()
        self._storage = storage if storage is not None else MemoryStorage()
        self._scheduler = scheduler or RefreshScheduler(self._clock)
        self._skew = skew_seconds
        self._refresh_token_key = refresh_token_key

        self._access_token: str | None = None
        self._expires_at: float | None = None
        self._current_user: dict[str, Any] | None = None
        self._last_error: str | None = None
        self._last_error_code: AuthErrorCode | None = None
        self._listeners: list[AuthListener] = []

        # Called by the refresh timer; the session controller installs its refresh here
        self.on_expiry: Callable[[], None] | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def expires_at(self) -> float | None:
        return self._expires_at

    @property
    def current_user(self) -> dict[str, Any] | None:
        return self._current_user

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def last_error_code(self) -> AuthErrorCode | None:
        return self._last_error_code

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    def _expiry_for(self, lifetime_seconds: float) -> float:
        # Lifetimes at or below the skew would be "expiring" the moment they are set;
        # those only expire at the real deadline.
        skew = self._skew if lifetime_seconds > self._skew else 0
        return self._clock.now() + (lifetime_seconds - skew)

    def set_credential(self, token: str, lifetime_seconds: float, user: dict[str, Any] | None = None) -> None:
        """Install a new access token, clear the last error, re-arm the refresh timer, notify."""
        if not token:
            raise ValueError("access token must be a non-empty string")
        self._access_token = token
        self._expires_at = self._expiry_for(lifetime_seconds)
        self._current_user = user
        self._last_error = None
        self._last_error_code = None
        self._scheduler.arm(self._expires_at, self._fire_expiry)
        logger.debug("Credential set; expires in %.0fs", self._expires_at - self._clock.now())
        self._notify()

    def clear_credential(self) -> None:
        """Drop the session and the persisted refresh token. Safe to call repeatedly."""
        self._access_token = None
        self._expires_at = None
        self._current_user = None
        self._scheduler.disarm()
        self._storage.remove(self._refresh_token_key)
        self._notify()

    def is_expiring_soon(self) -> bool:
        """Single source of truth before every authenticated call."""
        return self._expires_at is None or self._clock.now() >= self._expires_at

    def is_authenticated(self) -> bool:
        return self._access_token is not None

    def get_refresh_token(self) -> str | None:
        return self._storage.get(self._refresh_token_key)

    def set_refresh_token(self, value: str) -> None:
        """Rotate: the previous value is overwritten, never kept."""
        self._storage.set(self._refresh_token_key, value)

    def record_error(self, error: AuthError) -> None:
        self._last_error = get_auth_error_message(error)
        self._last_error_code = error.code

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register an auth-changed listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._current_user)
            except Exception as e:
                logger.error("Error in auth listener: %s", e)

    def _fire_expiry(self) -> None:
        if self.on_expiry is not None:
            self.on_expiry()
