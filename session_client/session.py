"""
Session controller: login, register, logout, refresh, and startup restoration.
Owns the credential store and is the only writer of the session.

States: ANONYMOUS (no credential), AUTHENTICATED (credential held, timer armed),
REFRESHING (refresh call in flight, single-flight), EXPIRED (anonymous with a last error).
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable

from session_client.clock import Clock
from session_client.config import AUTH_API_BASE_URL, COOKIE_REFRESH
from session_client.credential_store import AuthListener, CredentialStore
from session_client.errors import (
    LOGIN_STATUS_CODES,
    REGISTER_STATUS_CODES,
    AuthError,
    AuthErrorCode,
    classify_status,
)
from session_client.gateway import NetworkGateway, error_detail, json_body
from session_client.storage import Storage
from session_client.validation import validate_credentials

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    EXPIRED = "expired"


def _lifetime(data: dict) -> float:
    expires_in = data.get("expiresIn")
    if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)) or expires_in <= 0:
        raise AuthError(AuthErrorCode.INVALID_RESPONSE, "expiresIn missing or not a positive number")
    return float(expires_in)


class SessionController:
    def __init__(
        self,
        gateway: NetworkGateway | None = None,
        store: CredentialStore | None = None,
        *,
        base_url: str = AUTH_API_BASE_URL,
        cookie_refresh: bool = COOKIE_REFRESH,
        clock: Clock | None = None,
        storage: Storage | None = None,
    ):
        self.gateway = gateway or NetworkGateway()
        self.store = store or CredentialStore(clock=clock, storage=storage)
        self.store.on_expiry = self._on_expiry
        self.base_url = base_url.rstrip("/")
        self.cookie_refresh = cookie_refresh

        self._refresh_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._restored = False
        # Bumped on login and logout; a refresh that started under an older session cannot touch the current one
        self._generation = 0

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @property
    def state(self) -> SessionState:
        if self._refresh_task is not None:
            return SessionState.REFRESHING
        if self.store.is_authenticated():
            return SessionState.AUTHENTICATED
        if self.store.last_error:
            return SessionState.EXPIRED
        return SessionState.ANONYMOUS

    @property
    def current_user(self) -> dict[str, Any] | None:
        return self.store.current_user

    @property
    def last_error(self) -> str | None:
        return self.store.last_error

    def is_authenticated(self) -> bool:
        return self.store.is_authenticated()

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Auth-changed notifications: listener(user or None) after every credential set/clear."""
        return self.store.subscribe(listener)

    def _apply_tokens(self, data: dict, user: dict[str, Any] | None) -> None:
        lifetime = _lifetime(data)
        refresh_token = data.get("refreshToken")
        if isinstance(refresh_token, str) and refresh_token:
            self.store.set_refresh_token(refresh_token)
        self.store.set_credential(data["accessToken"], lifetime, user)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Sign in and establish a session. Returns the user record.
        Raises AuthError: INVALID_INPUT before any call; INVALID_CREDENTIALS (401),
        TOO_MANY_ATTEMPTS (429), SERVER_ERROR (5xx), AUTH_FAILED (other), INVALID_RESPONSE
        (2xx without accessToken/user/expiresIn); NETWORK_ERROR/TIMEOUT from the gateway.
        """
        email, password = validate_credentials(email, password)
        response = await self.gateway.call("POST", self._url("/login"), json={"email": email, "password": password})
        if not response.is_success:
            code = classify_status(response.status_code, LOGIN_STATUS_CODES)
            logger.info("Login rejected: HTTP %s (%s)", response.status_code, code.value)
            raise AuthError(code, error_detail(response), response.status_code)

        data = json_body(response)
        user = data.get("user")
        if not isinstance(data.get("accessToken"), str) or not data["accessToken"] or not isinstance(user, dict):
            raise AuthError(AuthErrorCode.INVALID_RESPONSE, "Login response missing accessToken or user")
        self._generation += 1
        self._apply_tokens(data, user)
        logger.info("Login successful")
        return user

    async def register(self, email: str, password: str) -> dict[str, Any]:
        """
        Create an account. No session is established; the provider's body is returned so the
        caller can prompt for sign-in.
        """
        email, password = validate_credentials(email, password)
        response = await self.gateway.call("POST", self._url("/register"), json={"email": email, "password": password})
        if not response.is_success:
            code = classify_status(response.status_code, REGISTER_STATUS_CODES)
            logger.info("Registration rejected: HTTP %s (%s)", response.status_code, code.value)
            raise AuthError(code, error_detail(response), response.status_code)
        if not response.content:
            return {}
        return json_body(response)

    async def logout(self) -> None:
        """Best-effort provider logout; the local session is always cleared."""
        self._generation += 1
        refresh_token = self.store.get_refresh_token()
        try:
            await self.gateway.call(
                "POST",
                self._url("/logout"),
                json={"refreshToken": refresh_token} if refresh_token else None,
            )
        except AuthError as e:
            logger.info("Logout call failed (%s); clearing local session anyway", e.code.value)
        finally:
            self.store.clear_credential()

    async def refresh(self) -> bool:
        """
        Obtain a new access token. Concurrent callers share one in-flight call and its result.
        Never raises AuthError; failures are recorded as the store's last error.
        """
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._run_refresh())
        # shield: a cancelled caller must not cancel the refresh other callers are awaiting
        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self) -> bool:
        try:
            return await self._refresh_once()
        finally:
            self._refresh_task = None

    async def _refresh_once(self) -> bool:
        generation = self._generation
        try:
            data = await self._request_refresh()
        except AuthError as e:
            if generation != self._generation:
                return False
            self.store.record_error(e)
            if e.code is AuthErrorCode.SESSION_EXPIRED:
                logger.info("Refresh rejected (%s); clearing session", e.detail or e.code.value)
                self.store.clear_credential()
            else:
                logger.warning("Refresh failed (%s); keeping current credential", e.code.value)
            return False

        if generation != self._generation:
            logger.debug("Discarding refresh result; session changed meanwhile")
            return False
        user = data.get("user") if isinstance(data.get("user"), dict) else self.store.current_user
        self._apply_tokens(data, user)
        logger.info("Access token refreshed")
        return True

    async def _request_refresh(self) -> dict:
        refresh_token = self.store.get_refresh_token()
        if not refresh_token and not self.cookie_refresh:
            raise AuthError(AuthErrorCode.SESSION_EXPIRED, "No refresh token available")

        response = await self.gateway.call(
            "POST",
            self._url("/refresh"),
            json={"refreshToken": refresh_token} if refresh_token else {},
        )
        status = response.status_code
        if not response.is_success:
            if status == 408:
                raise AuthError(AuthErrorCode.TIMEOUT, error_detail(response), status)
            if status == 429 or status >= 500:
                raise AuthError(classify_status(status), error_detail(response), status)
            # The provider rejected the refresh credential itself (invalid, expired, revoked, unknown)
            raise AuthError(AuthErrorCode.SESSION_EXPIRED, error_detail(response), status)

        data = json_body(response)
        if not isinstance(data.get("accessToken"), str) or not data["accessToken"]:
            raise AuthError(AuthErrorCode.INVALID_RESPONSE, "Refresh response missing accessToken")
        _lifetime(data)
        return data

    async def restore_session(self) -> None:
        """Run once at startup. Having no session to restore is not an error."""
        if self._restored:
            return
        self._restored = True
        if not self.cookie_refresh and not self.store.get_refresh_token():
            logger.debug("No persisted refresh token; starting anonymous")
            return
        restored = await self.refresh()
        logger.info("Session restore %s", "succeeded" if restored else "did not restore a session")

    def _on_expiry(self) -> None:
        task = asyncio.ensure_future(self.refresh())
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background refresh crashed: %s", task.exception())

    async def settle(self) -> None:
        """Wait for timer-started refreshes to finish."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def aclose(self) -> None:
        """Disarm the timer, let background work finish, close an owned HTTP client."""
        self.store.scheduler.disarm()
        await self.settle()
        await self.gateway.aclose()
