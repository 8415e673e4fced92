"""
Session client wiring. create_session_client() builds the gateway, credential store, session
controller, authenticated API client and password-reset client from config.
"""
import logging
from dataclasses import dataclass

import httpx

from session_client.authenticated import AuthenticatedClient
from session_client.clock import Clock, SystemClock
from session_client.config import AUTH_API_BASE_URL, COOKIE_REFRESH, REQUEST_TIMEOUT, TOKEN_STORE_PATH
from session_client.credential_store import CredentialStore
from session_client.gateway import NetworkGateway
from session_client.password import PasswordResetClient
from session_client.scheduler import RefreshScheduler
from session_client.session import SessionController
from session_client.storage import FileStorage, MemoryStorage, Storage

logger = logging.getLogger(__name__)


@dataclass
class SessionClient:
    session: SessionController
    api: AuthenticatedClient
    passwords: PasswordResetClient

    async def start(self) -> "SessionClient":
        """Page-load equivalent: try to restore a persisted session once."""
        await self.session.restore_session()
        return self

    async def aclose(self) -> None:
        await self.session.aclose()

    async def __aenter__(self) -> "SessionClient":
        return await self.start()

    async def __aexit__(self, *exc) -> None:
        await self.aclose()


def create_session_client(
    *,
    base_url: str = AUTH_API_BASE_URL,
    timeout: float = REQUEST_TIMEOUT,
    cookie_refresh: bool = COOKIE_REFRESH,
    storage: Storage | None = None,
    clock: Clock | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> SessionClient:
    if storage is None:
        storage = FileStorage(TOKEN_STORE_PATH) if TOKEN_STORE_PATH else MemoryStorage()
    clock = clock or SystemClock()
    gateway = NetworkGateway(http_client, timeout=timeout, transport=transport)
    store = CredentialStore(clock=clock, storage=storage, scheduler=RefreshScheduler(clock))
    session = SessionController(gateway, store, base_url=base_url, cookie_refresh=cookie_refresh)
    logger.debug("Session client created for %s (cookie_refresh=%s)", base_url, cookie_refresh)
    return SessionClient(
        session=session,
        api=AuthenticatedClient(session),
        passwords=PasswordResetClient(gateway, base_url=base_url),
    )
