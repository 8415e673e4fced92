"""
Authenticated request protocol: refresh before the call when the token is expiring, attach the
bearer header, and on a 401 refresh and retry exactly once.
"""
import logging

import httpx

from session_client.errors import AuthError, AuthErrorCode
from session_client.gateway import NetworkGateway
from session_client.session import SessionController

logger = logging.getLogger(__name__)


class AuthenticatedClient:
    def __init__(self, session: SessionController, gateway: NetworkGateway | None = None):
        self.session = session
        self.gateway = gateway or session.gateway

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Dispatch an API call with the current access token. Any status other than 401 is
        returned unmodified. Raises AuthError(SESSION_EXPIRED) when the pre-flight refresh
        fails, AuthError(UNAUTHORIZED) when the 401 recovery fails or the retry is 401 again.
        """
        store = self.session.store
        if store.is_expiring_soon():
            if not await self.session.refresh():
                raise AuthError(AuthErrorCode.SESSION_EXPIRED, "Access token expired and could not be refreshed")

        sent_with = store.access_token
        response = await self._send(method, url, sent_with, kwargs)
        if response.status_code != 401:
            return response

        logger.info("%s %s returned 401; refreshing and retrying once", method, url)
        # A concurrent caller may already have replaced the token we were rejected with
        if store.access_token == sent_with or store.is_expiring_soon():
            if not await self.session.refresh():
                raise AuthError(AuthErrorCode.UNAUTHORIZED, "Refresh after 401 failed", 401)

        response = await self._send(method, url, store.access_token, kwargs)
        if response.status_code == 401:
            raise AuthError(AuthErrorCode.UNAUTHORIZED, "Request still unauthorized after refresh", 401)
        return response

    async def _send(self, method: str, url: str, token: str | None, kwargs: dict) -> httpx.Response:
        if not token:
            raise AuthError(AuthErrorCode.SESSION_EXPIRED, "No access token")
        headers = httpx.Headers(kwargs.get("headers"))
        headers["Authorization"] = f"Bearer {token}"
        return await self.gateway.call(method, url, **{**kwargs, "headers": headers})

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)
