"""
Network gateway: every outbound call goes through NetworkGateway.call, which enforces a hard
timeout and turns request failures into TIMEOUT or NETWORK_ERROR. HTTP statuses are not
interpreted here; each operation classifies its own.
"""
import asyncio
import logging

import httpx

from session_client.config import REQUEST_TIMEOUT
from session_client.errors import AuthError, AuthErrorCode

logger = logging.getLogger(__name__)


class NetworkGateway:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        # Owned client: created here, closed by aclose(). Borrowed clients are left open.
        self._owns_client = client is None
        # httpx's own timeout is disabled; the deadline is enforced around the whole call
        self.client = client or httpx.AsyncClient(transport=transport, timeout=None)
        self.timeout = timeout

    async def call(self, method: str, url: str, *, timeout: float | None = None, **kwargs) -> httpx.Response:
        """
        Send one request and return the response, whatever its status.
        Raises AuthError(TIMEOUT) when the deadline passes and AuthError(NETWORK_ERROR) on any
        other httpx request failure.
        """
        deadline = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(self.client.request(method, url, **kwargs), deadline)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("%s %s timed out after %.1fs", method, url, deadline)
            raise AuthError(AuthErrorCode.TIMEOUT, f"{method} {url} timed out") from None
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise AuthError(AuthErrorCode.NETWORK_ERROR, str(e)) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "NetworkGateway":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()


def json_body(response: httpx.Response) -> dict:
    """Decode a JSON object body or raise INVALID_RESPONSE."""
    try:
        data = response.json()
    except ValueError:
        raise AuthError(AuthErrorCode.INVALID_RESPONSE, "Response body is not JSON", response.status_code) from None
    if not isinstance(data, dict):
        raise AuthError(AuthErrorCode.INVALID_RESPONSE, "Response body is not a JSON object", response.status_code)
    return data


def error_detail(response: httpx.Response) -> str:
    """Best-effort error text from a provider error body (flat or FastAPI {"detail": {...}})."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(data, dict) and isinstance(data.get("detail"), (dict, str)):
        data = data["detail"]
    if isinstance(data, dict):
        for key in ("error_description", "message", "error"):
            if data.get(key):
                return str(data[key])
    elif isinstance(data, str) and data:
        return data
    return f"HTTP {response.status_code}"
