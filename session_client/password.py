"""
Password reset calls: forgot-password, reset-password, validate-reset-token.
These do not touch the session; they share the gateway and error taxonomy.
"""
import logging

from session_client.config import AUTH_API_BASE_URL
from session_client.errors import AuthError, AuthErrorCode, classify_status
from session_client.gateway import NetworkGateway, error_detail, json_body
from session_client.validation import validate_email, validate_password

logger = logging.getLogger(__name__)


class PasswordResetClient:
    def __init__(self, gateway: NetworkGateway, *, base_url: str = AUTH_API_BASE_URL):
        self.gateway = gateway
        self.base_url = base_url.rstrip("/")

    def _raise_for_status(self, response, operation: str) -> None:
        if response.is_success:
            return
        code = classify_status(response.status_code)
        logger.info("%s rejected: HTTP %s (%s)", operation, response.status_code, code.value)
        raise AuthError(code, error_detail(response), response.status_code)

    async def forgot_password(self, email: str) -> str:
        """Ask the provider to send a reset link. Returns the provider's message."""
        email = validate_email(email)
        response = await self.gateway.call("POST", f"{self.base_url}/forgot-password", json={"email": email})
        self._raise_for_status(response, "forgot-password")
        return str(json_body(response).get("message", ""))

    async def reset_password(self, token: str, new_password: str) -> str:
        if not token:
            raise AuthError(AuthErrorCode.INVALID_INPUT, "Reset token is required")
        new_password = validate_password(new_password)
        response = await self.gateway.call(
            "POST",
            f"{self.base_url}/reset-password",
            json={"token": token, "newPassword": new_password},
        )
        self._raise_for_status(response, "reset-password")
        return str(json_body(response).get("message", ""))

    async def validate_reset_token(self, token: str) -> tuple[bool, str | None]:
        """Returns (valid, message)."""
        if not token:
            raise AuthError(AuthErrorCode.INVALID_INPUT, "Reset token is required")
        response = await self.gateway.call("GET", f"{self.base_url}/validate-reset-token", params={"token": token})
        self._raise_for_status(response, "validate-reset-token")
        data = json_body(response)
        return bool(data.get("valid")), data.get("message")
