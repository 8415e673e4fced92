"""
Error taxonomy for the session client. Stable codes, not exception subclasses.
Callers branch on AuthError.code; the UI shows get_auth_error_message(error).
"""
from enum import Enum


class AuthErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_EXISTS = "USER_EXISTS"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS"
    SERVER_ERROR = "SERVER_ERROR"
    AUTH_FAILED = "AUTH_FAILED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    UNAUTHORIZED = "UNAUTHORIZED"


class AuthError(Exception):
    """Failure of a session operation, classified once where it is detected."""

    def __init__(self, code: AuthErrorCode, detail: str | None = None, status_code: int | None = None):
        self.code = AuthErrorCode(code)
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail or self.code.value)

    def __repr__(self) -> str:
        return f"AuthError({self.code.value!r}, status_code={self.status_code!r})"


GENERIC_ERROR_MESSAGE = "Authentication failed. Please try again."

_MESSAGES = {
    AuthErrorCode.INVALID_CREDENTIALS: "Invalid email or password.",
    AuthErrorCode.USER_EXISTS: "An account with this email already exists.",
    AuthErrorCode.INVALID_INPUT: "Please enter valid email and password.",
    AuthErrorCode.NETWORK_ERROR: "Network error. Please check your connection.",
    AuthErrorCode.SESSION_EXPIRED: "Your session has expired. Please login again.",
    AuthErrorCode.UNAUTHORIZED: "You are not authorized. Please login.",
    AuthErrorCode.TOO_MANY_ATTEMPTS: "Too many attempts. Please wait and try again.",
    AuthErrorCode.SERVER_ERROR: "Server error. Please try again later.",
    AuthErrorCode.TIMEOUT: "Request timed out. Please try again.",
    AuthErrorCode.INVALID_RESPONSE: "Unexpected response from the server. Please try again.",
}


def get_auth_error_message(error: "AuthError | AuthErrorCode | str | None") -> str:
    """Human-readable message for an error or code. Unknown codes and None get the generic message."""
    if error is None:
        return "Something went wrong. Please try again."
    code = error.code if isinstance(error, AuthError) else error
    try:
        code = AuthErrorCode(code)
    except ValueError:
        return GENERIC_ERROR_MESSAGE
    return _MESSAGES.get(code, GENERIC_ERROR_MESSAGE)


LOGIN_STATUS_CODES = {401: AuthErrorCode.INVALID_CREDENTIALS}
REGISTER_STATUS_CODES = {409: AuthErrorCode.USER_EXISTS}


def classify_status(status_code: int, specific: dict[int, AuthErrorCode] | None = None) -> AuthErrorCode:
    """
    Map a non-2xx provider status to a code. Operation-specific statuses first
    (e.g. 401 for login, 409 for register), then 429, 5xx, and AUTH_FAILED for the rest.
    """
    if specific and status_code in specific:
        return specific[status_code]
    if status_code == 429:
        return AuthErrorCode.TOO_MANY_ATTEMPTS
    if status_code >= 500:
        return AuthErrorCode.SERVER_ERROR
    return AuthErrorCode.AUTH_FAILED
