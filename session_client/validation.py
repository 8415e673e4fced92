"""
Input checks run before any network call. Failures raise AuthError(INVALID_INPUT).
"""
from session_client.config import EMAIL_MAX_LENGTH, PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from session_client.errors import AuthError, AuthErrorCode


def validate_email(email) -> str:
    """Return the trimmed email or raise INVALID_INPUT."""
    if not isinstance(email, str) or not email.strip():
        raise AuthError(AuthErrorCode.INVALID_INPUT, "Email is required")
    email = email.strip()
    if len(email) > EMAIL_MAX_LENGTH:
        raise AuthError(AuthErrorCode.INVALID_INPUT, f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return email


def validate_password(password) -> str:
    if not isinstance(password, str) or not password:
        raise AuthError(AuthErrorCode.INVALID_INPUT, "Password is required")
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise AuthError(
            AuthErrorCode.INVALID_INPUT,
            f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters",
        )
    return password


def validate_credentials(email, password) -> tuple[str, str]:
    return validate_email(email), validate_password(password)
