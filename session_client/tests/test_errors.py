"""Tests for error codes, status classification and user-facing messages."""
import pytest

from session_client.errors import (
    GENERIC_ERROR_MESSAGE,
    LOGIN_STATUS_CODES,
    REGISTER_STATUS_CODES,
    AuthError,
    AuthErrorCode,
    classify_status,
    get_auth_error_message,
)


@pytest.mark.parametrize(
    "code,expected",
    [
        (AuthErrorCode.INVALID_CREDENTIALS, "Invalid email or password."),
        (AuthErrorCode.USER_EXISTS, "An account with this email already exists."),
        (AuthErrorCode.TIMEOUT, "Request timed out. Please try again."),
        (AuthErrorCode.SESSION_EXPIRED, "Your session has expired. Please login again."),
        (AuthErrorCode.TOO_MANY_ATTEMPTS, "Too many attempts. Please wait and try again."),
    ],
)
def test_message_for_known_codes(code, expected):
    assert get_auth_error_message(code) == expected
    assert get_auth_error_message(AuthError(code)) == expected
    assert get_auth_error_message(code.value) == expected


def test_unknown_code_gets_generic_message():
    assert get_auth_error_message("SOMETHING_NEW") == GENERIC_ERROR_MESSAGE
    assert get_auth_error_message(AuthErrorCode.AUTH_FAILED) == GENERIC_ERROR_MESSAGE


def test_missing_error_gets_fallback():
    assert get_auth_error_message(None) == "Something went wrong. Please try again."


def test_every_code_has_a_message():
    for code in AuthErrorCode:
        assert get_auth_error_message(code)


def test_auth_error_accepts_string_code():
    err = AuthError("TIMEOUT", "slow", 504)
    assert err.code is AuthErrorCode.TIMEOUT
    assert err.status_code == 504
    assert str(err) == "slow"


def test_auth_error_rejects_unknown_code():
    with pytest.raises(ValueError):
        AuthError("NOPE")


@pytest.mark.parametrize(
    "status,expected",
    [
        (401, AuthErrorCode.INVALID_CREDENTIALS),
        (429, AuthErrorCode.TOO_MANY_ATTEMPTS),
        (500, AuthErrorCode.SERVER_ERROR),
        (503, AuthErrorCode.SERVER_ERROR),
        (400, AuthErrorCode.AUTH_FAILED),
        (403, AuthErrorCode.AUTH_FAILED),
        (409, AuthErrorCode.AUTH_FAILED),
    ],
)
def test_login_status_mapping(status, expected):
    assert classify_status(status, LOGIN_STATUS_CODES) is expected


@pytest.mark.parametrize(
    "status,expected",
    [
        (409, AuthErrorCode.USER_EXISTS),
        (429, AuthErrorCode.TOO_MANY_ATTEMPTS),
        (502, AuthErrorCode.SERVER_ERROR),
        (401, AuthErrorCode.AUTH_FAILED),
        (422, AuthErrorCode.AUTH_FAILED),
    ],
)
def test_register_status_mapping(status, expected):
    assert classify_status(status, REGISTER_STATUS_CODES) is expected
