"""
Account and session endpoints: POST /login, /register, /refresh, /logout (JSON bodies).
Errors are {"detail": {"error": ..., "error_description": ...}} with the status the client maps:
401 bad credentials or refresh token, 409 existing account, 429 rate limited.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from identity_provider.audit import (
    EVENT_LOGIN_FAIL,
    EVENT_LOGIN_OK,
    EVENT_LOGOUT,
    EVENT_REFRESH_FAIL,
    EVENT_REGISTER,
    EVENT_TOKEN_REFRESHED,
    OUTCOME_FAIL,
    client_address,
    record_event,
)
from identity_provider.config import (
    RATE_LIMIT_LOGIN_PER_MINUTE,
    RATE_LIMIT_REGISTER_PER_MINUTE,
    REFRESH_COOKIE_NAME,
)
from identity_provider.database import get_db
from identity_provider.models import RefreshToken, User
from identity_provider.rate_limit import check_and_consume
from identity_provider.seed import hash_password, verify_password
from identity_provider.tokens import clear_refresh_cookie, revoke_all_refresh_tokens, session_response

logger = logging.getLogger(__name__)
router = APIRouter()

EMAIL_MAX_LENGTH = 254
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


class CredentialsRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RefreshRequest(BaseModel):
    refreshToken: str | None = None


def auth_error(status_code: int, error: str, description: str, headers: dict | None = None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "error_description": description},
        headers=headers,
    )


def enforce_rate_limit(request: Request, bucket: str, limit: int) -> None:
    allowed, retry_after = check_and_consume(f"{bucket}:{client_address(request) or 'unknown'}", limit)
    if not allowed:
        raise auth_error(
            429,
            "too_many_requests",
            "Too many attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )


def normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not email or len(email) > EMAIL_MAX_LENGTH or "@" not in email:
        raise auth_error(400, "invalid_request", "A valid email is required")
    return email


def check_password(password: str | None) -> str:
    if not password or not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise auth_error(
            400,
            "invalid_request",
            f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters",
        )
    return password


@router.post("/login")
def login(body: CredentialsRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    enforce_rate_limit(request, "login", RATE_LIMIT_LOGIN_PER_MINUTE)
    email = normalize_email(body.email)
    if not body.password:
        raise auth_error(400, "invalid_request", "Password is required")

    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(body.password, user.password_hash):
        record_event(db, EVENT_LOGIN_FAIL, request, user_id=user.id if user else None, outcome=OUTCOME_FAIL)
        raise auth_error(401, "invalid_credentials", "Invalid email or password")

    record_event(db, EVENT_LOGIN_OK, request, user_id=user.id)
    logger.info("login: session issued for sub=%s", user.id)
    return session_response(db, user, response)


@router.post("/register", status_code=201)
def register(body: CredentialsRequest, request: Request, db: Session = Depends(get_db)):
    enforce_rate_limit(request, "register", RATE_LIMIT_REGISTER_PER_MINUTE)
    email = normalize_email(body.email)
    password = check_password(body.password)
    if db.query(User).filter(User.email == email).first() is not None:
        raise auth_error(409, "user_exists", "An account with this email already exists")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    record_event(db, EVENT_REGISTER, request, user_id=user.id)
    logger.info("register: created user sub=%s", user.id)
    return {"message": "Registration successful. Please sign in.", "user": user.to_public()}


def _presented_refresh_token(body: RefreshRequest | None, request: Request) -> str | None:
    if body is not None and body.refreshToken:
        return body.refreshToken
    return request.cookies.get(REFRESH_COOKIE_NAME)


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    db: Session = Depends(get_db),
):
    """Exchange a refresh token (body or cookie) for a new access token; rotates the refresh token."""
    value = _presented_refresh_token(body, request)
    if not value:
        raise auth_error(401, "invalid_request", "Refresh token is required")

    rt = db.query(RefreshToken).filter(RefreshToken.token == value).first()
    if rt is None:
        record_event(db, EVENT_REFRESH_FAIL, request, outcome=OUTCOME_FAIL)
        raise auth_error(401, "invalid_grant", "Refresh token not found")
    if rt.revoked:
        # A rotated token presented again: treat the whole family as compromised
        revoked = revoke_all_refresh_tokens(db, rt.user_id)
        logger.warning("refresh: reuse of revoked token for sub=%s; revoked %s tokens", rt.user_id, revoked)
        record_event(db, EVENT_REFRESH_FAIL, request, user_id=rt.user_id, outcome=OUTCOME_FAIL)
        raise auth_error(401, "invalid_grant", "Refresh token has been revoked")
    if not rt.is_usable(datetime.now(timezone.utc)):
        record_event(db, EVENT_REFRESH_FAIL, request, user_id=rt.user_id, outcome=OUTCOME_FAIL)
        raise auth_error(401, "invalid_grant", "Refresh token expired")

    rt.revoked = True
    db.commit()
    user = rt.user
    record_event(db, EVENT_TOKEN_REFRESHED, request, user_id=user.id)
    logger.info("refresh: new tokens issued for sub=%s (refresh token rotated)", user.id)
    return session_response(db, user, response)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    db: Session = Depends(get_db),
):
    """Revoke the presented refresh token (if any) and clear the cookie. Always 200."""
    value = _presented_refresh_token(body, request)
    user_id = None
    if value:
        rt = db.query(RefreshToken).filter(RefreshToken.token == value).first()
        if rt is not None:
            rt.revoked = True
            db.commit()
            user_id = rt.user_id
    clear_refresh_cookie(response)
    record_event(db, EVENT_LOGOUT, request, user_id=user_id)
    return {"message": "Logged out"}
