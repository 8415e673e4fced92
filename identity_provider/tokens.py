"""
Access and refresh token issuance. Access tokens are HS256 JWTs; refresh tokens are opaque,
stored server-side and rotated on every use.
"""
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Response
from sqlalchemy.orm import Session

from identity_provider.config import (
    ACCESS_TOKEN_EXPIRES,
    API_AUDIENCE,
    API_PREFIX,
    ISSUER,
    REFRESH_COOKIE_NAME,
    REFRESH_COOKIE_SECURE,
    REFRESH_TOKEN_EXPIRES,
)
from identity_provider.keys import get_signing_secret
from identity_provider.models import RefreshToken, User


def issue_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "iss": ISSUER,
        "sub": str(user.id),
        "aud": API_AUDIENCE,
        "email": user.email,
        "exp": int((now + timedelta(seconds=ACCESS_TOKEN_EXPIRES)).timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, get_signing_secret(), algorithm="HS256", headers={"typ": "JWT"})


def issue_refresh_token(db: Session, user: User) -> str:
    value = secrets.token_urlsafe(48)
    db.add(
        RefreshToken(
            token=value,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=REFRESH_TOKEN_EXPIRES),
        )
    )
    db.commit()
    return value


def revoke_all_refresh_tokens(db: Session, user_id: int) -> int:
    count = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
        .update({RefreshToken.revoked: True})
    )
    db.commit()
    return count


def session_response(db: Session, user: User, response: Response) -> dict:
    """Issue a token pair, set the refresh cookie, and build the login/refresh body."""
    refresh_token = issue_refresh_token(db, user)
    response.set_cookie(
        REFRESH_COOKIE_NAME,
        refresh_token,
        max_age=REFRESH_TOKEN_EXPIRES,
        httponly=True,
        samesite="strict",
        secure=REFRESH_COOKIE_SECURE,
        path=API_PREFIX,
    )
    return {
        "accessToken": issue_access_token(user),
        "expiresIn": ACCESS_TOKEN_EXPIRES,
        "user": user.to_public(),
        "refreshToken": refresh_token,
    }


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(REFRESH_COOKIE_NAME, path=API_PREFIX)
