"""
Access token validation for the resource server. HS256 with the identity provider's secret;
iss, aud and exp are checked. Every failure is a 401 with WWW-Authenticate: Bearer.
"""
import logging
from pathlib import Path
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from resource_server.config import API_AUDIENCE, ISSUER, SIGNING_SECRET, SIGNING_SECRET_PATH

logger = logging.getLogger(__name__)

_secret: str | None = None


def get_verification_secret() -> str:
    global _secret
    if _secret is None:
        if SIGNING_SECRET:
            _secret = SIGNING_SECRET
        else:
            p = Path(SIGNING_SECRET_PATH)
            _secret = p.read_text(encoding="utf-8").strip() if p.exists() else ""
            if not _secret:
                logger.warning("No signing secret configured; all tokens will be rejected")
    return _secret


security = HTTPBearer(auto_error=False)


def _unauthorized(error: str, description: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "error_description": description},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Extract Bearer token from Authorization header. Raises 401 if missing or not Bearer."""
    if credentials is None:
        raise _unauthorized("invalid_request", "Authorization header missing")
    if credentials.scheme.lower() != "bearer":
        raise _unauthorized("invalid_request", "Bearer scheme required")
    return credentials.credentials


def verify_access_token(token: str) -> dict:
    """Verify signature, iss, aud, exp. Returns decoded claims."""
    secret = get_verification_secret()
    if not secret:
        raise _unauthorized("invalid_token", "Token verification unavailable")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=API_AUDIENCE,
            issuer=ISSUER,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("invalid_token", "Token expired")
    except jwt.InvalidAudienceError:
        raise _unauthorized("invalid_token", "Invalid audience")
    except jwt.InvalidIssuerError:
        raise _unauthorized("invalid_token", "Invalid issuer")
    except jwt.InvalidTokenError as e:
        logger.debug("JWT verification failed: %s", e)
        raise _unauthorized("invalid_token", "Token verification failed")


def get_claims(
    token: Annotated[str, Depends(get_bearer_token)],
) -> dict:
    """Dependency: valid Bearer token -> decoded claims."""
    return verify_access_token(token)


RequireUser = Depends(get_claims)
