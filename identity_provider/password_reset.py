"""
Password reset: POST /forgot-password, POST /reset-password, GET /validate-reset-token.
/forgot-password answers the same way whether or not the account exists.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from identity_provider.audit import EVENT_PASSWORD_RESET, EVENT_RESET_REQUESTED, record_event
from identity_provider.config import RATE_LIMIT_RESET_PER_MINUTE, RESET_TOKEN_EXPIRES
from identity_provider.database import get_db
from identity_provider.login import auth_error, check_password, enforce_rate_limit, normalize_email
from identity_provider.models import PasswordResetToken, User
from identity_provider.seed import hash_password
from identity_provider.tokens import revoke_all_refresh_tokens

logger = logging.getLogger(__name__)
router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent."
INVALID_TOKEN_MESSAGE = "Invalid or expired reset token"


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str | None = None
    newPassword: str | None = None


def deliver_reset_token(user: User, token: str) -> None:
    """
    The only way a reset token leaves the provider. Deployments replace this with their mail
    transport; in development it only records that a link was generated and never logs the token.
    """
    logger.info("Password reset link generated for sub=%s (no mail transport configured)", user.id)


def _usable_reset_token(db: Session, token: str | None) -> PasswordResetToken | None:
    if not token:
        return None
    row = db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
    if row is None or not row.is_usable(datetime.now(timezone.utc)):
        return None
    return row


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, request: Request, db: Session = Depends(get_db)):
    enforce_rate_limit(request, "reset", RATE_LIMIT_RESET_PER_MINUTE)
    email = normalize_email(body.email)
    user = db.query(User).filter(User.email == email).first()
    if user is not None:
        token = secrets.token_urlsafe(32)
        db.add(
            PasswordResetToken(
                token=token,
                user_id=user.id,
                expires_at=datetime.now(timezone.utc) + timedelta(seconds=RESET_TOKEN_EXPIRES),
            )
        )
        db.commit()
        deliver_reset_token(user, token)
    record_event(db, EVENT_RESET_REQUESTED, request, user_id=user.id if user else None)
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, request: Request, db: Session = Depends(get_db)):
    enforce_rate_limit(request, "reset", RATE_LIMIT_RESET_PER_MINUTE)
    new_password = check_password(body.newPassword)
    row = _usable_reset_token(db, body.token)
    if row is None:
        raise auth_error(400, "invalid_token", INVALID_TOKEN_MESSAGE)

    row.user.password_hash = hash_password(new_password)
    row.used = True
    db.commit()
    # Existing sessions end with the old password
    revoke_all_refresh_tokens(db, row.user_id)
    record_event(db, EVENT_PASSWORD_RESET, request, user_id=row.user_id)
    logger.info("reset-password: password changed for sub=%s", row.user_id)
    return {"message": "Password has been reset. Please sign in."}


@router.get("/validate-reset-token")
def validate_reset_token(token: str | None = None, db: Session = Depends(get_db)):
    if _usable_reset_token(db, token) is None:
        return {"valid": False, "message": INVALID_TOKEN_MESSAGE}
    return {"valid": True}
