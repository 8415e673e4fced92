"""
Password hashing and optional development user from environment. No hardcoded credentials.
Set IDP_SEED_EMAIL + IDP_SEED_PASSWORD to create a user on startup.
"""
import logging
import os

import bcrypt
from sqlalchemy.orm import Session

from identity_provider.models import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


def seed_from_env(db: Session) -> None:
    """Create one user from env if set and not present."""
    seed_email = os.environ.get("IDP_SEED_EMAIL")
    seed_password = os.environ.get("IDP_SEED_PASSWORD")
    if not (seed_email and seed_password):
        return
    email = seed_email.strip().lower()
    if db.query(User).filter(User.email == email).first() is None:
        db.add(User(email=email, password_hash=hash_password(seed_password)))
        db.commit()
        logger.info("Seeded user: %s", email)
    else:
        logger.debug("User already exists: %s", email)
