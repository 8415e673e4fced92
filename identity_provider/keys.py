"""
HS256 signing secret for access tokens. Taken from env, else loaded from a local file,
else generated and persisted so restarts (and a local resource server) keep verifying tokens.
"""
import logging
import secrets
from pathlib import Path

logger = logging.getLogger(__name__)

_SECRET_BYTES = 48


def load_or_create_secret(path: str | None) -> str:
    """Read the secret from path, or generate one and try to save it."""
    if not path:
        path = ".idp_signing_secret"
    p = Path(path)
    if p.exists():
        try:
            value = p.read_text(encoding="utf-8").strip()
            if value:
                return value
            logger.warning("Signing secret file %s is empty; generating a new secret", path)
        except OSError as e:
            logger.warning("Failed to read signing secret from %s: %s; generating a new secret", path, e)
    value = secrets.token_urlsafe(_SECRET_BYTES)
    try:
        p.write_text(value, encoding="utf-8")
        logger.info("Generated and saved signing secret to %s", path)
    except OSError as e:
        logger.warning("Could not save signing secret to %s: %s", path, e)
    return value


_secret: str | None = None


def get_signing_secret() -> str:
    global _secret
    if _secret is None:
        from identity_provider.config import SIGNING_SECRET, SIGNING_SECRET_PATH

        _secret = SIGNING_SECRET or load_or_create_secret(SIGNING_SECRET_PATH)
    return _secret
