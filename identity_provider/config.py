"""
Identity provider configuration (development provider for the session client).
No secrets in this file; the signing secret comes from env or a generated local file.
"""
import os

# Mount point of the auth API (session client AUTH_API_BASE_URL points here)
API_PREFIX = "/api/auth"

# SQLite for development
DATABASE_URL = os.environ.get("IDP_DATABASE_URL", "sqlite:///./identity_provider.db")

# HS256 secret for access tokens. If unset, read from / generated into SIGNING_SECRET_PATH.
SIGNING_SECRET = os.environ.get("IDP_SIGNING_SECRET", "").strip() or None
SIGNING_SECRET_PATH = os.environ.get("IDP_SIGNING_SECRET_PATH", ".idp_signing_secret")

# Issuer and audience claims of access tokens (resource server checks both)
ISSUER = os.environ.get("IDP_ISSUER", "http://localhost:5000").rstrip("/")
API_AUDIENCE = os.environ.get("IDP_API_AUDIENCE", "http://localhost:7000")

# Access token lifetime (seconds). Short-lived; clients renew via /refresh.
ACCESS_TOKEN_EXPIRES = int(os.environ.get("IDP_ACCESS_TOKEN_EXPIRES", "900"))

# Refresh token lifetime (seconds). Rotated on every use.
REFRESH_TOKEN_EXPIRES = int(os.environ.get("IDP_REFRESH_TOKEN_EXPIRES", str(7 * 24 * 3600)))

# Password reset token lifetime (seconds)
RESET_TOKEN_EXPIRES = int(os.environ.get("IDP_RESET_TOKEN_EXPIRES", "3600"))

# Refresh cookie for cookie-mode clients
REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_SECURE = os.environ.get("IDP_REFRESH_COOKIE_SECURE", "").strip().lower() in ("1", "true", "yes")

# Rate limiting: per-IP, per minute
RATE_LIMIT_LOGIN_PER_MINUTE = int(os.environ.get("IDP_RATE_LIMIT_LOGIN_PER_MINUTE", "20"))
RATE_LIMIT_REGISTER_PER_MINUTE = int(os.environ.get("IDP_RATE_LIMIT_REGISTER_PER_MINUTE", "10"))
RATE_LIMIT_RESET_PER_MINUTE = int(os.environ.get("IDP_RATE_LIMIT_RESET_PER_MINUTE", "5"))
